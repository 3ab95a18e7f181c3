"""
Configuration management for the ags2sql converter.

Credentials never appear on the command line; they are read from the
environment, optionally seeded from .env files.

Usage:
    from ags2sql.config.settings import Config
    config = Config()
    session = config.create_session(service_url, token_url=token_url)

Environment Variables:
    AGS_USERNAME: ArcGIS Server username (legacy: AGSUSER)
    AGS_PASSWORD: ArcGIS Server password (legacy: AGSPASSWORD)
    AGS_REQUEST_TIMEOUT: Per-request timeout in seconds (default: none)
    DB_USERNAME: Destination database user (fallback: PGUSER)
    DB_PASSWORD: Destination database password (fallback: PGPASSWORD)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ..types import ServiceSession

logger = logging.getLogger(__name__)


@dataclass
class ServiceCredentials:
    """ArcGIS Server credential configuration."""
    username: str
    password: str

    def __post_init__(self):
        """Validate credential format."""
        if not self.username:
            raise ValueError("Username cannot be empty")
        if not self.password:
            raise ValueError("Password cannot be empty")


@dataclass
class DatabaseCredentials:
    """Destination database credentials, applied when the URL carries none."""
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class ServiceEndpoint:
    """Feature service location and transport settings."""
    url: str
    token_url: Optional[str] = None
    verify_ssl: bool = True

    def __post_init__(self):
        """Validate endpoint URLs."""
        if not self.url.startswith(('http://', 'https://')):
            raise ValueError("Service URL must include protocol (https://)")
        if self.token_url and not self.token_url.startswith(('http://', 'https://')):
            raise ValueError("Token URL must include protocol (https://)")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


class Config:
    """
    Centralized configuration for a conversion run.

    Environment variables loaded (in order of preference):
    1. Explicit environment file passed to constructor
    2. .env.{ENVIRONMENT} (where ENVIRONMENT=development|production|staging)
    3. .env file in project root
    4. System environment variables

    Example:
        config = Config(env_file=Path("/secure/ags.env"))
        session = config.create_session(
            "https://gis.example.com/arcgis/rest/services/Parcels/MapServer",
            token_url="https://gis.example.com/arcgis/tokens/generateToken",
        )
    """

    def __init__(self,
                 environment: Optional[str] = None,
                 env_file: Optional[Path] = None):
        """
        Args:
            environment: Target environment (development|staging|production)
            env_file: Explicit path to environment file
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "development")
        self.project_root = self._find_project_root()

        self._load_environment_variables(env_file)

        self._load_service_credentials()
        self._load_database_credentials()
        self._load_request_settings()

    def _find_project_root(self) -> Path:
        """
        Directory that .env files are looked up in.

        An ags2sql checkout (pyproject.toml or .git above this file) wins;
        an installed copy falls back to the working directory.
        """
        current = Path(__file__).resolve()

        for parent in current.parents:
            if any((parent / marker).exists() for marker in ['pyproject.toml', '.git']):
                return parent

        return Path.cwd()

    def _load_environment_variables(self, env_file: Optional[Path]) -> None:
        """
        Load ags2sql credentials from .env files into the process environment.

        An explicit `--env-file` is used on its own. Otherwise `.env.<environment>`
        is read first and `.env` second; dotenv never overrides a value that is
        already set, so the real environment wins over both files.
        """
        loaded_files = []

        if env_file:
            if not env_file.exists():
                raise ConfigurationError(f"Specified env file not found: {env_file}")
            load_dotenv(env_file)
            loaded_files.append(env_file)
        else:
            for candidate in (self.project_root / f".env.{self.environment}", self.project_root / ".env"):
                if candidate.exists():
                    load_dotenv(candidate)
                    loaded_files.append(candidate)

        for path in loaded_files:
            logger.info(f"ags2sql credentials loaded from {path}")
        if not loaded_files:
            logger.debug("ags2sql: no .env file found, reading credentials from the environment only")

        logger.debug(f"ags2sql project root: {self.project_root} (environment: {self.environment})")

    def _load_service_credentials(self) -> None:
        """Load ArcGIS Server credentials; both parts or nothing."""
        # AGS_ is the primary prefix, AGSUSER/AGSPASSWORD are the legacy names
        username = os.getenv("AGS_USERNAME") or os.getenv("AGSUSER")
        password = os.getenv("AGS_PASSWORD") or os.getenv("AGSPASSWORD")

        self.credentials: Optional[ServiceCredentials] = None
        if username and password:
            self.credentials = ServiceCredentials(username=username, password=password)
        elif username or password:
            missing = "AGS_PASSWORD" if username else "AGS_USERNAME"
            logger.warning(f"{missing} not set; ignoring partial credentials and using anonymous access")

    def _load_database_credentials(self) -> None:
        self.database = DatabaseCredentials(
            username=os.getenv("DB_USERNAME") or os.getenv("PGUSER"),
            password=os.getenv("DB_PASSWORD") or os.getenv("PGPASSWORD"),
        )

    def _load_request_settings(self) -> None:
        raw_timeout = os.getenv("AGS_REQUEST_TIMEOUT")
        self.request_timeout: Optional[float] = None
        if raw_timeout:
            try:
                self.request_timeout = float(raw_timeout)
            except ValueError as e:
                raise ConfigurationError(f"AGS_REQUEST_TIMEOUT must be a number of seconds, got '{raw_timeout}'") from e
            if self.request_timeout <= 0:
                raise ConfigurationError("AGS_REQUEST_TIMEOUT must be positive")

    def create_session(self,
                       service_url: str,
                       token_url: Optional[str] = None,
                       verify_ssl: bool = True) -> ServiceSession:
        """
        Build the run context, fetching a token when credentials are configured.

        Args:
            service_url: MapServer or FeatureServer URL
            token_url: Token endpoint, required when credentials are set
            verify_ssl: Verify TLS certificates

        Returns:
            ServiceSession for the run

        Raises:
            ConfigurationError: If the URLs are invalid, or credentials are set
                without a token URL (checked before any network access)
            AuthenticationError: If the token request fails
        """
        try:
            endpoint = ServiceEndpoint(url=service_url, token_url=token_url, verify_ssl=verify_ssl)
        except ValueError as e:
            raise ConfigurationError(f"Invalid service configuration: {e}") from e

        if not endpoint.verify_ssl:
            logger.warning("TLS certificate verification disabled")

        token = None
        if self.credentials:
            if not endpoint.token_url:
                raise ConfigurationError("Token URL required to use ArcGIS Server authentication")

            from ..pipeline.source import TokenAuthenticator

            authenticator = TokenAuthenticator(endpoint.token_url, endpoint.verify_ssl, self.request_timeout)
            token = authenticator.fetch_token(self.credentials.username, self.credentials.password)
        else:
            logger.info("No service credentials configured, using anonymous access")

        return ServiceSession(
            base_url=endpoint.url,
            token=token,
            verify_ssl=endpoint.verify_ssl,
            timeout=self.request_timeout,
        )

    def __repr__(self) -> str:
        """Safe string representation without credentials."""
        user = self.credentials.username if self.credentials else "anonymous"
        return f"Config(environment={self.environment}, service_user={user})"
