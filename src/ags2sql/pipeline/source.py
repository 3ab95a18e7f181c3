"""
FeatureServiceClient - ArcGIS REST Data Source

Token acquisition and form-encoded JSON requests against a MapServer or
FeatureServer endpoint, plus the paged `/query` reader that feeds the table
materializer.

Every request is a standalone POST: no HTTP session, cookies or retries are
kept between calls. A single failure is raised to the caller.
"""

import json
import logging
from collections.abc import Iterator
from typing import Any, Optional

import requests
from pydantic import ValidationError

from ..domain.models import FeaturePage, ServiceInfo
from ..types import (
    AuthenticationError,
    ParseError,
    RemoteServiceError,
    ServiceSession,
    TransportError,
)

logger = logging.getLogger(__name__)

# Query parameters selecting every record and every attribute
QUERY_ALL_RECORDS = "1=1"
QUERY_ALL_FIELDS = "*"

# Parameters that must never reach the log
_SECRET_PARAMS = frozenset({"token", "password"})


def _post_form(url: str, data: dict[str, Any], verify_ssl: bool, timeout: Optional[float]) -> str:
    """POST form data and return the body text, wrapping transport failures."""
    safe = {k: ("***" if k in _SECRET_PARAMS else v) for k, v in data.items()}
    logger.debug(f"POST {url} {safe}")
    try:
        response = requests.post(url, data=data, verify=verify_ssl, timeout=timeout)
        return response.text
    except requests.RequestException as e:
        raise TransportError(url, f"{e.__class__.__name__}: {e}") from e


def _decode_json_object(url: str, content: str) -> dict[str, Any]:
    try:
        parsed = json.loads(content)
    except ValueError as e:
        raise ParseError(url, f"{e.__class__.__name__}: {e}") from e
    if not isinstance(parsed, dict):
        raise ParseError(url, f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


class TokenAuthenticator:
    """Exchanges a username and password for a bearer token."""

    def __init__(self, token_url: str, verify_ssl: bool = True, timeout: Optional[float] = None):
        self.token_url = token_url
        self.verify_ssl = verify_ssl
        self.timeout = timeout

    def fetch_token(self, username: str, password: str) -> str:
        """
        Request a token from the token endpoint.

        Args:
            username: Service account username
            password: Service account password

        Returns:
            Opaque token string

        Raises:
            TransportError: If the token endpoint cannot be reached
            AuthenticationError: If the response is not JSON or carries no token
        """
        data = {"f": "json", "username": username, "password": password}
        content = _post_form(self.token_url, data, self.verify_ssl, self.timeout)

        try:
            payload = _decode_json_object(self.token_url, content)
        except ParseError as e:
            raise AuthenticationError(f"Invalid token response from {self.token_url}: {e}") from e

        if "error" in payload:
            raise AuthenticationError(f"Token request to {self.token_url} failed: {content}")

        token = payload.get("token")
        if not isinstance(token, str) or not token:
            raise AuthenticationError(f"No token in response from {self.token_url}")

        logger.info(f"Obtained token for user {username}")
        return token


class FeatureServiceClient:
    """
    Authenticated JSON requests against one feature service.

    Args:
        session: Run context holding the base URL, optional token and
            transport settings
    """

    def __init__(self, session: ServiceSession):
        self.session = session

    def url_for(self, path: str = "") -> str:
        base = self.session.base_url.rstrip("/")
        return f"{base}/{path.lstrip('/')}" if path else base

    def request(self, path: str = "", params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        POST to the base URL or a sub-resource and return the decoded JSON object.

        `f=json` is always sent, and `token` when the session holds one.

        Raises:
            TransportError: Network or body read failure
            ParseError: Body is not a JSON object
            RemoteServiceError: Body holds an `error` member (raw body retained)
        """
        url = self.url_for(path)
        data: dict[str, Any] = {"f": "json"}
        if self.session.token:
            data["token"] = self.session.token
        if params:
            data.update(params)

        content = _post_form(url, data, self.session.verify_ssl, self.session.timeout)
        payload = _decode_json_object(url, content)

        if "error" in payload:
            raise RemoteServiceError(url, content)

        return payload

    def fetch_service_info(self) -> ServiceInfo:
        """Fetch the service description holding the table listing."""
        url = self.url_for()
        payload = self.request()
        try:
            return ServiceInfo.model_validate(payload)
        except ValidationError as e:
            raise ParseError(url, f"unexpected service info: {e}") from e

    def query_page(self, table_id: int, result_offset: int = 0) -> FeaturePage:
        """Fetch one page of all records and all fields starting at `result_offset`."""
        path = f"{table_id}/query"
        params = {
            "where": QUERY_ALL_RECORDS,
            "outFields": QUERY_ALL_FIELDS,
            "resultOffset": str(result_offset),
        }
        payload = self.request(path, params)
        try:
            return FeaturePage.model_validate(payload)
        except ValidationError as e:
            raise ParseError(self.url_for(path), f"unexpected query response: {e}") from e

    def iter_pages(self, table_id: int) -> Iterator[FeaturePage]:
        """
        Lazily yield every page of a table.

        The offset advances by the number of features received. A page that
        reports `exceededTransferLimit` triggers another fetch even when it
        held no features, in which case the offset stays where it was.
        """
        result_offset = 0
        while True:
            page = self.query_page(table_id, result_offset)
            yield page
            if not page.has_more:
                return
            result_offset += len(page.features)
