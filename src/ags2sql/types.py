"""
Type definitions for the ags2sql conversion run.

This module provides the run-scoped context handed to every component and
the exception hierarchy raised while talking to the feature service and the
destination database.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ServiceSession:
    """Immutable context for one conversion run.

    Built once at startup (after the optional token fetch) and passed to the
    service client, converter and materializer instead of living in module
    state.
    """
    base_url: str
    token: Optional[str] = None
    verify_ssl: bool = True
    timeout: Optional[float] = None

    def __repr__(self) -> str:
        token_state = "set" if self.token else "none"
        return (
            f"ServiceSession(base_url={self.base_url}, token={token_state}, "
            f"verify_ssl={self.verify_ssl})"
        )


@dataclass(frozen=True)
class TableResult:
    """Outcome of converting one service table."""
    table_id: int
    name: str
    destination: str
    features: int = 0
    pages: int = 0
    created: bool = False
    duration_s: float = 0.0


# Conversion exception hierarchy
class ConversionError(Exception):
    """Base exception for conversion failures."""
    pass


class AuthenticationError(ConversionError):
    """Token endpoint did not hand out a usable token."""
    pass


class TransportError(ConversionError):
    """Network call or response body read failed."""
    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Error on request {url}: {message}")


class ParseError(ConversionError):
    """Response body is not valid JSON or does not have the expected shape."""
    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Error parsing JSON from request {url}: {message}")


class RemoteServiceError(ConversionError):
    """Service answered with an error payload."""
    def __init__(self, url: str, body: str):
        self.url = url
        self.body = body
        super().__init__(f"Error on request {url}: {body}")


class TableNotFoundError(ConversionError):
    """Requested table name is not in the service's table listing."""
    def __init__(self, table_name: str, available: Optional[list[str]] = None):
        self.table_name = table_name
        self.available = available or []
        message = f"Table not found: {table_name}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class DatabaseError(ConversionError):
    """Statement execution failed on the destination database."""
    def __init__(self, statement: str, message: str):
        self.statement = statement
        super().__init__(f"Database error: {message}\nStatement: {statement}")
