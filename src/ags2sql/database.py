"""
Destination database executors.

The converter only needs to run single statements with positional
parameters, one at a time, each committed on its own. Two executors cover
that: one over SQLAlchemy (PostgreSQL, SQLite and any other installed
dialect, with binds rendered by the dialect) and one over a native DuckDB
connection for `duckdb://` URLs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Optional, Protocol, runtime_checkable

import duckdb
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from .config.settings import ConfigurationError
from .types import DatabaseError

logger = logging.getLogger(__name__)

DUCKDB_DRIVER = "duckdb"


@runtime_checkable
class DatabaseExecutor(Protocol):
    """Runs SQL statements against the destination database."""

    paramstyle: str

    def execute(self, statement: str, parameters: Sequence[Any] = ()) -> None:
        """Execute one statement and commit it."""
        ...

    def close(self) -> None:
        ...


class SQLAlchemyExecutor:
    """
    Executor over a single SQLAlchemy connection.

    Parameterized statements use `:p1, :p2, ...` placeholders and go through
    `text()`, so the dialect renders them in its driver's own paramstyle.
    Each statement runs in its own transaction, so rows inserted before a
    failure stay committed.
    """

    paramstyle = "named"

    def __init__(self, engine: Engine):
        self.engine = engine
        try:
            self._connection = engine.connect()
        except SQLAlchemyError as e:
            raise DatabaseError("<connect>", str(e)) from e

    def execute(self, statement: str, parameters: Sequence[Any] = ()) -> None:
        try:
            with self._connection.begin():
                if parameters:
                    binds = {f"p{i}": value for i, value in enumerate(parameters, start=1)}
                    self._connection.execute(text(statement), binds)
                else:
                    # DDL goes to the driver as-is; text() would read colons as binds
                    self._connection.exec_driver_sql(statement)
        except SQLAlchemyError as e:
            raise DatabaseError(statement, str(e)) from e

    def fetchall(self, query: str) -> list[tuple]:
        """Run a read query; used for inspection and tests."""
        with self._connection.begin():
            return [tuple(row) for row in self._connection.exec_driver_sql(query).fetchall()]

    def close(self) -> None:
        self._connection.close()
        self.engine.dispose()


class DuckDBExecutor:
    """Executor over a native DuckDB connection (autocommit by default)."""

    paramstyle = "qmark"

    def __init__(self, database: str = ":memory:"):
        self.database = database
        try:
            self._con = duckdb.connect(database)
        except duckdb.Error as e:
            raise DatabaseError("<connect>", str(e)) from e

    def execute(self, statement: str, parameters: Sequence[Any] = ()) -> None:
        try:
            if parameters:
                self._con.execute(statement, list(parameters))
            else:
                self._con.execute(statement)
        except duckdb.Error as e:
            raise DatabaseError(statement, str(e)) from e

    def fetchall(self, query: str) -> list[tuple]:
        """Run a read query; used for inspection and tests."""
        return self._con.execute(query).fetchall()

    def close(self) -> None:
        self._con.close()


def _apply_credentials(url: URL, username: Optional[str], password: Optional[str]) -> URL:
    if url.username or not username:
        return url
    return url.set(username=username, password=password)


def connect_database(
    database_url: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> DatabaseExecutor:
    """
    Open an executor for a database URL.

    Args:
        database_url: SQLAlchemy URL, or `duckdb:///path.db` / `duckdb://`
            for DuckDB
        username: Used only when the URL has no user of its own
        password: Password paired with `username`

    Returns:
        Connected executor

    Raises:
        ConfigurationError: If the URL cannot be parsed
        DatabaseError: If the connection cannot be opened
    """
    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise ConfigurationError(f"Invalid database URL '{database_url}': {e}") from e

    if url.drivername == DUCKDB_DRIVER:
        database = url.database or ":memory:"
        logger.info(f"Connecting to DuckDB database {database}")
        return DuckDBExecutor(database)

    url = _apply_credentials(url, username, password)
    logger.info(f"Connecting to {url.render_as_string(hide_password=True)}")
    try:
        engine = create_engine(url)
    except (ArgumentError, ImportError) as e:
        raise ConfigurationError(f"Unsupported database URL '{database_url}': {e}") from e
    return SQLAlchemyExecutor(engine)
