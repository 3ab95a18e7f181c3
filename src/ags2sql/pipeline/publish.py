"""
TableMaterializer - Feature Pages to SQL Tables

Consumes the paged query results of one service table and writes them to the
destination database: the table is dropped and recreated on the first page
that carries rows, and every later page is appended.

TableConverter resolves requested table names against the service listing
and runs the materializer for each, in order. Any error aborts the run; rows
committed before the failure are left in place.
"""

import logging
import time
from collections.abc import Sequence
from typing import Optional

from ..database import DatabaseExecutor
from ..domain.models import FeaturePage, FieldDescriptor, ServiceInfo, TableDescriptor
from ..types import ParseError, TableNotFoundError, TableResult
from ..utils import timer
from .source import FeatureServiceClient
from .transform import SchemaMapper, destination_table_name

logger = logging.getLogger(__name__)


class TableMaterializer:
    """
    Drives pagination for a single table end to end.

    Args:
        client: Feature service client bound to the run's session
        executor: Destination database executor
        mapper: Statement builder; defaults to one for the executor's
            paramstyle
    """

    def __init__(
        self,
        client: FeatureServiceClient,
        executor: DatabaseExecutor,
        mapper: Optional[SchemaMapper] = None,
    ):
        self.client = client
        self.executor = executor
        self.mapper = mapper or SchemaMapper(executor.paramstyle)

    def recreate_table(self, destination: str, fields: Sequence[FieldDescriptor]) -> None:
        self.executor.execute(self.mapper.build_drop_statement(destination))
        self.executor.execute(self.mapper.build_create_statement(destination, fields))

    def insert_page(self, destination: str, fields: Sequence[FieldDescriptor], page: FeaturePage) -> int:
        """Insert every feature of a page as one row; returns rows written."""
        insert_sql = self.mapper.build_insert_statement(destination, fields)
        for feature in page.features:
            self.executor.execute(insert_sql, self.mapper.row_values(feature, fields))
        return len(page.features)

    @timer
    def materialize(self, table: TableDescriptor) -> TableResult:
        """
        Convert one table.

        The field list of the first non-empty page governs the whole table;
        later pages are assumed to report the same fields.

        Returns:
            Counts for the converted table

        Raises:
            TransportError, ParseError, RemoteServiceError: From the service
            DatabaseError: From the executor
        """
        destination = destination_table_name(table.name)
        logger.info(f"Converting table ID {table.id}, '{table.name}'...")
        start_time = time.time()

        fields: Optional[list[FieldDescriptor]] = None
        total = 0
        pages = 0

        for page in self.client.iter_pages(table.id):
            pages += 1
            if not page.features:
                logger.info(f"Page {pages}: no features, skipping")
                continue

            if fields is None:
                if not page.fields:
                    raise ParseError(
                        self.client.url_for(f"{table.id}/query"),
                        "query response has features but no field list",
                    )
                fields = list(page.fields)
                logger.info(f"Page {pages}: got {len(page.features)} features, creating/replacing table '{destination}'")
                self.recreate_table(destination, fields)
            else:
                logger.info(f"Page {pages}: got {len(page.features)} features, appending to table '{destination}'")

            total += self.insert_page(destination, fields, page)

        if fields is None:
            logger.warning(f"Table '{table.name}' returned no features; '{destination}' left untouched")

        duration = time.time() - start_time
        logger.info(f"Table '{table.name}' done: {total:,} rows in {pages} page(s)")
        return TableResult(
            table_id=table.id,
            name=table.name,
            destination=destination,
            features=total,
            pages=pages,
            created=fields is not None,
            duration_s=duration,
        )


class TableConverter:
    """
    Converts a list of service tables by name.

    Args:
        client: Feature service client bound to the run's session
        executor: Destination database executor
        service_info: Pre-fetched service description; fetched on first use
            when omitted
    """

    def __init__(
        self,
        client: FeatureServiceClient,
        executor: DatabaseExecutor,
        service_info: Optional[ServiceInfo] = None,
    ):
        self.client = client
        self.executor = executor
        self._service_info = service_info
        self.materializer = TableMaterializer(client, executor)

    @property
    def service_info(self) -> ServiceInfo:
        if self._service_info is None:
            self._service_info = self.client.fetch_service_info()
        return self._service_info

    def resolve_tables(self, table_names: Sequence[str]) -> list[TableDescriptor]:
        """
        Map every requested name to its service table.

        All names are resolved, and their destination names derived, before
        any conversion starts, so a bad name fails the run before the database
        is touched.

        Raises:
            TableNotFoundError: For the first name with no exact match
            ConfigurationError: For a name with no usable destination name
        """
        info = self.service_info
        resolved = []
        for name in table_names:
            table = info.find_table(name)
            if table is None:
                raise TableNotFoundError(name, info.table_names)
            destination_table_name(table.name)
            resolved.append(table)
        return resolved

    def convert(self, table_names: Sequence[str]) -> list[TableResult]:
        """Convert the named tables in order, stopping at the first failure."""
        logger.info(f"Converting tables: {list(table_names)}")
        tables = self.resolve_tables(table_names)
        return [self.materializer.materialize(table) for table in tables]
