"""
SchemaMapper - Field Metadata to SQL Statements

Turns the field list reported by a feature service table into the DDL and
parameterized insert used to materialize it.

Type mapping is intentionally coarse: the object-id field becomes the integer
primary key and every other field, recognized or not, is stored as varchar.
Numeric, date and GUID fields therefore land as text. Table creation never
fails on an unfamiliar type tag.
"""

from collections.abc import Sequence
from typing import Any

from ..config.settings import ConfigurationError
from ..domain.enums import FieldType, ParamStyle
from ..domain.models import Feature, FieldDescriptor

PRIMARY_KEY_COLUMN_TYPE = "integer primary key"
DEFAULT_COLUMN_TYPE = "varchar"

FIELD_TYPE_MAP: dict[str, str] = {
    FieldType.OID.value: PRIMARY_KEY_COLUMN_TYPE,
}

# Namespace separator in qualified table names (e.g. "gisdata.owner.Parcels")
NAMESPACE_SEPARATOR = "."


def map_field_type(service_type: str) -> str:
    """Column type for a service field type tag."""
    return FIELD_TYPE_MAP.get(service_type, DEFAULT_COLUMN_TYPE)


def destination_table_name(name: str) -> str:
    """
    Destination table name for a service table name.

    Anything up to and including the last namespace separator is dropped and
    the remainder is lower-cased: "GISDATA.Owner.Parcels" -> "parcels".

    Raises:
        ConfigurationError: If nothing is left after the last separator
    """
    _, _, suffix = name.rpartition(NAMESPACE_SEPARATOR)
    if not suffix.strip():
        raise ConfigurationError(f"Cannot derive a destination table name from service table '{name}'")
    return suffix.lower()


def placeholder(paramstyle: str, position: int) -> str:
    """Placeholder for 1-based `position` in the given paramstyle."""
    if paramstyle == ParamStyle.NAMED.value:
        return f":p{position}"
    return "?"


class SchemaMapper:
    """
    Builds statements for one destination database.

    Args:
        paramstyle: Paramstyle of the executor the insert statement is handed
            to: qmark for DuckDB, named for SQLAlchemy's `text()` binds
    """

    def __init__(self, paramstyle: str = ParamStyle.QMARK.value):
        supported = [style.value for style in ParamStyle]
        if paramstyle not in supported:
            raise ConfigurationError(
                f"Unsupported database paramstyle '{paramstyle}' (supported: {', '.join(supported)})"
            )
        self.paramstyle = paramstyle

    def build_drop_statement(self, table_name: str) -> str:
        return f"drop table if exists {table_name}"

    def build_create_statement(self, table_name: str, fields: Sequence[FieldDescriptor]) -> str:
        """Create statement with one column per field, in field order."""
        columns = ",\n    ".join(f"{field.name} {map_field_type(field.type)}" for field in fields)
        return f"create table {table_name} (\n    {columns}\n)"

    def build_insert_statement(self, table_name: str, fields: Sequence[FieldDescriptor]) -> str:
        """Insert statement with one placeholder per field, in field order."""
        columns = ", ".join(field.name for field in fields)
        values = ", ".join(placeholder(self.paramstyle, i) for i in range(1, len(fields) + 1))
        return f"insert into {table_name} ({columns}) values ({values})"

    def row_values(self, feature: Feature, fields: Sequence[FieldDescriptor]) -> tuple[Any, ...]:
        """Parameter tuple aligned with `build_insert_statement` column order."""
        return tuple(feature.value_for(field.name) for field in fields)
