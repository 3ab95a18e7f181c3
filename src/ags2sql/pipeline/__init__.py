"""
ags2sql Pipeline Components

Source -> Transform -> Publish, applied per service table.

Components:
- source: TokenAuthenticator and FeatureServiceClient for the ArcGIS REST API
- transform: SchemaMapper for field metadata to SQL statements
- publish: TableMaterializer and TableConverter for writing destination tables
"""

from .publish import TableConverter, TableMaterializer
from .source import FeatureServiceClient, TokenAuthenticator
from .transform import SchemaMapper

__all__ = [
    "TokenAuthenticator", "FeatureServiceClient", "SchemaMapper",
    "TableMaterializer", "TableConverter"
]
