"""
Converter Enumerations

Field type tags reported by the feature service and the DB-API parameter
styles the statement builder knows how to emit.
"""

from enum import Enum


class FieldType(str, Enum):
    """ArcGIS REST field type tags."""
    OID = "esriFieldTypeOID"                    # Object ID, maps to the primary key
    SMALL_INTEGER = "esriFieldTypeSmallInteger"
    INTEGER = "esriFieldTypeInteger"
    BIG_INTEGER = "esriFieldTypeBigInteger"
    SINGLE = "esriFieldTypeSingle"
    DOUBLE = "esriFieldTypeDouble"
    STRING = "esriFieldTypeString"
    DATE = "esriFieldTypeDate"
    GEOMETRY = "esriFieldTypeGeometry"
    BLOB = "esriFieldTypeBlob"
    RASTER = "esriFieldTypeRaster"
    GUID = "esriFieldTypeGUID"
    GLOBAL_ID = "esriFieldTypeGlobalID"
    XML = "esriFieldTypeXML"


class ParamStyle(str, Enum):
    """DB-API 2.0 paramstyles (PEP 249) the insert builder can render."""
    QMARK = "qmark"     # ... values (?, ?)
    NAMED = "named"     # ... values (:p1, :p2), bound by name
