"""
Domain Models and Types

Typed views of the feature service protocol used throughout the converter.

Models:
- ServiceInfo: Service self-description with its table listing
- TableDescriptor: Table id and name
- FieldDescriptor: Field name and type tag
- Feature: Attribute mapping for one record
- FeaturePage: One page of query results with the transfer-limit flag
- ConversionJob: Service, database and table selection for one run

Enums:
- FieldType: ArcGIS REST field type tags
- ParamStyle: parameter styles for insert statements (qmark, named)
"""

from .enums import FieldType, ParamStyle
from .models import (
    ConversionJob,
    Feature,
    FeaturePage,
    FieldDescriptor,
    ServiceInfo,
    TableDescriptor,
)

__all__ = [
    "ServiceInfo", "TableDescriptor", "FieldDescriptor", "Feature", "FeaturePage",
    "ConversionJob",
    "FieldType", "ParamStyle"
]
