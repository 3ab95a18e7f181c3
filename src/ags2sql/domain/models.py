"""
Feature Service Domain Models

Pydantic models for the JSON documents the ArcGIS REST API returns.
Responses are decoded into these models once, at the client boundary, so the
rest of the converter works with typed values instead of raw dictionaries.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TableDescriptor(BaseModel):
    """One entry of the service's `tables` listing."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Service-side numeric table identifier")
    name: str = Field(..., description="Table name as published by the service")


class ServiceInfo(BaseModel):
    """Service self-description, fetched once per run."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    tables: list[TableDescriptor] = Field(
        default_factory=list,
        description="Non-spatial tables exposed by the service (absent means none)",
    )

    def find_table(self, name: str) -> Optional[TableDescriptor]:
        """
        Exact, case-sensitive lookup by table name.

        When the listing holds the same name more than once the last entry
        wins, matching how the service's own clients walk the list.
        """
        match = None
        for table in self.tables:
            if table.name == name:
                match = table
        return match

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]


class FieldDescriptor(BaseModel):
    """Field metadata entry: column name and source-side type tag."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    type: str = Field(..., description="Field type tag, e.g. esriFieldTypeOID")


class Feature(BaseModel):
    """A single record. Geometry, when present, is ignored."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    attributes: dict[str, Any]

    def value_for(self, field_name: str) -> Any:
        """
        Attribute value for a field.

        A JSON null and a key missing from the mapping both come back as
        None; anything else is passed through untouched.
        """
        if field_name not in self.attributes:
            return None
        return self.attributes[field_name]


class FeaturePage(BaseModel):
    """One page of a `/query` response."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    features: list[Feature]
    fields: list[FieldDescriptor] = Field(default_factory=list)
    exceeded_transfer_limit: Optional[bool] = Field(None, alias="exceededTransferLimit")

    @property
    def has_more(self) -> bool:
        """True only when the service explicitly reports a truncated page."""
        return self.exceeded_transfer_limit is True

    def __len__(self) -> int:
        return len(self.features)


class ConversionJob(BaseModel):
    """What to convert: service, destination database and table names."""
    model_config = ConfigDict(extra="forbid")

    url: Optional[str] = Field(None, description="MapServer or FeatureServer URL")
    token_url: Optional[str] = Field(None, description="Token endpoint for authenticated services")
    db: Optional[str] = Field(None, description="Destination database URL")
    tables: list[str] = Field(default_factory=list, description="Service table names, converted in order")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")

    def merged_with(self, **overrides: Any) -> "ConversionJob":
        """Copy with every non-empty override applied on top of this job."""
        updates = {k: v for k, v in overrides.items() if v not in (None, [], ())}
        return self.model_copy(update=updates)
