"""Shared model config and base types."""
from pydantic import BaseModel, ConfigDict


class LPBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class RemoteRecord(BaseModel):
    """Record read back from the accounting-data service (PascalCase columns)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
