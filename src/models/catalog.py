"""Data models for the external manga catalog feed."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class CatalogEntry(BaseModel):
    """A single manga in the catalog feed"""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    chapters: int = Field(..., ge=0)


# The feed is a bare JSON array, validated as a whole
CatalogAdapter = TypeAdapter(List[CatalogEntry])
