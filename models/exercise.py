"""
Exercise catalog schemas.

The catalog itself is read-only; these models are what the catalog and
the alias matcher hand back to the mapping service.
"""

from enum import Enum
from pydantic import Field

from models.base import BaseSchema


class ExerciseRecord(BaseSchema):
    """Canonical exercise in the catalog."""

    id: str = Field(..., min_length=1, description="Catalog slug, e.g. 'bench-press'")
    name: str = Field(..., min_length=1, description="Display name")
    description: str = ""
    primary_muscles: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    aliases: list[str] = Field(default_factory=list, description="Alternate names users and generators write")


class AliasMatchSource(str, Enum):
    """What part of the record produced an alias match."""

    NAME = "name"
    ALIAS = "alias"
    FUZZY = "fuzzy"


class AliasMatch(BaseSchema):
    """Best alias hit for a piece of free text."""

    catalog_id: str
    alias: str
    matched_by: AliasMatchSource
    score: float = Field(..., ge=0, le=1)
