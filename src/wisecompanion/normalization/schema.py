"""Canonical schema for normalized activities.

Defines the fixed-shape record written to the published snapshot and read back
by the activity store. Attribute names are snake_case; the serialized field
names are the camelCase names the static site expects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class CanonicalActivity(BaseModel):
    """Unified activity record.

    Attributes:
        id: Airtable record id, never regenerated.
        name: Display title.
        description: Display body text.
        icon: Emoji or icon token shown on the card.
        link: URL or app deep link; ``"#"`` means no action.
        categories: Canonical category tags, duplicate free, in source order.
            Stored as a tuple so a loaded snapshot cannot be edited in place.
        source_app: Brand or platform running the promotion, trimmed.
        target_app: Platform the link opens.
        special_note: Optional warning or promotion note.
        end_date: Optional ISO date (``YYYY-MM-DD``) after which the activity expires.
        steps_text: Optional usage instructions.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    name: str
    description: str
    icon: str
    link: str
    categories: Tuple[str, ...] = ()
    source_app: str = Field(alias="sourceApp")
    target_app: str = Field(alias="targetApp")
    special_note: Optional[str] = Field(default=None, alias="specialNote")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    steps_text: Optional[str] = Field(default=None, alias="stepsText")

    def to_artifact(self) -> dict:
        """Return the snapshot representation with camelCase keys in schema order."""

        return self.model_dump(by_alias=True, mode="json")


@dataclass(frozen=True)
class RawRecord:
    """Untransformed record as received from Airtable.

    Attributes:
        id: Airtable record id.
        fields: Field name to value mapping, with whatever spelling the table used.
    """

    id: str
    fields: Mapping[str, Any]
