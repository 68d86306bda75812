"""
Set models for both catalogs.
"""

from __future__ import annotations

import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..constants import CATALOG_B_MATCH_LANGUAGE, CURRENT_SET_WINDOW_DAYS
from ..utils import parse_date


class CatalogASet(BaseModel):
    """Set as published by the Pokemon TCG API."""

    model_config = {"populate_by_name": True}

    id: str
    name: str
    cross_ref_code: str | None = Field(default=None, alias="crossRefCode")
    release_date: datetime.date | None = Field(default=None, alias="releaseDate")
    series: str | None = None
    total: int | None = None

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_release_date(cls, value: Any) -> datetime.date | None:
        return parse_date(value)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> CatalogASet:
        """
        Build from a raw Pokemon TCG API set object
        ("ptcgoCode" is the code shared with the other catalog)
        """
        return cls(
            id=payload["id"],
            name=payload["name"],
            cross_ref_code=payload.get("ptcgoCode") or payload.get("crossRefCode"),
            release_date=payload.get("releaseDate"),
            series=payload.get("series"),
            total=payload.get("total"),
        )

    def is_current(self, today: datetime.date | None = None) -> bool:
        """Released within the last year."""
        if self.release_date is None:
            return False
        today = today or datetime.date.today()
        return (today - self.release_date).days <= CURRENT_SET_WINDOW_DAYS


class CatalogBSet(BaseModel):
    """Set as published by the PokeData API."""

    model_config = {"populate_by_name": True}

    id: int
    code: str | None = None
    name: str
    language: str = ""
    release_date: datetime.date | None = Field(default=None, alias="releaseDate")

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_release_date(cls, value: Any) -> datetime.date | None:
        return parse_date(value)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> CatalogBSet:
        """Build from a raw PokeData set object."""
        return cls(
            id=payload["id"],
            code=payload.get("code") or None,
            name=payload["name"],
            language=payload.get("language") or "",
            release_date=payload.get("release_date") or payload.get("releaseDate"),
        )

    @property
    def is_match_candidate(self) -> bool:
        return self.language == CATALOG_B_MATCH_LANGUAGE
