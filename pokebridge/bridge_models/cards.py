"""
Card record models.
"""

from __future__ import annotations

import datetime
import enum
import math
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import ParseFailure


class CatalogSource(str, enum.Enum):
    """Catalog a card record originates from."""

    CATALOG_A = "catalogA"
    CATALOG_B = "catalogB"

    @property
    def sibling(self) -> CatalogSource:
        if self is CatalogSource.CATALOG_A:
            return CatalogSource.CATALOG_B
        return CatalogSource.CATALOG_A


class PriceValue(BaseModel):
    value: float


class MarketPrice(BaseModel):
    """Marketplace price block published with Catalog A cards."""

    market: float | None = None
    low: float | None = None
    mid: float | None = None
    high: float | None = None


class EnhancedPricing(BaseModel):
    """Graded and raw prices normalized from the pricing provider."""

    model_config = {"populate_by_name": True}

    psa_grades: dict[str, PriceValue] | None = Field(default=None, alias="psaGrades")
    cgc_grades: dict[str, PriceValue] | None = Field(default=None, alias="cgcGrades")
    ebay_raw: PriceValue | None = Field(default=None, alias="ebayRaw")
    tcg_player: PriceValue | None = Field(default=None, alias="tcgPlayer")
    catalog_b_raw: PriceValue | None = Field(default=None, alias="catalogBRaw")

    def is_empty(self) -> bool:
        return not any(
            (self.psa_grades, self.cgc_grades, self.ebay_raw, self.tcg_player, self.catalog_b_raw)
        )


class CardImages(BaseModel):
    small: str
    large: str


class CardRecord(BaseModel):
    """A card from either catalog, with whatever enrichment has been found."""

    model_config = {"populate_by_name": True}

    id: str
    set_id: str = Field(alias="setId")
    set_code: str = Field(default="", alias="setCode")
    set_name: str | None = Field(default=None, alias="setName")
    card_name: str = Field(alias="cardName")
    card_number: str = Field(alias="cardNumber")
    rarity: str | None = None
    cross_catalog_id: str | None = Field(default=None, alias="crossCatalogId")
    pricing: MarketPrice | None = None
    enhanced_pricing: EnhancedPricing | None = Field(default=None, alias="enhancedPricing")
    images: CardImages | None = None
    pricing_last_updated: datetime.datetime | None = Field(
        default=None, alias="pricingLastUpdated"
    )
    last_updated: datetime.datetime | None = Field(default=None, alias="lastUpdated")
    source: CatalogSource

    @field_validator("id", "set_id", "card_number", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("set_code", mode="before")
    @classmethod
    def _coerce_set_code(cls, value: Any) -> str:
        return value or ""

    @field_validator("cross_catalog_id", mode="before")
    @classmethod
    def _coerce_cross_catalog_id(cls, value: Any) -> str | None:
        return None if value in (None, "") else str(value)

    @property
    def partition_key(self) -> str:
        return self.set_id

    @classmethod
    def from_json(cls, payload: Any, source: str = "card record") -> CardRecord:
        try:
            return cls.model_validate(payload)
        except ValidationError as error:
            raise ParseFailure(source, f"Malformed card record: {error}") from error

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class CardResult(BaseModel):
    """A served card plus where it was served from."""

    model_config = {"populate_by_name": True}

    card: CardRecord
    cached: bool = False
    cache_age_seconds: int | None = Field(default=None, alias="cacheAgeSeconds")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class PageResult(BaseModel):
    """One page of a set's cards."""

    model_config = {"populate_by_name": True}

    items: list[CardRecord] = Field(default_factory=list)
    total_count: int = Field(default=0, alias="totalCount")
    page_number: int = Field(default=1, alias="pageNumber")
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(default=0, alias="totalPages")

    @classmethod
    def paginate(
        cls, items: list[CardRecord], total_count: int, page: int, page_size: int
    ) -> PageResult:
        return cls(
            items=items,
            total_count=total_count,
            page_number=page,
            page_size=page_size,
            total_pages=math.ceil(total_count / page_size) if total_count else 0,
        )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
