"""
Set mapping artifact models.

The artifact is produced by the offline set mapping job and read back
by the live index; it is never mutated in place.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..errors import ParseFailure


class MatchType(str, enum.Enum):
    """Strategy that paired a Catalog A set with a Catalog B set."""

    MANUAL = "manual"
    CROSSREF_CODE = "crossref_code"
    EXACT_NAME = "exact_name"
    NAME_DATE_SIMILARITY = "name_date_similarity"
    CLEANED_NAME = "cleaned_name"


class SetMapping(BaseModel):
    """One Catalog A set paired with one Catalog B set."""

    model_config = {"populate_by_name": True, "use_enum_values": True}

    catalog_a_set_id: str = Field(alias="catalogASetId")
    catalog_b_set_id: int = Field(alias="catalogBSetId")
    catalog_b_code: str | None = Field(default=None, alias="catalogBCode")
    match_type: MatchType = Field(alias="matchType")
    date_diff_days: int | None = Field(default=None, alias="dateDiffDays")
    catalog_a_name: str | None = Field(default=None, alias="catalogAName")
    catalog_b_name: str | None = Field(default=None, alias="catalogBName")


class UnmappedCatalogASet(BaseModel):
    model_config = {"populate_by_name": True}

    id: str
    name: str
    cross_ref_code: str | None = Field(default=None, alias="crossRefCode")
    release_date: str | None = Field(default=None, alias="releaseDate")


class UnmappedCatalogBSet(BaseModel):
    model_config = {"populate_by_name": True}

    id: int
    code: str | None = None
    name: str
    release_date: str | None = Field(default=None, alias="releaseDate")


class UnmappedSets(BaseModel):
    model_config = {"populate_by_name": True}

    catalog_a: list[UnmappedCatalogASet] = Field(default_factory=list, alias="catalogA")
    catalog_b: list[UnmappedCatalogBSet] = Field(default_factory=list, alias="catalogB")


class SetMappingMetadata(BaseModel):
    model_config = {"populate_by_name": True}

    generated_at: str = Field(alias="generatedAt")
    total_mappings: int = Field(default=0, alias="totalMappings")
    unmapped_a: int = Field(default=0, alias="unmappedA")
    unmapped_b: int = Field(default=0, alias="unmappedB")
    mapping_strategies: dict[str, int] = Field(
        default_factory=dict, alias="mappingStrategies"
    )


class SetMappingArtifact(BaseModel):
    """
    Versioned set mapping document:
    {metadata, mappings: {catalogASetId: SetMapping}, unmapped: {catalogA, catalogB}}
    """

    model_config = {"populate_by_name": True}

    metadata: SetMappingMetadata
    mappings: dict[str, SetMapping] = Field(default_factory=dict)
    unmapped: UnmappedSets = Field(default_factory=UnmappedSets)

    @classmethod
    def empty(cls, generated_at: str = "") -> SetMappingArtifact:
        return cls(metadata=SetMappingMetadata(generated_at=generated_at))

    @classmethod
    def from_json(cls, payload: Any, source: str = "set mapping") -> SetMappingArtifact:
        """
        Validate a decoded artifact document
        :param payload: Decoded JSON
        :param source: Where the payload came from, for error messages
        :return Artifact
        """
        try:
            return cls.model_validate(payload)
        except ValidationError as error:
            raise ParseFailure(source, f"Malformed set mapping artifact: {error}") from error

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
