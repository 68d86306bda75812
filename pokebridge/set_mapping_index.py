"""
Live, lazily loaded view of the set mapping artifact
"""
import json
import logging
import pathlib
import threading
from typing import Dict, List, Optional, Union

from .bridge_models import (
    CatalogSource,
    SetMapping,
    SetMappingArtifact,
    SetMappingMetadata,
    UnmappedCatalogASet,
    UnmappedCatalogBSet,
)
from .errors import ParseFailure

LOGGER = logging.getLogger(__name__)


class SetMappingIndex:
    """
    Translate PokeData set ids to Pokemon TCG API set ids (and back)

    The artifact is read on first use and kept until reload() is called.
    A missing or malformed artifact leaves the index empty.
    """

    artifact_path: pathlib.Path
    _artifact: Optional[SetMappingArtifact]
    _reverse: Dict[int, str]

    def __init__(self, artifact_path: pathlib.Path) -> None:
        self.artifact_path = artifact_path
        self._artifact = None
        self._reverse = {}
        self._lock = threading.Lock()

    @classmethod
    def from_artifact(cls, artifact: SetMappingArtifact) -> "SetMappingIndex":
        """
        Index over an in-memory artifact, never read from disk
        """
        index = cls(pathlib.Path("<memory>"))
        index._install(artifact)
        return index

    def _read_artifact(self) -> SetMappingArtifact:
        try:
            with self.artifact_path.open(encoding="utf-8") as file:
                contents = json.load(file)
        except (OSError, ValueError) as error:
            raise ParseFailure(
                str(self.artifact_path), f"Unable to read set mapping: {error}"
            ) from error
        return SetMappingArtifact.from_json(contents, str(self.artifact_path))

    def _install(self, artifact: SetMappingArtifact) -> None:
        reverse: Dict[int, str] = {}
        for catalog_a_set_id, mapping in artifact.mappings.items():
            previous = reverse.get(mapping.catalog_b_set_id)
            if previous is not None:
                LOGGER.warning(
                    f"Catalog B set {mapping.catalog_b_set_id} is mapped by both "
                    f"{previous} and {catalog_a_set_id}, keeping {catalog_a_set_id}"
                )
            reverse[mapping.catalog_b_set_id] = catalog_a_set_id

        self._artifact = artifact
        self._reverse = reverse
        LOGGER.info(f"Set mapping index holds {len(reverse)} Catalog B sets")

    def _load(self) -> SetMappingArtifact:
        artifact = self._artifact
        if artifact is not None:
            return artifact

        with self._lock:
            artifact = self._artifact
            if artifact is None:
                try:
                    artifact = self._read_artifact()
                except ParseFailure as error:
                    LOGGER.error(f"Falling back to an empty set mapping: {error}")
                    artifact = SetMappingArtifact.empty()
                self._install(artifact)

        return artifact

    def reload(self) -> None:
        """
        Drop the loaded artifact; the next lookup reads it again
        """
        with self._lock:
            self._artifact = None
            self._reverse = {}
        LOGGER.info(f"Set mapping index reset, will reload {self.artifact_path}")

    def lookup(self, catalog_b_set_id: Union[int, str]) -> Optional[str]:
        """
        Pokemon TCG API set id for a PokeData set id
        :param catalog_b_set_id: PokeData numeric set id
        :return Set id or None if unmapped
        """
        self._load()
        try:
            return self._reverse.get(int(catalog_b_set_id))
        except (TypeError, ValueError):
            return None

    def has_mapping(self, catalog_b_set_id: Union[int, str]) -> bool:
        return self.lookup(catalog_b_set_id) is not None

    def forward_lookup(self, catalog_a_set_id: str) -> Optional[SetMapping]:
        """
        Mapping entry for a Pokemon TCG API set id
        :param catalog_a_set_id: Set id ("sv8pt5")
        :return Mapping or None if unmapped
        """
        return self._load().mappings.get(catalog_a_set_id)

    def mapped_catalog_b_ids(self) -> List[int]:
        self._load()
        return sorted(self._reverse)

    def stats(self) -> SetMappingMetadata:
        return self._load().metadata

    def list_unmapped(
        self, side: Union[CatalogSource, str]
    ) -> Union[List[UnmappedCatalogASet], List[UnmappedCatalogBSet]]:
        """
        Sets the mapping job could not pair
        :param side: "catalogA" or "catalogB"
        :return Unmapped sets of that catalog
        """
        side = CatalogSource(side)
        unmapped = self._load().unmapped
        if side is CatalogSource.CATALOG_A:
            return list(unmapped.catalog_a)
        return list(unmapped.catalog_b)
