"""
Offline job pairing Pokemon TCG API sets with PokeData sets
"""
import datetime
import json
import logging
import os
import pathlib
import tempfile
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pydantic

from . import constants
from .bridge_config import BridgeConfig
from .bridge_models import (
    CatalogASet,
    CatalogBSet,
    MatchType,
    SetMapping,
    SetMappingArtifact,
    SetMappingMetadata,
    UnmappedCatalogASet,
    UnmappedCatalogBSet,
    UnmappedSets,
)
from .errors import ParseFailure
from .utils import (
    clean_set_name,
    days_between,
    normalize_set_name,
    shared_name_token_count,
    utc_now,
)

LOGGER = logging.getLogger(__name__)

MatchResult = Tuple[CatalogBSet, Optional[int]]


def load_manual_overrides(path: pathlib.Path) -> Dict[str, str]:
    """
    Load a {catalogASetId: catalogBCode} override table
    :param path: JSON file holding the table
    :return Override table (empty if the file does not exist)
    """
    if not path.is_file():
        LOGGER.warning(f"Manual set mapping file {path} not found, skipping")
        return {}

    try:
        with path.open(encoding="utf-8") as file:
            contents = json.load(file)
    except (OSError, ValueError) as error:
        raise ParseFailure(str(path), f"Unable to read manual set mappings: {error}") from error

    if not isinstance(contents, dict) or not all(
        isinstance(value, str) for value in contents.values()
    ):
        raise ParseFailure(str(path), "Manual set mappings must map set ids to set codes")

    return contents


def _read_json_list(path: pathlib.Path, envelope: Optional[str] = None) -> List[Any]:
    try:
        with path.open(encoding="utf-8") as file:
            contents = json.load(file)
    except (OSError, ValueError) as error:
        raise ParseFailure(str(path), f"Unable to read set catalog: {error}") from error

    if envelope and isinstance(contents, dict):
        contents = contents.get(envelope)
    if not isinstance(contents, list):
        raise ParseFailure(str(path), "Set catalog is not a list of sets")
    return contents


class SetMappingBuilder:
    """
    Pair every Pokemon TCG API (Catalog A) set with at most one English
    PokeData (Catalog B) set.

    Manual overrides are applied first, then each remaining set runs
    through the strategy cascade and the first strategy to match wins.
    """

    manual_overrides: Dict[str, str]

    def __init__(self, manual_overrides: Optional[Dict[str, str]] = None) -> None:
        self.manual_overrides = dict(manual_overrides or {})

    @classmethod
    def from_config(cls, config: BridgeConfig) -> "SetMappingBuilder":
        """
        Builder with the bundled override table, extended by the
        configured one when it points elsewhere
        :param config: Bridge configuration
        :return Builder
        """
        manual_overrides = load_manual_overrides(constants.MANUAL_SET_MAPPINGS_PATH)
        configured_path = config.manual_set_mappings_path
        if configured_path.resolve() != constants.MANUAL_SET_MAPPINGS_PATH.resolve():
            manual_overrides.update(load_manual_overrides(configured_path))
        return cls(manual_overrides)

    def build_from_files(
        self, catalog_a_path: pathlib.Path, catalog_b_path: pathlib.Path
    ) -> SetMappingArtifact:
        """
        Build the artifact from raw catalog dumps
        :param catalog_a_path: Pokemon TCG API /sets response ({"data": [...]} or a list)
        :param catalog_b_path: PokeData /sets response (a list)
        :return Artifact
        """
        raw_a = _read_json_list(catalog_a_path, envelope="data")
        raw_b = _read_json_list(catalog_b_path)
        LOGGER.info(
            f"Loaded {len(raw_a)} sets from {catalog_a_path.name} "
            f"and {len(raw_b)} sets from {catalog_b_path.name}"
        )
        return self.build(
            self._parse_sets(raw_a, CatalogASet, str(catalog_a_path)),
            self._parse_sets(raw_b, CatalogBSet, str(catalog_b_path)),
        )

    @staticmethod
    def _parse_sets(raw_sets: Iterable[Any], model: Any, source: str) -> List[Any]:
        parsed = []
        for index, raw_set in enumerate(raw_sets):
            if isinstance(raw_set, model):
                parsed.append(raw_set)
                continue
            try:
                parsed.append(model.from_api(raw_set))
            except (KeyError, TypeError, AttributeError, pydantic.ValidationError) as error:
                raise ParseFailure(source, f"Malformed set at index {index}: {error}") from error
        return parsed

    def build(
        self,
        catalog_a_sets: Sequence[Union[CatalogASet, Dict[str, Any]]],
        catalog_b_sets: Sequence[Union[CatalogBSet, Dict[str, Any]]],
        generated_at: Optional[datetime.datetime] = None,
    ) -> SetMappingArtifact:
        """
        Run the mapping over two full set catalogs
        :param catalog_a_sets: Pokemon TCG API sets (models or raw objects)
        :param catalog_b_sets: PokeData sets (models or raw objects)
        :param generated_at: Timestamp recorded in the metadata (default now)
        :return Artifact
        """
        sets_a: List[CatalogASet] = self._parse_sets(catalog_a_sets, CatalogASet, "catalogA")
        sets_b: List[CatalogBSet] = self._parse_sets(catalog_b_sets, CatalogBSet, "catalogB")
        candidates = [set_b for set_b in sets_b if set_b.is_match_candidate]

        mappings: Dict[str, SetMapping] = self._apply_manual_overrides(sets_a, candidates)

        unmapped_a: List[UnmappedCatalogASet] = []
        for set_a in sets_a:
            if set_a.id in mappings:
                continue

            match_type, result = self._run_cascade(set_a, candidates)
            if result is None:
                unmapped_a.append(
                    UnmappedCatalogASet(
                        id=set_a.id,
                        name=set_a.name,
                        cross_ref_code=set_a.cross_ref_code,
                        release_date=(
                            set_a.release_date.isoformat() if set_a.release_date else None
                        ),
                    )
                )
                continue

            set_b, date_diff = result
            mappings[set_a.id] = self._to_mapping(set_a, set_b, match_type, date_diff)

        mapped_b_ids = {mapping.catalog_b_set_id for mapping in mappings.values()}
        unmapped_b = [
            UnmappedCatalogBSet(
                id=set_b.id,
                code=set_b.code,
                name=set_b.name,
                release_date=set_b.release_date.isoformat() if set_b.release_date else None,
            )
            for set_b in candidates
            if set_b.id not in mapped_b_ids
        ]

        strategies = {match_type.value: 0 for match_type in MatchType}
        for mapping in mappings.values():
            strategies[mapping.match_type] += 1

        LOGGER.info(
            f"Mapped {len(mappings)} sets, {len(unmapped_a)} Catalog A "
            f"and {len(unmapped_b)} Catalog B sets left unmapped"
        )
        for strategy, count in strategies.items():
            LOGGER.debug(f"  {strategy}: {count}")

        return SetMappingArtifact(
            metadata=SetMappingMetadata(
                generated_at=(generated_at or utc_now()).isoformat(),
                total_mappings=len(mappings),
                unmapped_a=len(unmapped_a),
                unmapped_b=len(unmapped_b),
                mapping_strategies=strategies,
            ),
            mappings=mappings,
            unmapped=UnmappedSets(catalog_a=unmapped_a, catalog_b=unmapped_b),
        )

    def _apply_manual_overrides(
        self, sets_a: List[CatalogASet], candidates: List[CatalogBSet]
    ) -> Dict[str, SetMapping]:
        sets_a_by_id = {set_a.id: set_a for set_a in sets_a}

        mappings = {}
        for set_a_id, set_b_code in self.manual_overrides.items():
            set_a = sets_a_by_id.get(set_a_id)
            set_b = next((b for b in candidates if b.code == set_b_code), None)
            if not set_a or not set_b:
                LOGGER.warning(
                    f"Manual set mapping {set_a_id} => {set_b_code} not applied "
                    f"(Catalog A found: {bool(set_a)}, Catalog B found: {bool(set_b)})"
                )
                continue

            mappings[set_a_id] = self._to_mapping(set_a, set_b, MatchType.MANUAL)
        return mappings

    def _run_cascade(
        self, set_a: CatalogASet, candidates: List[CatalogBSet]
    ) -> Tuple[Optional[MatchType], Optional[MatchResult]]:
        for match_type, strategy in (
            (MatchType.CROSSREF_CODE, self.match_crossref_code),
            (MatchType.EXACT_NAME, self.match_exact_name),
            (MatchType.NAME_DATE_SIMILARITY, self.match_name_date_similarity),
            (MatchType.CLEANED_NAME, self.match_cleaned_name),
        ):
            result = strategy(set_a, candidates)
            if result is not None:
                LOGGER.debug(f"{set_a.id} matched {result[0].id} by {match_type.value}")
                return match_type, result
        return None, None

    @staticmethod
    def _to_mapping(
        set_a: CatalogASet,
        set_b: CatalogBSet,
        match_type: MatchType,
        date_diff: Optional[int] = None,
    ) -> SetMapping:
        return SetMapping(
            catalog_a_set_id=set_a.id,
            catalog_b_set_id=set_b.id,
            catalog_b_code=set_b.code,
            match_type=match_type,
            date_diff_days=date_diff,
            catalog_a_name=set_a.name,
            catalog_b_name=set_b.name,
        )

    # Strategies, in cascade order
    @staticmethod
    def match_crossref_code(
        set_a: CatalogASet, candidates: List[CatalogBSet]
    ) -> Optional[MatchResult]:
        if not set_a.cross_ref_code:
            return None
        for set_b in candidates:
            if set_b.code == set_a.cross_ref_code:
                return set_b, None
        return None

    @staticmethod
    def match_exact_name(
        set_a: CatalogASet, candidates: List[CatalogBSet]
    ) -> Optional[MatchResult]:
        name_a = normalize_set_name(set_a.name)
        for set_b in candidates:
            if normalize_set_name(set_b.name) == name_a:
                return set_b, None
        return None

    @staticmethod
    def match_name_date_similarity(
        set_a: CatalogASet, candidates: List[CatalogBSet]
    ) -> Optional[MatchResult]:
        """
        Similar name (one contains the other, or enough shared words)
        and the closest release date within MAX_RELEASE_DATE_DELTA_DAYS.
        Ties go to the earliest candidate.
        """
        if set_a.release_date is None:
            return None

        name_a = normalize_set_name(set_a.name)

        best_match: Optional[MatchResult] = None
        for set_b in candidates:
            name_b = normalize_set_name(set_b.name)
            # Words of A are matched as substrings of B's whole name, not word for word
            similar = (
                name_b in name_a
                or name_a in name_b
                or shared_name_token_count(name_a, name_b) >= constants.MIN_SHARED_NAME_TOKENS
            )
            if not similar:
                continue

            date_diff = days_between(set_a.release_date, set_b.release_date)
            if date_diff is None or date_diff > constants.MAX_RELEASE_DATE_DELTA_DAYS:
                continue
            if best_match is None or date_diff < best_match[1]:
                best_match = (set_b, date_diff)

        return best_match

    @staticmethod
    def match_cleaned_name(
        set_a: CatalogASet, candidates: List[CatalogBSet]
    ) -> Optional[MatchResult]:
        name_a = clean_set_name(set_a.name)
        for set_b in candidates:
            if clean_set_name(set_b.name) == name_a:
                return set_b, None
        return None


def write_artifact(
    artifact: SetMappingArtifact, path: pathlib.Path, pretty_print: bool = True
) -> None:
    """
    Dump the artifact to disk with sorted keys.
    Written to a sibling temp file first, so a failed write leaves
    the previous artifact in place.
    :param artifact: Artifact to write
    :param path: Destination
    :param pretty_print: Pretty or minimal
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    file_descriptor, temp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    try:
        with os.fdopen(file_descriptor, "w", encoding="utf-8") as file:
            json.dump(
                artifact.to_json(),
                file,
                indent=(4 if pretty_print else None),
                sort_keys=True,
                ensure_ascii=False,
            )
        os.replace(temp_name, path)
    except BaseException:
        pathlib.Path(temp_name).unlink(missing_ok=True)
        raise

    LOGGER.info(f"Wrote {artifact.metadata.total_mappings} set mappings to {path}")
