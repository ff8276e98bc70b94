"""Record types shared across the pipeline."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from . import config

__all__ = ["ResolutionPhase", "CoverageRecord", "RESULT_COLUMNS", "COVERAGE_COLUMNS"]


class ResolutionPhase(str, Enum):
    """How an area's response time was resolved."""

    POINT = "point-matched"
    POLYGON_FALLBACK = "polygon-fallback-matched"
    UNCOVERED = "uncovered"

    def __str__(self) -> str:
        return self.value


class CoverageRecord(NamedTuple):
    """Minimum covering band for one area and the origins tied at it."""

    area_id: str
    time_band_upper_bound: float
    covering_origin_ids: tuple[str, ...]

    @property
    def match_count(self) -> int:
        return len(self.covering_origin_ids)

    @property
    def representative_origin_id(self) -> str | None:
        return self.covering_origin_ids[0] if self.covering_origin_ids else None


# Columns of a resolved coverage table (one row per covered area)
COVERAGE_COLUMNS: list[str] = [
    config.AREA_ID,
    config.BAND,
    "covering_origin_ids",
    "match_count",
]

# Output column order
RESULT_COLUMNS: list[str] = [
    config.AREA_ID,
    "resolution_phase",
    config.BAND,
    "representative_origin_id",
    "provider_is_full_time",
    "covering_origin_ids",
    "match_count",
]
