"""Coverage resolution – fastest covering band per small area.

The resolver runs in two geometric phases and one bookkeeping phase:

A. every area's representative point is joined against all isochrones;
B. only the areas A left without any hit are retried with their full
   polygon, recovering areas whose point fell just outside coverage;
C. whatever neither phase matched is uncovered within the maximum band.

Each geometric phase reduces its long hit table in a single grouped pass:
minimum band per area, then the hits at that band, one per origin, kept
in join order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

import pandas as pd

from . import config
from .index import GeometryIndex
from .models import COVERAGE_COLUMNS, CoverageRecord, ResolutionPhase

__all__ = ["reduce_hits", "empty_coverage", "CoverageResult", "CoverageResolver"]

logger = logging.getLogger(__name__)


def empty_coverage() -> pd.DataFrame:
    return pd.DataFrame(
        {
            config.AREA_ID: pd.Series(dtype=object),
            config.BAND: pd.Series(dtype=float),
            "covering_origin_ids": pd.Series(dtype=object),
            "match_count": pd.Series(dtype="int64"),
        }
    )[COVERAGE_COLUMNS]


def reduce_hits(hits: pd.DataFrame) -> pd.DataFrame:
    """Collapse a long ``area_id, origin_id, band`` hit table to one row per area.

    Isochrones are treated as independent ranged polygons: an origin whose
    5- and 10-minute polygons both touch an area contributes only its
    5-minute band.  Rows keep the first-seen order of areas; a tie keeps the
    join order of the minimum-band rows, regardless of where slower rows of
    the same origins appear.
    """

    if hits.empty:
        return empty_coverage()

    area_min = hits.groupby(config.AREA_ID, sort=False)[config.BAND].transform("min")
    ties = (
        hits[hits[config.BAND] == area_min]
        .drop_duplicates(subset=[config.AREA_ID, config.ORIGIN_ID], keep="first")
    )

    grouped = ties.groupby(config.AREA_ID, sort=False)
    origins = grouped[config.ORIGIN_ID].agg(list)
    bands = grouped[config.BAND].first()

    return pd.DataFrame(
        {
            config.AREA_ID: origins.index.to_numpy(),
            config.BAND: bands.to_numpy(dtype=float),
            "covering_origin_ids": [tuple(o) for o in origins],
            "match_count": origins.map(len).to_numpy(dtype="int64"),
        }
    )[COVERAGE_COLUMNS]


@dataclass
class CoverageResult:
    """The three disjoint partitions of the area set."""

    point_matched: pd.DataFrame
    polygon_fallback: pd.DataFrame
    uncovered: list[str]
    area_ids: list[str] = field(default_factory=list)

    def table(self, phase: ResolutionPhase) -> pd.DataFrame:
        if phase is ResolutionPhase.POINT:
            return self.point_matched
        if phase is ResolutionPhase.POLYGON_FALLBACK:
            return self.polygon_fallback
        return pd.DataFrame({config.AREA_ID: pd.Series(self.uncovered, dtype=object)})

    def phase_area_ids(self, phase: ResolutionPhase) -> set[str]:
        return set(self.table(phase)[config.AREA_ID])

    def records(self, phase: ResolutionPhase | None = None) -> Iterator[CoverageRecord]:
        """Yield :class:`CoverageRecord` for the covered areas of *phase*
        (both geometric phases if ``None``)."""

        phases = [phase] if phase is not None else [ResolutionPhase.POINT, ResolutionPhase.POLYGON_FALLBACK]
        for ph in phases:
            if ph is ResolutionPhase.UNCOVERED:
                continue
            frame = self.table(ph)
            for area_id, band, origin_ids in zip(
                frame[config.AREA_ID], frame[config.BAND], frame["covering_origin_ids"]
            ):
                yield CoverageRecord(area_id, float(band), tuple(origin_ids))

    def summary(self) -> dict[str, int]:
        return {
            ResolutionPhase.POINT.value: len(self.point_matched),
            ResolutionPhase.POLYGON_FALLBACK.value: len(self.polygon_fallback),
            ResolutionPhase.UNCOVERED.value: len(self.uncovered),
        }


class CoverageResolver:
    """Resolve the minimum covering band of every area in *index*."""

    def __init__(self, index: GeometryIndex) -> None:
        self.index = index

    def resolve_points(self) -> pd.DataFrame:
        """Phase A: point-based coverage over all areas."""
        return reduce_hits(self.index.intersecting_isochrones_for_points())

    def resolve_polygons(self, area_ids: list[str]) -> pd.DataFrame:
        """Phase B: polygon-based coverage over *area_ids* only."""
        if not area_ids:
            return empty_coverage()
        return reduce_hits(self.index.intersecting_isochrones_for_polygons(area_ids))

    def resolve(self) -> CoverageResult:
        all_ids = self.index.area_ids

        phase_a = self.resolve_points()
        matched = set(phase_a[config.AREA_ID])
        remaining = [a for a in all_ids if a not in matched]

        phase_b = self.resolve_polygons(remaining)
        matched.update(phase_b[config.AREA_ID])
        uncovered = [a for a in all_ids if a not in matched]

        result = CoverageResult(phase_a, phase_b, uncovered, list(all_ids))
        logger.info(
            "Resolved %d areas: %d point-matched, %d polygon fallback, %d uncovered",
            len(all_ids),
            len(phase_a),
            len(phase_b),
            len(uncovered),
        )
        return result
