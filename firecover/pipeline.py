"""End-to-end coverage run.

``compute_response_times`` wires the stages together on in-memory tables:

    GeometryIndex -> CoverageResolver -> ProviderAttributor -> assemble

``run_from_files`` adds loading and writing around it for batch use.
"""

from __future__ import annotations

import logging
from pathlib import Path

import geopandas as gpd
import pandas as pd

from . import config, data
from .assemble import assemble, write_result_table
from .coverage import CoverageResolver, CoverageResult
from .index import GeometryIndex
from .providers import ProviderAttributor

__all__ = ["attach_providers", "compute_response_times", "run_from_files"]

logger = logging.getLogger(__name__)


def attach_providers(coverage: pd.DataFrame, attributor: ProviderAttributor) -> pd.DataFrame:
    """Return *coverage* with the representative origin and crew type appended."""

    providers = attributor.attribute(coverage)
    out = coverage.reset_index(drop=True).copy()
    out["representative_origin_id"] = pd.Series(
        providers["representative_origin_id"].to_numpy(dtype=object), index=out.index, dtype=object
    )
    out["provider_is_full_time"] = providers["provider_is_full_time"].array
    return out


def compute_response_times(
    origins: pd.DataFrame,
    isochrones: gpd.GeoDataFrame,
    area_polygons: gpd.GeoDataFrame,
    area_points: gpd.GeoDataFrame | None = None,
    *,
    cfg: config.CoverageConfig | None = None,
) -> pd.DataFrame:
    """Return one result row per small area.

    When *area_points* is omitted each area's point-on-surface is used.
    """

    cfg = cfg or config.CoverageConfig()
    if area_points is None:
        index = GeometryIndex.from_polygons(isochrones, area_polygons, cfg=cfg)
    else:
        index = GeometryIndex(isochrones, area_points, area_polygons, cfg=cfg)

    result: CoverageResult = CoverageResolver(index).resolve()
    attributor = ProviderAttributor(origins)

    return assemble(
        attach_providers(result.point_matched, attributor),
        attach_providers(result.polygon_fallback, attributor),
        result.uncovered,
        area_ids=result.area_ids,
    )


def run_from_files(
    *,
    stations: Path | str | None = None,
    isochrones: Path | str | None = None,
    areas: Path | str | None = None,
    points: Path | str | None = None,
    output: Path | str | None = None,
    cfg: config.CoverageConfig | None = None,
) -> tuple[pd.DataFrame, Path]:
    """Load inputs, compute the result table and write it as CSV.

    Paths default to the locations in :mod:`firecover.config`.  The point
    layer is optional; pass ``points=None`` and keep no point file in the
    data directory to derive points from the polygons.
    """

    cfg = cfg or config.CoverageConfig()
    origins_df = data.load_origins(stations)
    iso_gdf = data.load_isochrones(isochrones)
    area_gdf = data.load_area_polygons(areas)

    point_gdf = data.load_optional_area_points(points)
    if point_gdf is None:
        logger.info("No area point layer; deriving points on surface from polygons")

    result = compute_response_times(origins_df, iso_gdf, area_gdf, point_gdf, cfg=cfg)
    path = write_result_table(result, output, tie_delimiter=cfg.tie_delimiter)
    return result, path
