"""Isochrone import helpers.

Isochrones are produced elsewhere (a routing engine such as
OpenRouteService).  This module converts the two shapes in which they
usually arrive into the long isochrone table the index expects:

* per-band polygon lists aligned with the station table, as cached in
  ``poly{minutes}{suffix}.pkl`` files;
* raw OpenRouteService isochrone FeatureCollections.
"""

from __future__ import annotations

import logging
import pickle
from pathlib import Path
from typing import Any, Mapping, Sequence

import geopandas as gpd
import pandas as pd
from shapely.geometry import MultiPolygon, Polygon, shape

from . import config

__all__ = [
    "isochrones_from_band_polygons",
    "isochrones_from_ors",
    "load_cached_bands",
    "cache_band",
]

logger = logging.getLogger(__name__)

Geometry = Polygon | MultiPolygon

# ----------------------------------------------------------------------------
# Cache utilities
# ----------------------------------------------------------------------------

_PICKLE_TEMPLATE = "poly{minutes}{suffix}.pkl"


def _cache_path(minutes: float, suffix: str = "", cache_dir: Path | None = None) -> Path:
    return Path(cache_dir or config.DATA_DIR) / _PICKLE_TEMPLATE.format(minutes=minutes, suffix=suffix)


def cache_band(
    minutes: float,
    polygons: Sequence[Geometry],
    *,
    suffix: str = "",
    cache_dir: Path | None = None,
) -> Path:
    """Persist *polygons* for one band under the standard naming convention."""

    p = _cache_path(minutes, suffix, cache_dir)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "wb") as fh:
        pickle.dump(list(polygons), fh, protocol=pickle.HIGHEST_PROTOCOL)
    return p


def load_cached_bands(
    time_bands: Sequence[float] | None = None,
    *,
    suffix: str = "",
    cache_dir: Path | None = None,
) -> dict[float, list[Geometry]]:
    """Load cached polygon lists for every band.  Raises *FileNotFoundError* if one is absent."""

    bands: dict[float, list[Geometry]] = {}
    for minutes in time_bands or config.TIME_BANDS:
        with open(_cache_path(minutes, suffix, cache_dir), "rb") as fh:
            bands[minutes] = pickle.load(fh)
    return bands


# ----------------------------------------------------------------------------
# Conversions
# ----------------------------------------------------------------------------

def isochrones_from_band_polygons(
    origins: pd.DataFrame,
    polys_by_band: Mapping[float, Sequence[Geometry | None]],
    *,
    crs: str = config.CRS,
) -> gpd.GeoDataFrame:
    """Return a long isochrone table from per-band polygon lists.

    Each list in *polys_by_band* must be aligned with the rows of *origins*
    (the i-th polygon belongs to the i-th station).  Empty polygons, the
    placeholder for a failed routing request, are skipped.
    """

    ids = origins[config.ORIGIN_ID].astype(str).tolist()
    rows: list[dict[str, Any]] = []
    skipped = 0
    for minutes, polys in polys_by_band.items():
        if len(polys) != len(ids):
            raise ValueError(
                f"Band {minutes}: {len(polys)} polygons for {len(ids)} origins"
            )
        for origin_id, poly in zip(ids, polys):
            if poly is None or poly.is_empty:
                skipped += 1
                continue
            rows.append({config.ORIGIN_ID: origin_id, config.BAND: float(minutes), "geometry": poly})

    if skipped:
        logger.warning("Skipped %d empty isochrone polygons", skipped)

    return gpd.GeoDataFrame(
        pd.DataFrame(rows, columns=[config.ORIGIN_ID, config.BAND, "geometry"]),
        geometry="geometry",
        crs=crs,
    )


def isochrones_from_ors(
    origin_id: str,
    response: Mapping[str, Any],
    *,
    crs: str = "EPSG:4326",
) -> gpd.GeoDataFrame:
    """Convert an OpenRouteService isochrone response to isochrone records.

    Feature ``value`` properties are seconds and become minute bands.  ORS
    answers in WGS84; reproject the result before indexing.
    """

    if "features" not in response:
        raise ValueError("No 'features' in ORS response")

    rows: list[dict[str, Any]] = []
    for feat in response["features"]:
        geom = feat.get("geometry")
        if not geom or geom.get("type") not in ("Polygon", "MultiPolygon"):
            continue
        seconds = feat.get("properties", {}).get("value")
        if seconds is None:
            raise ValueError(f"ORS feature for {origin_id} has no 'value' property")
        rows.append(
            {
                config.ORIGIN_ID: str(origin_id),
                config.BAND: float(seconds) / 60.0,
                "geometry": shape(geom),
            }
        )

    return gpd.GeoDataFrame(
        pd.DataFrame(rows, columns=[config.ORIGIN_ID, config.BAND, "geometry"]),
        geometry="geometry",
        crs=crs,
    )
