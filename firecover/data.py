"""Data ingestion utilities.

All input tables for a coverage run are loaded through helper functions
here: fire-station metadata, precomputed isochrones and the small-area
polygons (plus, optionally, their representative points).  Having a single
module makes it simple to switch data sources without touching the
analysis logic.

The loaders only read and check columns.  Reprojection is the caller's
job; :class:`~firecover.index.GeometryIndex` rejects tables that are not
already in the target CRS.
"""

from __future__ import annotations

import warnings
from pathlib import Path

import geopandas as gpd
import pandas as pd

from . import config
from .errors import InputTableError

__all__ = [
    "load_origins",
    "load_isochrones",
    "load_area_polygons",
    "load_area_points",
    "load_optional_area_points",
]


def _locate(path: Path | str | None, default: Path) -> Path:
    path = Path(path or default)
    if not path.exists():
        alt = config.ROOT / path.name
        if alt.exists():
            warnings.warn(
                f"{path.name} found in project root; consider moving it to {config.DATA_DIR}",
                RuntimeWarning,
            )
            return alt
        raise FileNotFoundError(path)
    return path


def _check_columns(df: pd.DataFrame, required: set[str], label: str) -> None:
    missing = required.difference(df.columns)
    if missing:
        raise InputTableError(f"{label} missing columns: {sorted(missing)}")


# ---------------------------------------------------------------------------
# Tabular data loaders
# ---------------------------------------------------------------------------

def load_origins(csv_path: Path | str | None = None) -> pd.DataFrame:
    """Return DataFrame with one row per fire station.

    By default this expects ``fire_stations.csv`` in :pydata:`config.DATA_DIR`
    with columns ``origin_id`` and ``is_full_time`` (boolean or a crew label
    such as ``Wholetime`` / ``Retained``).
    """

    path = _locate(csv_path, config.STATIONS_CSV)
    df = pd.read_csv(path, dtype={config.ORIGIN_ID: str})
    _check_columns(df, {config.ORIGIN_ID, config.IS_FULL_TIME}, "Station CSV")
    return df.dropna(subset=[config.ORIGIN_ID]).reset_index(drop=True)


# ---------------------------------------------------------------------------
# Spatial data loaders
# ---------------------------------------------------------------------------

def _read_layer(path: Path, layer: str | None = None) -> gpd.GeoDataFrame:
    return gpd.read_file(path, layer=layer)


def load_isochrones(path: Path | str | None = None, *, layer: str | None = None) -> gpd.GeoDataFrame:
    """Return GeoDataFrame of isochrones (``origin_id``, ``time_band_upper_bound``, geometry)."""

    gdf = _read_layer(_locate(path, config.ISOCHRONES_FILE), layer)
    _check_columns(gdf, {config.ORIGIN_ID, config.BAND}, "Isochrone layer")
    gdf[config.ORIGIN_ID] = gdf[config.ORIGIN_ID].astype(str)
    return gdf


def load_area_polygons(path: Path | str | None = None, *, layer: str | None = None) -> gpd.GeoDataFrame:
    """Return GeoDataFrame of small-area polygons keyed by ``area_id``."""

    gdf = _read_layer(_locate(path, config.SMALL_AREAS_FILE), layer)
    _check_columns(gdf, {config.AREA_ID}, "Small-area layer")
    gdf[config.AREA_ID] = gdf[config.AREA_ID].astype(str)
    return gdf


def load_area_points(path: Path | str | None = None, *, layer: str | None = None) -> gpd.GeoDataFrame:
    """Return GeoDataFrame of small-area representative points keyed by ``area_id``."""

    gdf = _read_layer(_locate(path, config.SMALL_AREA_POINTS_FILE), layer)
    _check_columns(gdf, {config.AREA_ID}, "Small-area point layer")
    gdf[config.AREA_ID] = gdf[config.AREA_ID].astype(str)
    return gdf


def load_optional_area_points(
    path: Path | str | None = None, *, layer: str | None = None
) -> gpd.GeoDataFrame | None:
    """Like :func:`load_area_points`, but ``None`` when no layer is available.

    An explicit *path* must exist.  Without one, a missing default point
    file means the caller derives points from the polygons.
    """

    if path is None:
        default = config.SMALL_AREA_POINTS_FILE
        if not (default.exists() or (config.ROOT / default.name).exists()):
            return None
    return load_area_points(path, layer=layer)
