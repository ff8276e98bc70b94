"""Population helpers.

Wrapper utilities around *rasterio* for masking a gridded population
raster with small-area polygons.  Used when the small-area table has no
census population column of its own.
"""

from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
import rasterio
import rasterio.mask
from rasterio.io import DatasetReader  # for typing
from shapely.geometry import MultiPolygon, Polygon, mapping

from . import config

__all__ = ["population_within", "area_population"]

Geometry = Polygon | MultiPolygon


def _masked_sum(src: DatasetReader, geom: Geometry) -> float:
    """Return the summed raster value (band 1) inside *geom*."""

    out_image, _ = rasterio.mask.mask(src, [mapping(geom)], crop=True, filled=True, nodata=0)
    arr = out_image[0].astype("float64")
    if src.nodata is not None:
        arr[arr == src.nodata] = 0
    arr[~np.isfinite(arr)] = 0
    arr[arr < 0] = 0
    return float(arr.sum())


def population_within(geom: Geometry, raster_path: Path | str | None = None) -> int:
    """Return integer population *within* the given geometry (raster CRS)."""

    if geom is None or geom.is_empty:
        return 0
    raster_path = Path(raster_path or config.POP_RASTER)
    with rasterio.open(raster_path) as src:
        return int(round(_masked_sum(src, geom)))


def area_population(
    areas: gpd.GeoDataFrame,
    raster_path: Path | str | None = None,
) -> pd.Series:
    """Return population per area, indexed by ``area_id``.

    Polygons are reprojected to the raster CRS on the fly; the caller's
    frame is not modified.  Areas outside the raster extent get 0.
    """

    raster_path = Path(raster_path or config.POP_RASTER)
    values: list[int] = []
    with rasterio.open(raster_path) as src:
        geoms = areas.geometry
        if src.crs is not None and areas.crs is not None and areas.crs != src.crs:
            geoms = geoms.to_crs(src.crs)
        for geom in geoms:
            if geom is None or geom.is_empty:
                values.append(0)
                continue
            try:
                values.append(int(round(_masked_sum(src, geom))))
            except ValueError:
                # rasterio raises ValueError when the shape does not overlap the raster
                values.append(0)

    return pd.Series(values, index=areas[config.AREA_ID].astype(str).to_numpy(), name="population")
