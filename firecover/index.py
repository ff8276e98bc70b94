"""Spatial index over isochrones and small areas.

`GeometryIndex` validates the three geometry tables once (shared CRS,
geometry types, polygon validity, area identity) and answers the two
intersection queries the resolver needs: which isochrones touch each
area's representative point, and which touch each area's full polygon.
Both are inclusive ``intersects`` joins, so a point lying exactly on an
isochrone boundary counts as covered.

Join order is deterministic: rows come out in area-table order and, within
one area, in isochrone-table order.  The resolver relies on this to keep
tied origins in a stable order.
"""

from __future__ import annotations

import logging
from typing import Iterable

import geopandas as gpd
import numpy as np
import pandas as pd

from . import config
from .errors import GeometryError, InputTableError

__all__ = ["GeometryIndex", "empty_hits"]

logger = logging.getLogger(__name__)

_POLYGON_TYPES = ("Polygon", "MultiPolygon")
_POINT_TYPES = ("Point",)

_AREA_POS = "_area_pos"
_ISO_POS = "_iso_pos"


def empty_hits() -> pd.DataFrame:
    """Return an empty long-format hit table with the standard columns."""
    return pd.DataFrame(
        {
            config.AREA_ID: pd.Series(dtype=object),
            config.ORIGIN_ID: pd.Series(dtype=object),
            config.BAND: pd.Series(dtype=float),
        }
    )


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _require_columns(df: pd.DataFrame, required: set[str], label: str) -> None:
    missing = required.difference(df.columns)
    if missing:
        raise InputTableError(f"{label} table missing columns: {sorted(missing)}")


def _check_crs(frames: dict[str, gpd.GeoDataFrame], target: str) -> None:
    for label, gdf in frames.items():
        if gdf.crs is None:
            raise GeometryError(f"{label} table has no coordinate reference system")
    for label, gdf in frames.items():
        if gdf.crs != target:
            found = {name: str(g.crs.to_string()) for name, g in frames.items()}
            raise GeometryError(
                f"{label} table is not in the target CRS {target!r}; found {found}"
            )


def _check_geometries(
    gdf: gpd.GeoDataFrame,
    allowed: tuple[str, ...],
    label: str,
    *,
    validate: bool = False,
) -> None:
    geoms = gdf.geometry
    if geoms.isna().any():
        raise GeometryError(f"{label} table has {int(geoms.isna().sum())} null geometries")
    empty = geoms.is_empty
    if empty.any():
        raise GeometryError(f"{label} table has {int(empty.sum())} empty geometries")
    wrong = ~geoms.geom_type.isin(allowed)
    if wrong.any():
        kinds = sorted(set(geoms.geom_type[wrong]))
        raise GeometryError(f"{label} table expects {allowed}, found {kinds}")
    if validate:
        invalid = ~geoms.is_valid
        if invalid.any():
            raise GeometryError(
                f"{label} table has {int(invalid.sum())} invalid (e.g. self-intersecting) polygons"
            )


def _check_unique_ids(ids: pd.Series, label: str) -> None:
    dupes = ids[ids.duplicated()]
    if not dupes.empty:
        sample = list(dupes.unique()[:5])
        raise InputTableError(f"{label} table has duplicate {config.AREA_ID}s, e.g. {sample}")


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

class GeometryIndex:
    """Validated, read-only view over isochrones and small-area geometries.

    Parameters
    ----------
    isochrones : GeoDataFrame
        Columns ``origin_id``, ``time_band_upper_bound`` and polygon geometry.
    area_points : GeoDataFrame
        Columns ``area_id`` and point geometry (one representative point per area).
    area_polygons : GeoDataFrame
        Columns ``area_id`` and polygon geometry, same ``area_id`` domain.
    cfg : CoverageConfig, optional
        Target CRS and time bands; defaults to the package configuration.
    """

    def __init__(
        self,
        isochrones: gpd.GeoDataFrame,
        area_points: gpd.GeoDataFrame,
        area_polygons: gpd.GeoDataFrame,
        *,
        cfg: config.CoverageConfig | None = None,
    ) -> None:
        self.cfg = cfg or config.CoverageConfig()

        _require_columns(isochrones, {config.ORIGIN_ID, config.BAND}, "isochrone")
        _require_columns(area_points, {config.AREA_ID}, "area point")
        _require_columns(area_polygons, {config.AREA_ID}, "area polygon")

        _check_crs(
            {"isochrone": isochrones, "area point": area_points, "area polygon": area_polygons},
            self.cfg.crs,
        )
        _check_geometries(isochrones, _POLYGON_TYPES, "isochrone", validate=True)
        _check_geometries(area_points, _POINT_TYPES, "area point")
        _check_geometries(area_polygons, _POLYGON_TYPES, "area polygon", validate=True)

        self._isochrones = self._prepare_isochrones(isochrones)
        self._points, self._polygons = self._prepare_areas(area_points, area_polygons)

        logger.info(
            "Indexed %d isochrones from %d origins and %d areas",
            len(self._isochrones),
            self._isochrones[config.ORIGIN_ID].nunique(),
            len(self._points),
        )

    @classmethod
    def from_polygons(
        cls,
        isochrones: gpd.GeoDataFrame,
        area_polygons: gpd.GeoDataFrame,
        *,
        cfg: config.CoverageConfig | None = None,
    ) -> "GeometryIndex":
        """Build the index deriving each area's point via point-on-surface."""

        _require_columns(area_polygons, {config.AREA_ID}, "area polygon")
        points = gpd.GeoDataFrame(
            {config.AREA_ID: area_polygons[config.AREA_ID].to_numpy()},
            geometry=area_polygons.geometry.representative_point().to_numpy(),
            crs=area_polygons.crs,
        )
        return cls(isochrones, points, area_polygons, cfg=cfg)

    # ------------------------------------------------------------------
    # Preparation
    # ------------------------------------------------------------------

    def _prepare_isochrones(self, isochrones: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        try:
            bands = pd.to_numeric(isochrones[config.BAND], errors="raise").astype(float)
        except (TypeError, ValueError) as exc:
            raise InputTableError(f"Non-numeric {config.BAND} values: {exc}") from exc

        missing = bands.isna()
        if missing.any():
            raise InputTableError(f"{int(missing.sum())} isochrones have no {config.BAND}")

        keep = (bands <= self.cfg.max_band).to_numpy()
        if not keep.all():
            logger.warning(
                "Dropping %d isochrones beyond the maximum band of %s minutes",
                int((~keep).sum()),
                self.cfg.max_band,
            )

        unknown = ~np.isin(bands.to_numpy(), np.asarray(self.cfg.time_bands, dtype=float))
        unknown &= keep
        if unknown.any():
            found = sorted(set(bands[unknown]))
            raise InputTableError(
                f"Isochrone bands {found} are not among the configured bands {list(self.cfg.time_bands)}"
            )

        iso = gpd.GeoDataFrame(
            {
                config.ORIGIN_ID: isochrones[config.ORIGIN_ID].astype(str).to_numpy(),
                config.BAND: bands.to_numpy(),
                _ISO_POS: np.arange(len(isochrones)),
            },
            geometry=isochrones.geometry.to_numpy(),
            crs=isochrones.crs,
        )
        return iso.loc[keep].reset_index(drop=True)

    @staticmethod
    def _prepare_areas(
        area_points: gpd.GeoDataFrame, area_polygons: gpd.GeoDataFrame
    ) -> tuple[gpd.GeoDataFrame, gpd.GeoDataFrame]:
        point_ids = area_points[config.AREA_ID].astype(str).reset_index(drop=True)
        poly_ids = area_polygons[config.AREA_ID].astype(str).reset_index(drop=True)
        _check_unique_ids(point_ids, "area point")
        _check_unique_ids(poly_ids, "area polygon")

        only_points = set(point_ids).difference(poly_ids)
        only_polys = set(poly_ids).difference(point_ids)
        if only_points or only_polys:
            raise InputTableError(
                f"Area point and polygon tables disagree: {len(only_points)} ids without polygon, "
                f"{len(only_polys)} ids without point"
            )

        points = gpd.GeoDataFrame(
            {config.AREA_ID: point_ids.to_numpy(), _AREA_POS: np.arange(len(point_ids))},
            geometry=area_points.geometry.to_numpy(),
            crs=area_points.crs,
        )
        # polygons follow the point table order so both joins share one area order
        position = pd.Series(np.arange(len(point_ids)), index=point_ids.to_numpy())
        polygons = gpd.GeoDataFrame(
            {config.AREA_ID: poly_ids.to_numpy(), _AREA_POS: position.loc[poly_ids].to_numpy()},
            geometry=area_polygons.geometry.to_numpy(),
            crs=area_polygons.crs,
        )
        polygons = polygons.sort_values(_AREA_POS).reset_index(drop=True)
        return points, polygons

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def area_ids(self) -> list[str]:
        """All area ids in table order."""
        return self._points[config.AREA_ID].tolist()

    @property
    def isochrones(self) -> gpd.GeoDataFrame:
        return self._isochrones.drop(columns=[_ISO_POS])

    def intersecting_isochrones_for_points(self, area_ids: Iterable[str] | None = None) -> pd.DataFrame:
        """Return ``area_id, origin_id, time_band_upper_bound`` for every
        isochrone touching an area's representative point."""
        return self._join(self._points, area_ids, "point")

    def intersecting_isochrones_for_polygons(self, area_ids: Iterable[str] | None = None) -> pd.DataFrame:
        """Return ``area_id, origin_id, time_band_upper_bound`` for every
        isochrone sharing boundary or interior with an area's polygon."""
        return self._join(self._polygons, area_ids, "polygon")

    def _join(self, areas: gpd.GeoDataFrame, area_ids: Iterable[str] | None, label: str) -> pd.DataFrame:
        if area_ids is not None:
            wanted = pd.Index([str(a) for a in area_ids])
            unknown = wanted.difference(areas[config.AREA_ID])
            if len(unknown):
                raise InputTableError(f"Unknown area ids requested: {list(unknown[:5])}")
            areas = areas[areas[config.AREA_ID].isin(wanted)]

        if areas.empty or self._isochrones.empty:
            return empty_hits()

        joined = gpd.sjoin(areas, self._isochrones, how="inner", predicate="intersects")
        joined = joined.sort_values([_AREA_POS, _ISO_POS], kind="stable")
        hits = pd.DataFrame(joined[[config.AREA_ID, config.ORIGIN_ID, config.BAND]]).reset_index(drop=True)

        logger.debug("%s join: %d areas queried, %d hits", label, len(areas), len(hits))
        return hits
