import geopandas as gpd
import pytest
from shapely.geometry import LineString, Point, Polygon, box

from firecover import config
from firecover.errors import GeometryError, InputTableError
from firecover.index import GeometryIndex

from conftest import area_frames, iso_frame


def _index(isochrones, area_tables, **kwargs):
    points, polygons = area_tables
    return GeometryIndex(isochrones, points, polygons, **kwargs)


def test_point_join_is_inclusive_of_boundaries(isochrones, area_tables) -> None:
    hits = _index(isochrones, area_tables).intersecting_isochrones_for_points(["B"])

    bands = sorted(hits[config.BAND])
    assert bands == [5.0, 10.0]
    assert set(hits[config.ORIGIN_ID]) == {"S1"}


def test_point_join_misses_area_whose_point_lies_outside(isochrones, area_tables) -> None:
    hits = _index(isochrones, area_tables).intersecting_isochrones_for_points()

    assert "Y" not in set(hits[config.AREA_ID])
    assert "Z" not in set(hits[config.AREA_ID])


def test_polygon_join_finds_partial_overlap(isochrones, area_tables) -> None:
    hits = _index(isochrones, area_tables).intersecting_isochrones_for_polygons(["Y", "Z"])

    assert hits[config.AREA_ID].tolist() == ["Y"]
    assert hits[config.ORIGIN_ID].tolist() == ["S3"]
    assert hits[config.BAND].tolist() == [10.0]


def test_join_order_follows_area_then_isochrone_table(isochrones, area_tables) -> None:
    hits = _index(isochrones, area_tables).intersecting_isochrones_for_points()

    w_rows = hits[hits[config.AREA_ID] == "W"]
    assert w_rows[config.ORIGIN_ID].tolist() == ["S2", "S4", "S4"]
    assert hits[config.AREA_ID].drop_duplicates().tolist() == ["X", "W", "V", "B"]


def test_unknown_area_ids_are_rejected(isochrones, area_tables) -> None:
    index = _index(isochrones, area_tables)

    with pytest.raises(InputTableError):
        index.intersecting_isochrones_for_polygons(["NOPE"])


def test_empty_area_subset_returns_empty_hits(isochrones, area_tables) -> None:
    hits = _index(isochrones, area_tables).intersecting_isochrones_for_polygons([])

    assert hits.empty
    assert list(hits.columns) == [config.AREA_ID, config.ORIGIN_ID, config.BAND]


def test_mismatched_crs_raises_geometry_error(isochrones, areas) -> None:
    points, polygons = area_frames(areas, crs="EPSG:3857")

    with pytest.raises(GeometryError):
        GeometryIndex(isochrones, points, polygons)


def test_undefined_crs_raises_geometry_error(isochrones, area_tables) -> None:
    points, polygons = area_tables
    bare = gpd.GeoDataFrame(
        {config.AREA_ID: polygons[config.AREA_ID].tolist()},
        geometry=list(polygons.geometry),
    )

    with pytest.raises(GeometryError, match="no coordinate reference system"):
        GeometryIndex(isochrones, points, bare)


def test_tables_must_match_target_crs(isochrones, area_tables) -> None:
    cfg = config.CoverageConfig(crs="EPSG:3035")

    with pytest.raises(GeometryError):
        _index(isochrones, area_tables, cfg=cfg)


def test_self_intersecting_isochrone_is_rejected(area_tables) -> None:
    bowtie = Polygon([(0, 0), (10, 10), (10, 0), (0, 10), (0, 0)])
    bad = iso_frame([("S1", 5, bowtie)])

    with pytest.raises(GeometryError, match="invalid"):
        _index(bad, area_tables)


def test_wrong_geometry_type_is_rejected(isochrones, areas) -> None:
    areas["X"] = (areas["X"][0], LineString([(0, 0), (1, 1)]))
    points, polygons = area_frames(areas)

    with pytest.raises(GeometryError):
        GeometryIndex(isochrones, points, polygons)


def test_duplicate_area_ids_are_rejected(isochrones) -> None:
    points, polygons = area_frames({"A": (box(0, 0, 1, 1), Point(0.5, 0.5))})
    polygons = polygons.iloc[[0, 0]].reset_index(drop=True)
    points = points.iloc[[0, 0]].reset_index(drop=True)

    with pytest.raises(InputTableError, match="duplicate"):
        GeometryIndex(isochrones, points, polygons)


def test_point_and_polygon_domains_must_agree(isochrones, areas) -> None:
    points, polygons = area_frames(areas)
    polygons = polygons[polygons[config.AREA_ID] != "Z"]

    with pytest.raises(InputTableError, match="disagree"):
        GeometryIndex(isochrones, points, polygons)


def test_unconfigured_band_is_rejected(area_tables) -> None:
    odd = iso_frame([("S1", 7, box(-10, -10, 10, 10))])

    with pytest.raises(InputTableError, match="not among the configured bands"):
        _index(odd, area_tables)


def test_missing_band_is_rejected(area_tables, caplog) -> None:
    iso = iso_frame(
        [
            ("S1", float("nan"), box(-10, -10, 10, 10)),
            ("S1", 5, box(-100, -100, 100, 100)),
        ]
    )

    with caplog.at_level("WARNING"), pytest.raises(InputTableError, match="have no"):
        _index(iso, area_tables)
    assert "beyond the maximum band" not in caplog.text


def test_bands_beyond_maximum_are_dropped(area_tables) -> None:
    iso = iso_frame(
        [
            ("S1", 45, box(-10_000, -10_000, 10_000, 10_000)),
            ("S1", 5, box(-100, -100, 100, 100)),
        ]
    )

    index = _index(iso, area_tables)

    assert index.isochrones[config.BAND].tolist() == [5.0]
    hits = index.intersecting_isochrones_for_points()
    assert "Z" not in set(hits[config.AREA_ID])


def test_from_polygons_uses_point_on_surface(isochrones, areas) -> None:
    # an L-shaped area whose centroid falls outside the polygon
    ell = Polygon([(0, 0), (60, 0), (60, 10), (10, 10), (10, 60), (0, 60)])
    areas["X"] = (ell, Point(5, 5))
    _, polygons = area_frames(areas)

    index = GeometryIndex.from_polygons(isochrones, polygons)

    assert index.area_ids == polygons[config.AREA_ID].tolist()
    hits = index.intersecting_isochrones_for_points(["X"])
    assert (hits[config.BAND] == 5.0).any()
    assert not ell.contains(ell.centroid)
