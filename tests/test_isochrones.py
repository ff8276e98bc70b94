import pandas as pd
import pytest
from shapely.geometry import Polygon, box

from firecover import config
from firecover.isochrones import (
    cache_band,
    isochrones_from_band_polygons,
    isochrones_from_ors,
    load_cached_bands,
)


@pytest.fixture
def stations() -> pd.DataFrame:
    return pd.DataFrame({config.ORIGIN_ID: ["S1", "S2"]})


def test_band_polygons_become_long_records(stations) -> None:
    polys = {
        5: [box(0, 0, 1, 1), Polygon()],
        10: [box(0, 0, 2, 2), box(5, 5, 6, 6)],
    }

    gdf = isochrones_from_band_polygons(stations, polys, crs="EPSG:2157")

    assert gdf.crs == "EPSG:2157"
    assert list(zip(gdf[config.ORIGIN_ID], gdf[config.BAND])) == [
        ("S1", 5.0),
        ("S1", 10.0),
        ("S2", 10.0),
    ]


def test_misaligned_band_list_is_rejected(stations) -> None:
    with pytest.raises(ValueError, match="2 origins"):
        isochrones_from_band_polygons(stations, {5: [box(0, 0, 1, 1)]})


def test_cached_bands_round_trip_through_pickles(tmp_path) -> None:
    cache_band(3, [box(0, 0, 1, 1)], suffix="_test", cache_dir=tmp_path)
    cache_band(5, [box(0, 0, 2, 2)], suffix="_test", cache_dir=tmp_path)

    bands = load_cached_bands([3, 5], suffix="_test", cache_dir=tmp_path)

    assert (tmp_path / "poly3_test.pkl").exists()
    assert bands[5][0].equals(box(0, 0, 2, 2))
    with pytest.raises(FileNotFoundError):
        load_cached_bands([3, 8], suffix="_test", cache_dir=tmp_path)


def test_ors_response_is_converted_to_minute_bands() -> None:
    response = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"group_index": 0, "value": 300.0},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[-6.3, 53.3], [-6.2, 53.3], [-6.2, 53.4], [-6.3, 53.3]]],
                },
            },
            {
                "type": "Feature",
                "properties": {"group_index": 0, "value": 600.0},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[-6.4, 53.2], [-6.1, 53.2], [-6.1, 53.5], [-6.4, 53.2]]],
                },
            },
        ],
    }

    gdf = isochrones_from_ors("DUB01", response)

    assert gdf.crs == "EPSG:4326"
    assert gdf[config.ORIGIN_ID].tolist() == ["DUB01", "DUB01"]
    assert gdf[config.BAND].tolist() == [5.0, 10.0]


def test_ors_response_without_features_is_rejected() -> None:
    with pytest.raises(ValueError, match="features"):
        isochrones_from_ors("DUB01", {"error": "rate limited"})
