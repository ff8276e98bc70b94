import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import Point, box

from firecover import config

CRS = "EPSG:2157"


def iso_frame(rows, crs=CRS) -> gpd.GeoDataFrame:
    """rows: (origin_id, band, polygon)"""
    df = pd.DataFrame(rows, columns=[config.ORIGIN_ID, config.BAND, "geometry"])
    return gpd.GeoDataFrame(df, geometry="geometry", crs=crs)


def area_frames(areas, crs=CRS) -> tuple[gpd.GeoDataFrame, gpd.GeoDataFrame]:
    """areas: {area_id: (polygon, point)} -> (points, polygons)"""
    ids = list(areas)
    points = gpd.GeoDataFrame(
        {config.AREA_ID: ids}, geometry=[areas[a][1] for a in ids], crs=crs
    )
    polygons = gpd.GeoDataFrame(
        {config.AREA_ID: ids}, geometry=[areas[a][0] for a in ids], crs=crs
    )
    return points, polygons


@pytest.fixture
def origins() -> pd.DataFrame:
    return pd.DataFrame(
        {
            config.ORIGIN_ID: ["S1", "S2", "S3", "S4"],
            config.IS_FULL_TIME: [True, "Wholetime", "Retained", False],
        }
    )


@pytest.fixture
def isochrones() -> gpd.GeoDataFrame:
    return iso_frame(
        [
            ("S1", 5, box(-100, -100, 100, 100)),
            ("S1", 10, box(-200, -200, 200, 200)),
            ("S3", 10, box(250, -50, 305, 50)),
            ("S2", 8, box(900, -100, 1100, 100)),
            ("S4", 8, box(1000, 0, 1200, 200)),
            ("S4", 12, box(800, -300, 1300, 300)),
            ("GHOST", 3, box(1990, -10, 2020, 20)),
        ]
    )


@pytest.fixture
def areas() -> dict:
    return {
        # point and polygon inside S1's 5-minute band
        "X": (box(0, 0, 10, 10), Point(5, 5)),
        # point outside S3's 10-minute band, polygon overlaps it
        "Y": (box(300, 0, 320, 20), Point(315, 10)),
        # nothing near
        "Z": (box(5000, 5000, 5010, 5010), Point(5005, 5005)),
        # point inside both 8-minute bands of S2 and S4
        "W": (box(1000, 0, 1010, 10), Point(1005, 5)),
        # covered only by an origin without metadata
        "V": (box(2000, 0, 2010, 10), Point(2005, 5)),
        # point exactly on the edge of S1's 5-minute band
        "B": (box(95, 0, 105, 10), Point(100, 5)),
    }


@pytest.fixture
def area_tables(areas):
    return area_frames(areas)
