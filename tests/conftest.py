"""Shared fixtures: a 2x2 grid of boroughs in British National Grid."""

import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

ORIGIN_X = 525000
ORIGIN_Y = 175000
SIZE = 5000


def grid_polygons() -> gpd.GeoDataFrame:
    cells = {
        "Camden": box(ORIGIN_X, ORIGIN_Y + SIZE, ORIGIN_X + SIZE, ORIGIN_Y + 2 * SIZE),
        "Hackney": box(ORIGIN_X + SIZE, ORIGIN_Y + SIZE, ORIGIN_X + 2 * SIZE, ORIGIN_Y + 2 * SIZE),
        "Lambeth": box(ORIGIN_X, ORIGIN_Y, ORIGIN_X + SIZE, ORIGIN_Y + SIZE),
        "Lewisham": box(ORIGIN_X + SIZE, ORIGIN_Y, ORIGIN_X + 2 * SIZE, ORIGIN_Y + SIZE),
    }
    return gpd.GeoDataFrame(
        {
            "ons_label": ["00AG", "00AM", "00AY", "00AZ"],
            "name": list(cells),
            "Partic_Per": [18.4, 21.7, 19.9, 16.0],
            "Pop_2001": ["198020", "202824", "266170", "248922"],
        },
        geometry=list(cells.values()),
        crs="EPSG:27700",
    )


def crime_records() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Month": [201201, 201201, 201202, 201201, 201201, 201201],
            "Borough": ["Camden", "Camden", "Camden", "Hackney", "Hackney", "NULL"],
            "CrimeType": [
                "Theft & Handling",
                "Theft & Handling",
                "Theft & Handling",
                "Theft & Handling",
                "Burglary",
                "Theft & Handling",
            ],
            "CrimeCount": [100, 20, 5, 60, 40, 7],
        }
    )


@pytest.fixture
def polygons() -> gpd.GeoDataFrame:
    return grid_polygons()


@pytest.fixture
def crimes() -> pd.DataFrame:
    return crime_records()
