"""Tests for reprojection and the point-in-polygon clip."""

import geopandas as gpd
import numpy as np
import pytest
from pyproj import Transformer
from shapely.geometry import Point, Polygon, box

from crimemap.errors import CRSMismatchError, ProjectionError
from crimemap.geometry.provider import ShapelyProvider
from crimemap.spatial.filter import filter_within, reproject

BNG_POINTS = [
    (526000, 176000),  # inside Lambeth
    (534000, 184000),  # inside Hackney
    (540000, 180000),  # east of the grid
    (520000, 170000),  # south-west of the grid
    (532000, 179000),  # inside Lewisham
    (529000, 184000),  # inside Camden
]


def _square():
    return gpd.GeoDataFrame({"name": ["sq"]}, geometry=[box(0, 0, 10, 10)], crs="EPSG:27700")


def _wgs84_stations():
    to_wgs = Transformer.from_crs("EPSG:27700", "EPSG:4326", always_xy=True)
    geoms = [Point(*to_wgs.transform(x, y)) for x, y in BNG_POINTS]
    return gpd.GeoDataFrame(
        {"NAME": [f"stn{i}" for i in range(len(geoms))]},
        geometry=geoms,
        crs="EPSG:4326",
        index=[10 + i for i in range(len(geoms))],
    )


def test_reproject_transforms_coordinates():
    stations = _wgs84_stations()

    result = reproject(stations, "EPSG:27700")

    assert result.crs.to_epsg() == 27700
    assert list(result.index) == list(stations.index)
    assert list(result["NAME"]) == list(stations["NAME"])
    assert result.geometry.x.iloc[0] == pytest.approx(526000, abs=1.0)
    assert result.geometry.y.iloc[0] == pytest.approx(176000, abs=1.0)
    # input untouched
    assert stations.crs.to_epsg() == 4326


def test_reproject_same_crs_is_a_copy():
    stations = _wgs84_stations()
    result = reproject(stations, "EPSG:4326")
    assert result is not stations
    assert result.geometry.equals(stations.geometry)


def test_reproject_unknown_source_crs():
    points = gpd.GeoDataFrame({"NAME": ["a"]}, geometry=[Point(1, 1)])
    with pytest.raises(ProjectionError):
        reproject(points, "EPSG:27700")


def test_reproject_unparseable_target():
    with pytest.raises(ProjectionError):
        reproject(_wgs84_stations(), "not-a-crs")


def test_filter_within_requires_matching_crs(polygons):
    with pytest.raises(CRSMismatchError):
        filter_within(_wgs84_stations(), polygons)


def test_filter_within_rejects_missing_crs(polygons):
    points = gpd.GeoDataFrame({"NAME": ["a"]}, geometry=[Point(526000, 176000)])
    with pytest.raises(CRSMismatchError):
        filter_within(points, polygons)


def test_filter_within_boundary_inclusive():
    points = gpd.GeoDataFrame(
        {"label": ["inside", "edge", "corner", "outside"]},
        geometry=[Point(5, 5), Point(10, 5), Point(0, 0), Point(10.001, 5)],
        crs="EPSG:27700",
    )

    result = filter_within(points, _square())

    assert list(result["label"]) == ["inside", "edge", "corner"]


def test_filter_within_drops_indeterminate_points():
    points = gpd.GeoDataFrame(
        {"label": ["ok", "missing", "empty", "nan"]},
        geometry=[Point(5, 5), None, Point(), Point(np.nan, np.nan)],
        crs="EPSG:27700",
    )

    result = filter_within(points, _square())

    assert list(result["label"]) == ["ok"]


def test_provider_covers_only_empty_points():
    provider = ShapelyProvider()
    geoms = gpd.GeoSeries([Point(), None, Point()], crs="EPSG:27700")

    result = provider.covers(box(0, 0, 10, 10), geoms)

    assert result.tolist() == [False, False, False]


def test_filter_within_is_subset_consistent_with_direct_check(polygons):
    stations = reproject(_wgs84_stations(), polygons.crs)

    result = filter_within(stations, polygons)

    assert set(result.index) <= set(stations.index)
    union = polygons.geometry.union_all()
    for label, geom in stations.geometry.items():
        assert (label in result.index) == union.covers(geom)


def test_reproject_then_filter_matches_shared_crs_check(polygons):
    stations = _wgs84_stations()

    result = filter_within(reproject(stations, polygons.crs), polygons)

    union = polygons.geometry.union_all()
    expected = [label for label, (x, y) in zip(stations.index, BNG_POINTS) if union.covers(Point(x, y))]
    assert list(result.index) == expected
    assert list(result["NAME"]) == ["stn0", "stn1", "stn4", "stn5"]


def test_filter_within_empty_polygons():
    points = gpd.GeoDataFrame({"label": ["a"]}, geometry=[Point(5, 5)], crs="EPSG:27700")
    empty = gpd.GeoDataFrame({"name": []}, geometry=[], crs="EPSG:27700")
    assert filter_within(points, empty).empty


def test_provider_repairs_invalid_polygons():
    bowtie = Polygon([(0, 0), (10, 10), (10, 0), (0, 10), (0, 0)])
    polys = gpd.GeoDataFrame({"name": ["bowtie"]}, geometry=[bowtie], crs="EPSG:27700")
    points = gpd.GeoDataFrame({"label": ["left", "top"]}, geometry=[Point(1, 5), Point(5, 9)], crs="EPSG:27700")

    result = filter_within(points, polys)

    assert list(result["label"]) == ["left"]


def test_provider_same_crs():
    provider = ShapelyProvider()
    assert provider.same_crs("EPSG:4326", "epsg:4326")
    assert not provider.same_crs("EPSG:4326", "EPSG:27700")
    assert not provider.same_crs(None, "EPSG:4326")
