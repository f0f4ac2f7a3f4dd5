"""Reproject point datasets and clip them to a polygon dataset."""

import logging
from typing import Any

import geopandas as gpd
import pandas as pd

from crimemap.errors import CRSMismatchError, ProjectionError
from crimemap.geometry.provider import DEFAULT_PROVIDER, GeometryProvider

logger = logging.getLogger(__name__)


def reproject(points: gpd.GeoDataFrame, target_crs: Any, provider: GeometryProvider = DEFAULT_PROVIDER) -> gpd.GeoDataFrame:
    """Return a copy of ``points`` with coordinates transformed into ``target_crs``."""
    if points.crs is None:
        raise ProjectionError("Source CRS is unknown; cannot reproject")
    target = provider.parse_crs(target_crs)
    provider.parse_crs(points.crs)

    geom_name = points.geometry.name
    transformed = provider.transform(points.geometry, target).rename(geom_name)
    result = gpd.GeoDataFrame(pd.DataFrame(points.drop(columns=geom_name)), geometry=transformed)
    logger.info("Reprojected %d points to %s", len(result), target.to_string())
    return result


def filter_within(
    points: gpd.GeoDataFrame,
    polygons: gpd.GeoDataFrame,
    provider: GeometryProvider = DEFAULT_PROVIDER,
) -> gpd.GeoDataFrame:
    """Keep the points covered by the union of ``polygons``.

    Containment is boundary-inclusive: a point lying exactly on a polygon edge
    is kept. Points without a determinate location (missing, empty or
    non-finite) are dropped. Index labels of kept points are preserved.
    """
    if not provider.same_crs(points.crs, polygons.crs):
        raise CRSMismatchError(points.crs, polygons.crs)

    area = provider.union(polygons.geometry)
    mask = provider.covers(area, points.geometry)
    result = points[mask].copy()
    logger.info("Kept %d of %d points inside the polygon extent", len(result), len(points))
    return result
