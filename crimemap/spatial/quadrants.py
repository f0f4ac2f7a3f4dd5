"""Label each polygon with the compass quadrant it sits in."""

import logging

import geopandas as gpd

from crimemap.geometry.provider import DEFAULT_PROVIDER, GeometryProvider

logger = logging.getLogger(__name__)


def quadrant_label(x: float, y: float, center_x: float, center_y: float) -> str:
    """East/north are strictly greater than the centre; ties fall west/south."""
    vertical = "north" if y > center_y else "south"
    horizontal = "east" if x > center_x else "west"
    return vertical + horizontal


def classify_quadrant(
    polygons: gpd.GeoDataFrame,
    field: str = "quadrant",
    provider: GeometryProvider = DEFAULT_PROVIDER,
) -> gpd.GeoDataFrame:
    """Return a copy of ``polygons`` with ``field`` set to a quadrant label.

    The centre is the centroid of the union of all polygons and each polygon is
    placed by its own centroid.
    """
    result = polygons.copy()
    if result.empty:
        result[field] = []
        return result

    center_x, center_y = provider.centroid(provider.union(polygons.geometry))
    coords = provider.centroids(polygons.geometry)
    result[field] = [quadrant_label(x, y, center_x, center_y) for x, y in coords]

    counts = result[field].value_counts().to_dict()
    logger.info("Classified %d polygons around (%.2f, %.2f): %s", len(result), center_x, center_y, counts)
    return result
