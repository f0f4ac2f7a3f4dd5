"""Geometry and CRS capabilities used by the spatial stages.

The spatial stages never touch shapely or pyproj directly; they go through a
``GeometryProvider`` so another geometry engine can be swapped in.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import geopandas as gpd
import numpy as np
import shapely
from pyproj import CRS
from pyproj.exceptions import CRSError
from shapely.validation import make_valid

from crimemap.errors import ProjectionError

logger = logging.getLogger(__name__)


class GeometryProvider(Protocol):
    def parse_crs(self, crs: Any) -> CRS: ...

    def same_crs(self, left: Any, right: Any) -> bool: ...

    def transform(self, geoms: gpd.GeoSeries, target: CRS) -> gpd.GeoSeries: ...

    def union(self, geoms: gpd.GeoSeries) -> shapely.Geometry: ...

    def covers(self, area: shapely.Geometry, geoms: gpd.GeoSeries) -> np.ndarray: ...

    def centroid(self, geom: shapely.Geometry) -> tuple[float, float]: ...

    def centroids(self, geoms: gpd.GeoSeries) -> np.ndarray: ...


class ShapelyProvider:
    """Default provider backed by shapely 2, geopandas and pyproj."""

    def parse_crs(self, crs: Any) -> CRS:
        if crs is None:
            raise ProjectionError("CRS is not set")
        try:
            return CRS.from_user_input(crs)
        except CRSError as exc:
            raise ProjectionError(f"Cannot parse CRS {crs!r}: {exc}") from exc

    def same_crs(self, left: Any, right: Any) -> bool:
        if left is None or right is None:
            return False
        return self.parse_crs(left) == self.parse_crs(right)

    def transform(self, geoms: gpd.GeoSeries, target: CRS) -> gpd.GeoSeries:
        source = self.parse_crs(geoms.crs)
        if source == target:
            return geoms.copy()
        logger.debug("Transforming %d geometries from %s to %s", len(geoms), source.to_string(), target.to_string())
        return geoms.to_crs(target)

    def union(self, geoms: gpd.GeoSeries) -> shapely.Geometry:
        """Union of all non-missing geometries, repairing invalid rings first."""
        values = np.asarray(geoms.values, dtype=object)
        values = values[~shapely.is_missing(values)]
        invalid = ~shapely.is_valid(values)
        if invalid.any():
            logger.warning("Repairing %d invalid geometries before union", int(invalid.sum()))
            values = np.array([make_valid(g) if bad else g for g, bad in zip(values, invalid)], dtype=object)
        return shapely.union_all(values)

    def covers(self, area: shapely.Geometry, geoms: gpd.GeoSeries) -> np.ndarray:
        """Boundary-inclusive containment; indeterminate points give False."""
        values = np.asarray(geoms.values, dtype=object)
        determinate = self._finite_points(values)
        result = np.zeros(len(values), dtype=bool)
        if area is None or area.is_empty or not determinate.any():
            return result
        shapely.prepare(area)
        result[determinate] = shapely.covers(area, values[determinate])
        return result

    def centroid(self, geom: shapely.Geometry) -> tuple[float, float]:
        point = shapely.centroid(geom)
        return float(point.x), float(point.y)

    def centroids(self, geoms: gpd.GeoSeries) -> np.ndarray:
        """(n, 2) array of per-geometry centroid coordinates."""
        points = shapely.centroid(np.asarray(geoms.values, dtype=object))
        coords = np.full((len(points), 2), np.nan)
        present = ~shapely.is_missing(points) & ~shapely.is_empty(points)
        if present.any():
            coords[present] = shapely.get_coordinates(points[present])
        return coords

    @staticmethod
    def _finite_points(values: np.ndarray) -> np.ndarray:
        # Coordinates are only read from non-empty points; GEOS rejects getX on empty ones
        candidates = (shapely.get_type_id(values) == 0) & ~shapely.is_empty(values)
        mask = np.zeros(len(values), dtype=bool)
        if not candidates.any():
            return mask
        coords = shapely.get_coordinates(values[candidates])
        mask[candidates] = np.isfinite(coords).all(axis=1)
        return mask


DEFAULT_PROVIDER = ShapelyProvider()
