"""Load borough polygons, station points and the crime table from disk."""

import logging
from pathlib import Path

import geopandas as gpd
import pandas as pd

from crimemap.errors import DataNotFoundError, FormatError

logger = logging.getLogger(__name__)

POLYGON_TYPES = {"Polygon", "MultiPolygon"}
POINT_TYPES = {"Point"}
CRIME_COLUMNS = ("Borough", "CrimeType", "CrimeCount")


def _resolve_path(path: str | Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise DataNotFoundError(path)
    return path


def _read_vector(path: str | Path) -> gpd.GeoDataFrame:
    """Read a shapefile (or the directory holding one) fully into memory."""
    path = _resolve_path(path)
    try:
        gdf = gpd.read_file(path)
    except (OSError, ValueError, RuntimeError) as exc:
        raise FormatError(path, f"cannot read geometry dataset: {exc}") from exc
    if not isinstance(gdf, gpd.GeoDataFrame):
        raise FormatError(path, "dataset has no geometry column")
    return gdf


def _check_geometry_types(gdf: gpd.GeoDataFrame, path: Path, allowed: set[str], allow_missing: bool) -> None:
    missing = gdf.geometry.isna()
    if missing.any() and not allow_missing:
        rows = [i for i, flag in enumerate(missing) if flag]
        raise FormatError(path, f"records {rows} have no geometry")
    types = gdf.geom_type[~missing]
    wrong = ~types.isin(allowed)
    if wrong.any():
        found = sorted(set(types[wrong]))
        raise FormatError(path, f"expected {sorted(allowed)} geometries, found {found}")


def load_polygons(path: str | Path) -> gpd.GeoDataFrame:
    """Load a polygon dataset such as the London borough shapefile."""
    gdf = _read_vector(path)
    _check_geometry_types(gdf, Path(path), POLYGON_TYPES, allow_missing=False)
    logger.info("Loaded %d polygons from %s (crs=%s)", len(gdf), path, gdf.crs)
    return gdf


def load_points(path: str | Path) -> gpd.GeoDataFrame:
    """Load a point dataset; a missing CRS is left for the reprojection step to reject."""
    gdf = _read_vector(path)
    _check_geometry_types(gdf, Path(path), POINT_TYPES, allow_missing=True)
    if gdf.crs is None:
        logger.warning("Point dataset %s declares no CRS", path)
    logger.info("Loaded %d points from %s (crs=%s)", len(gdf), path, gdf.crs)
    return gdf


def load_table(path: str | Path, required_columns: tuple[str, ...] = CRIME_COLUMNS) -> pd.DataFrame:
    """Load a delimited crime table and verify its required columns."""
    path = _resolve_path(path)
    if not path.is_file():
        raise DataNotFoundError(path, "not a file")
    try:
        # Only blank cells are missing; literal "NULL" or "NA" are real region names
        df = pd.read_csv(path, keep_default_na=False, na_values=[""])
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise FormatError(path, f"cannot parse table: {exc}") from exc

    df.columns = [str(col).strip() for col in df.columns]
    missing = [col for col in required_columns if col not in df.columns]
    if missing:
        raise FormatError(path, f"missing columns {missing} (found {list(df.columns)})")

    logger.info("Loaded %d rows from %s", len(df), path)
    return df


def load_prebuilt(path: str | Path) -> gpd.GeoDataFrame:
    """Load a pre-built polygon dataset stored as GeoParquet."""
    path = _resolve_path(path)
    try:
        gdf = gpd.read_parquet(path)
    except (OSError, ValueError) as exc:
        raise FormatError(path, f"cannot read GeoParquet: {exc}") from exc
    _check_geometry_types(gdf, path, POLYGON_TYPES, allow_missing=False)
    logger.info("Loaded pre-built dataset with %d polygons from %s", len(gdf), path)
    return gdf
