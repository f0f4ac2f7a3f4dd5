"""Aggregate crime records per region and join them onto region polygons."""

import logging
import numbers
from typing import Callable, Mapping

import geopandas as gpd
import pandas as pd

from crimemap.errors import JoinKeyCollisionError
from crimemap.transformation.normalize import normalize_field

logger = logging.getLogger(__name__)

Predicate = Callable[[pd.DataFrame], pd.Series]


def category_equals(column: str, value) -> Predicate:
    """Predicate selecting rows whose ``column`` equals ``value``."""

    def predicate(df: pd.DataFrame) -> pd.Series:
        return df[column] == value

    return predicate


def aggregate(
    records: pd.DataFrame,
    predicate: Predicate | None,
    group_key: str,
    sum_field: str,
) -> dict:
    """Filter ``records`` with ``predicate`` then sum ``sum_field`` per ``group_key``.

    Rows with a missing group key are ignored. Regions with no matching rows
    are absent from the result, not zero.
    """
    for col in (group_key, sum_field):
        if col not in records.columns:
            raise KeyError(col)

    source = records
    if not pd.api.types.is_numeric_dtype(records[sum_field].dtype):
        source = normalize_field(records, sum_field, float)

    if predicate is None:
        filtered = source
    else:
        mask = pd.Series(predicate(source), index=source.index).fillna(False).astype(bool)
        filtered = source[mask]

    totals = filtered.groupby(group_key, sort=False, dropna=True)[sum_field].sum()
    result = totals.to_dict()
    logger.info(
        "Aggregated %d of %d records into %d %s groups", len(filtered), len(records), len(result), group_key
    )
    return result


def rename_keys(mapping: Mapping, aliases: Mapping) -> dict:
    """Rename mapping keys; keys that collide after renaming are summed."""
    result: dict = {}
    for key, value in mapping.items():
        new_key = aliases.get(key, key)
        if new_key != key:
            logger.info("Renaming join key %r -> %r", key, new_key)
        if new_key in result:
            result[new_key] = result[new_key] + value
        else:
            result[new_key] = value
    return result


def unmatched_keys(polygons: pd.DataFrame, mapping: Mapping, key_field: str) -> tuple[list, list]:
    """Return (polygon keys without a mapping entry, mapping keys without a polygon)."""
    polygon_keys = [k for k in polygons[key_field] if not pd.isna(k)]
    missing_in_mapping = sorted({k for k in polygon_keys if k not in mapping}, key=str)
    known = set(polygon_keys)
    missing_in_polygons = sorted((k for k in mapping if k not in known), key=str)
    return missing_in_mapping, missing_in_polygons


def _check_key_collisions(polygons: pd.DataFrame, key_field: str) -> None:
    keyed = polygons[polygons[key_field].notna()]
    dupes = keyed[keyed[key_field].duplicated(keep=False)]
    if dupes.empty:
        return

    # Geometry is excluded, only attribute records are compared
    geometry_cols = [polygons.geometry.name] if isinstance(polygons, gpd.GeoDataFrame) else []
    attrs = pd.DataFrame(dupes.drop(columns=geometry_cols))
    conflicting = [
        key for key, group in attrs.groupby(key_field, sort=True)
        if len(group.astype(str).drop_duplicates()) > 1
    ]
    if conflicting:
        raise JoinKeyCollisionError(key_field, conflicting)
    logger.warning("Duplicate %s values with identical records: %s", key_field, sorted(set(dupes[key_field])))


def join_attributes(polygons, mapping: Mapping, key_field: str, field_name: str):
    """Left-join ``mapping`` onto ``polygons`` by ``key_field`` as ``field_name``.

    Every polygon is kept. Unmatched or unnamed regions get a missing value.
    """
    if key_field not in polygons.columns:
        raise KeyError(key_field)
    _check_key_collisions(polygons, key_field)

    result = polygons.copy()
    if field_name in result.columns:
        logger.warning("Replacing existing column %s during join", field_name)

    values = result[key_field].astype(object).map(lambda key: None if pd.isna(key) else mapping.get(key))
    numeric = [isinstance(v, numbers.Number) and not isinstance(v, bool) for v in mapping.values()]
    if mapping and all(isinstance(v, numbers.Integral) for v in mapping.values()) and all(numeric):
        values = values.astype("Int64")
    elif not mapping or all(numeric):
        values = values.astype("float64")
    result[field_name] = values

    matched = int(result[field_name].notna().sum())
    logger.info(
        "Joined %s onto %d regions (%d matched, %d missing)", field_name, len(result), matched, len(result) - matched
    )
    return result
