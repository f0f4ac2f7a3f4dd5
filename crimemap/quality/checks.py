"""Data quality checks run on the loaded inputs before joining."""

import logging

import pandas as pd

from crimemap.errors import CrimeMapError

logger = logging.getLogger(__name__)


class QualityCheckError(CrimeMapError):
    error_code = "QUALITY_CHECK_FAILED"


def check_not_empty(df: pd.DataFrame, name: str) -> None:
    """Verify DataFrame is not empty."""
    if df.empty:
        raise QualityCheckError(f"{name} is empty")
    logger.info("PASS: %s has %d rows", name, len(df))


def check_no_nulls(df: pd.DataFrame, columns: list[str], name: str) -> None:
    """Verify specified columns have no null values."""
    for col in columns:
        null_count = df[col].isna().sum()
        if null_count > 0:
            raise QualityCheckError(f"{name}.{col} has {null_count} null values")
    logger.info("PASS: %s has no nulls in %s", name, columns)


def check_non_negative(df: pd.DataFrame, columns: list[str], name: str) -> None:
    """Verify numeric columns have no negative values (ignoring nulls)."""
    for col in columns:
        negative_count = (df[col].dropna() < 0).sum()
        if negative_count > 0:
            raise QualityCheckError(f"{name}.{col} has {negative_count} negative values")
    logger.info("PASS: %s has no negatives in %s", name, columns)


def report_join_keys(df: pd.DataFrame, key: str, name: str) -> None:
    """Log missing or duplicate join keys; these become join misses, not failures."""
    missing = int(df[key].isna().sum())
    duplicated = sorted(set(df.loc[df[key].notna() & df[key].duplicated(keep=False), key]), key=str)
    if missing:
        logger.warning("%s.%s has %d missing values", name, key, missing)
    if duplicated:
        logger.warning("%s.%s has duplicate values: %s", name, key, duplicated)
    if not missing and not duplicated:
        logger.info("PASS: %s is unique on %s", name, key)


def run_all_checks(
    polygons: pd.DataFrame,
    crimes: pd.DataFrame,
    region_field: str,
    crime_columns: tuple[str, str, str],
) -> None:
    """Run all quality checks on the loaded polygons and crime records.

    ``crime_columns`` is (region, category, count).
    """
    region_col, category_col, count_col = crime_columns

    check_not_empty(polygons, "polygons")
    check_not_empty(crimes, "crimes")

    check_no_nulls(crimes, [category_col, count_col], "crimes")
    check_non_negative(crimes, [count_col], "crimes")

    report_join_keys(polygons, region_field, "polygons")
    if crimes[region_col].isna().any():
        logger.warning("crimes.%s has %d missing values", region_col, int(crimes[region_col].isna().sum()))

    logger.info("All quality checks passed!")
