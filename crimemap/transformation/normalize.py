"""Reparse attribute fields that were read as text or categories."""

import logging
import numbers

import numpy as np
import pandas as pd

from crimemap.errors import TypeCoercionError

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = {int: "int", float: "float"}
INT64 = np.iinfo(np.int64)


def _already_typed(series: pd.Series, target_type: type) -> bool:
    if target_type is int:
        return pd.api.types.is_integer_dtype(series.dtype)
    return pd.api.types.is_float_dtype(series.dtype)


def _integral_float(value) -> int:
    as_float = float(value)
    if not as_float.is_integer():
        raise ValueError(value)
    return int(as_float)


def _parse_int(value) -> int:
    """Parse exactly; floats are only a fallback for forms like "3.0" or "1e3"."""
    if isinstance(value, numbers.Integral):
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            number = _integral_float(value)
    else:
        number = _integral_float(value)
    if not INT64.min <= number <= INT64.max:
        raise ValueError(value)
    return number


def _parse_value(value, target_type: type):
    """Return the parsed number, None for missing, or raise ValueError."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, str) and not value.strip():
        return None
    if target_type is int:
        return _parse_int(value)
    return float(value.strip() if isinstance(value, str) else value)


def normalize_field(dataset: pd.DataFrame, field: str, target_type: type) -> pd.DataFrame:
    """Return a copy of ``dataset`` with ``field`` reparsed as ``target_type``.

    Categorical columns are parsed by label, never by category code. Missing
    values stay missing; any other value that does not parse raises
    ``TypeCoercionError`` with the positional indices of the bad records.
    A field that already has the target dtype is returned unchanged.
    """
    if target_type not in SUPPORTED_TYPES:
        raise ValueError(f"Unsupported target type {target_type!r}, expected int or float")
    if field not in dataset.columns:
        raise KeyError(field)

    result = dataset.copy()
    series = result[field]
    if _already_typed(series, target_type):
        return result

    type_name = SUPPORTED_TYPES[target_type]
    parsed = []
    bad = []
    for idx, value in enumerate(series.astype(object)):
        try:
            number = _parse_value(value, target_type)
        except (TypeError, ValueError, OverflowError):
            bad.append(idx)
            continue
        parsed.append(number)

    if bad:
        raise TypeCoercionError(field, type_name, bad)

    if target_type is int:
        result[field] = pd.array(parsed, dtype="Int64")
    else:
        result[field] = pd.Series(parsed, index=series.index, dtype="float64")

    logger.info("Normalized %s to %s (%d records)", field, type_name, len(result))
    return result
