"""Tests for attribute type normalization."""

import pandas as pd
import pytest
from geopandas.testing import assert_geodataframe_equal

from crimemap.errors import TypeCoercionError
from crimemap.transformation.normalize import normalize_field


def test_normalize_text_to_float(polygons):
    result = normalize_field(polygons, "Pop_2001", float)

    assert result["Pop_2001"].dtype == "float64"
    assert result["Pop_2001"].tolist() == [198020.0, 202824.0, 266170.0, 248922.0]
    # input untouched
    assert polygons["Pop_2001"].tolist()[0] == "198020"


def test_normalize_categorical_uses_labels_not_codes():
    df = pd.DataFrame({"Pop_2001": pd.Categorical(["300", "100", "200"])})
    result = normalize_field(df, "Pop_2001", int)
    assert result["Pop_2001"].tolist() == [300, 100, 200]


def test_normalize_is_idempotent(polygons):
    once = normalize_field(polygons, "Pop_2001", int)
    twice = normalize_field(once, "Pop_2001", int)

    assert str(once["Pop_2001"].dtype) == "Int64"
    assert_geodataframe_equal(once, twice)


def test_normalize_int_field_to_float():
    df = pd.DataFrame({"v": [1, 2, 3]})
    result = normalize_field(df, "v", float)
    assert result["v"].dtype == "float64"
    pd.testing.assert_frame_equal(result, normalize_field(result, "v", float))


def test_normalize_keeps_missing_values():
    df = pd.DataFrame({"v": ["1", None, " 3 ", ""]})
    result = normalize_field(df, "v", int)
    assert result["v"][0] == 1
    assert pd.isna(result["v"][1])
    assert result["v"][2] == 3
    assert pd.isna(result["v"][3])


def test_normalize_reports_offending_indices():
    df = pd.DataFrame({"v": ["1", "two", "3", "n/a"]})
    with pytest.raises(TypeCoercionError) as excinfo:
        normalize_field(df, "v", float)
    assert excinfo.value.indices == [1, 3]
    assert excinfo.value.field == "v"
    assert "[1, 3]" in str(excinfo.value)


def test_normalize_int_rejects_fractions():
    df = pd.DataFrame({"v": ["1", "2.5", "3.0"]})
    with pytest.raises(TypeCoercionError) as excinfo:
        normalize_field(df, "v", int)
    assert excinfo.value.indices == [1]


def test_normalize_int_keeps_large_values_exact():
    df = pd.DataFrame({"v": ["9007199254740993", "1e3"]})
    result = normalize_field(df, "v", int)
    assert result["v"].tolist() == [9007199254740993, 1000]


def test_normalize_int_reports_out_of_range_values():
    df = pd.DataFrame({"v": ["1", "1e30", "99999999999999999999", "inf"]})
    with pytest.raises(TypeCoercionError) as excinfo:
        normalize_field(df, "v", int)
    assert excinfo.value.indices == [1, 2, 3]


def test_normalize_unknown_field(polygons):
    with pytest.raises(KeyError):
        normalize_field(polygons, "missing", float)


def test_normalize_unsupported_type(polygons):
    with pytest.raises(ValueError, match="Unsupported"):
        normalize_field(polygons, "Pop_2001", str)
