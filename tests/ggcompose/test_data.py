import numpy as np
import pandas as pd
import pytest

from ggcompose.data import DataSource, as_data_source, records


def test_columns():
    assert DataSource(pd.DataFrame({"a": [1], "b": [2]})).columns() == ["a", "b"]
    assert DataSource({"a": [1, 2], "b": np.array([3, 4])}).columns() == ["a", "b"]
    assert DataSource([{"a": 1}, {"a": 2, "b": 3}]).columns() == ["a", "b"]
    assert DataSource(None).columns() == []


def test_to_frame():
    frame = DataSource({"a": [1, 2], "b": np.array([3, 4])}).to_frame()
    assert list(frame.columns) == ["a", "b"]
    assert frame["b"].tolist() == [3, 4]

    frame = DataSource([{"a": 1}, {"a": 2}]).to_frame()
    assert frame["a"].tolist() == [1, 2]

    assert DataSource(None).to_frame().empty


def test_equality_is_identity():
    df = pd.DataFrame({"a": [1]})
    assert DataSource(df) == DataSource(df)
    assert DataSource(df) != DataSource(df.copy())
    assert DataSource(DataSource(df)) == DataSource(df)
    assert as_data_source(DataSource(df)).value is df


def test_unsupported_data():
    with pytest.raises(TypeError, match="int"):
        DataSource(42)


def test_records():
    frame = pd.DataFrame({"a": [1, 2], "b": [3, 4], "c": [5, 6]})
    assert records(frame, ["b", "a", "b"]) == [{"b": 3, "a": 1}, {"b": 4, "a": 2}]
    assert records(frame) == [{"a": 1, "b": 3, "c": 5}, {"a": 2, "b": 4, "c": 6}]
