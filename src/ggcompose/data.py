from typing import Any, Sequence

import numpy as np
import pandas as pd


class DataSource:
    """
    Tabular data a PlotSpec renders from.

    Accepts a pandas DataFrame, a dict of columns (lists or numpy arrays), or a
    list of record dicts. The wrapped value is kept as-is; two DataSources are
    equal when they wrap the same object.
    """

    def __init__(self, value: Any):
        if isinstance(value, DataSource):
            value = value.value
        if value is not None and not isinstance(value, (pd.DataFrame, dict, list, tuple)):
            raise TypeError(
                f"Unsupported data of type {type(value).__name__}; expected a DataFrame, dict of columns or list of records"
            )
        self.value = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataSource):
            return NotImplemented
        return self.value is other.value

    def __hash__(self) -> int:
        return id(self.value)

    def __repr__(self):
        if self.value is None:
            return "<DataSource empty>"
        return f"<DataSource columns={self.columns()}>"

    def is_empty(self) -> bool:
        return self.value is None

    def columns(self) -> list[str]:
        value = self.value
        if value is None:
            return []
        if isinstance(value, pd.DataFrame):
            return [str(c) for c in value.columns]
        if isinstance(value, dict):
            return list(value.keys())
        names: dict[str, None] = {}
        for record in value:
            names.update(dict.fromkeys(record))
        return list(names)

    def to_frame(self) -> pd.DataFrame:
        value = self.value
        if value is None:
            return pd.DataFrame()
        if isinstance(value, pd.DataFrame):
            return value.reset_index(drop=True)
        if isinstance(value, dict):
            return pd.DataFrame({k: np.asarray(v) for k, v in value.items()})
        return pd.DataFrame.from_records(list(value))


def as_data_source(value: Any) -> DataSource:
    return value if isinstance(value, DataSource) else DataSource(value)


def records(frame: pd.DataFrame, columns: Sequence[str] | None = None) -> list[dict]:
    """Rows of `frame` as a list of dicts, restricted to `columns` when given."""
    if columns is not None:
        frame = frame[list(dict.fromkeys(columns))]
    return frame.to_dict("records")
