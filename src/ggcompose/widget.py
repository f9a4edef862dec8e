import datetime
import json
import warnings
from collections.abc import Iterable, Mapping
from typing import Any

import anywidget
import numpy as np
import traitlets

from ggcompose.util import CONFIG, PARENT_PATH


def to_json(data: Any) -> Any:
    """
    Convert a rendered plot (or layout) into JSON-compatible values.

    Objects exposing `for_json()` are converted recursively; numpy arrays and
    scalars become lists and Python numbers; missing values (NaN) become None
    so that Observable Plot skips them.
    """
    if data is None or isinstance(data, (str, bool, int)):
        return data

    if isinstance(data, float):
        return None if np.isnan(data) else data

    if isinstance(data, np.generic):
        return to_json(data.item())

    if isinstance(data, np.ndarray):
        return [to_json(x) for x in data.tolist()]

    # pandas Timestamps are datetimes too; the renderer turns these back into Dates
    if isinstance(data, (datetime.date, datetime.datetime)):
        return {"__type__": "datetime", "value": data.isoformat()}

    if hasattr(data, "for_json"):
        return to_json(data.for_json())

    # layer fields are read-only mappings, not dicts
    if isinstance(data, Mapping):
        return {str(k): to_json(v) for k, v in data.items()}

    if isinstance(data, (list, tuple)):
        return [to_json(x) for x in data]

    if isinstance(data, Iterable):
        if not hasattr(data, "__len__") and not hasattr(data, "__getitem__"):
            warnings.warn(
                "Potentially exhaustible iterator encountered: generator", UserWarning
            )
        return [to_json(x) for x in data]

    raise TypeError(f"Object of type {type(data)} is not JSON serializable")


def to_json_string(ast: Any) -> str:
    return json.dumps(to_json(ast))


def to_json_with_config(ast: Any, widget: "Widget") -> Any:
    # traitlets serializers are called as to_json(value, widget)
    return to_json({"ast": ast, "display_as": CONFIG["display_as"]})


class Widget(anywidget.AnyWidget):
    """Jupyter widget showing a rendered plot or layout with js/widget.js."""

    _esm = PARENT_PATH / "js/widget.js"
    data = traitlets.Any().tag(sync=True, to_json=to_json_with_config)

    def __init__(self, ast: Any):
        super().__init__()
        self.data = ast
