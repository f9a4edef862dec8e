"""
Translates a PlotSpec into the options object consumed by Observable Plot.

The output looks like

    {"marks": [{"mark": "dot", "data": [...], "options": {...}, "transform": None}, ...],
     "x": {"label": ...}, "color": {...}, "grid": True, ...}

and is handed to js/widget.js, which calls Plot[mark](data, options) for each
mark and Plot.plot() on the whole. Column references are resolved here, so a
mapping that names a column missing from the bound data fails at render time.
"""

import warnings
from collections.abc import Mapping as MappingABC
from typing import Any

import numpy as np
import pandas as pd
from scipy import stats

from ggcompose.aes import ColumnRef, Expression, Literal, Mapping
from ggcompose.data import DataSource, records
from ggcompose.layers import Annotation, Geometry, Scale, Theme
from ggcompose.util import CONFIG, deep_merge


class MissingColumnError(KeyError):
    """A mapping refers to a column that the bound data does not have."""

    def __init__(self, channel: str, column: str, available: list[str]):
        self.channel = channel
        self.column = column
        self.available = available
        super().__init__(column)

    def __str__(self):
        return (
            f"Column '{self.column}' (mapped to '{self.channel}') not found in data. "
            f"Available columns: {self.available}"
        )


GEOM_MARKS = {
    "point": "dot",
    "line": "line",
    "area": "areaY",
    "col": "barY",
    "bar": "barY",
    "histogram": "rectY",
    "smooth": "linearRegressionY",
    "errorbar": "ruleX",
    "text": "text",
    "boxplot": "boxY",
    "tile": "cell",
    "rect": "rect",
    "hline": "ruleY",
    "vline": "ruleX",
}

# ggplot channel / style names -> Observable Plot option names
CHANNELS = {
    "colour": "stroke",
    "color": "stroke",
    "size": "r",
    "alpha": "opacity",
    "linewidth": "strokeWidth",
    "shape": "symbol",
    "label": "text",
    "group": "z",
    "xmin": "x1",
    "xmax": "x2",
    "ymin": "y1",
    "ymax": "y2",
}

FILLED_CHANNELS = {**CHANNELS, "colour": "fill", "color": "fill"}

TEXT_CHANNELS = {**FILLED_CHANNELS, "size": "fontSize"}

COLOUR_CHANNELS = ("colour", "color", "fill")

# consumed by statistics, never passed on as mark options
STAT_PARAMS = {"bins", "fun", "fun_data", "method", "se", "formula", "width"}

SCALE_CHANNELS = {"x": "x", "y": "y", "colour": "color", "color": "color", "fill": "color"}

SCALE_TRANSFORMS = {
    "identity": {},
    "log10": {"type": "log"},
    "sqrt": {"type": "sqrt"},
    "reverse": {"reverse": True},
}

SUMMARY_FUNS = {
    "mean": "mean",
    "median": "median",
    "sum": "sum",
    "min": "min",
    "max": "max",
}

# multiplier of the standard error for each interval summary, given the group sizes
SUMMARY_INTERVALS = {
    "mean_se": lambda n: 1.0,
    "mean_cl_normal": lambda n: stats.t.ppf(0.975, n - 1),
}


def channel_names(geom: str) -> dict[str, str]:
    if geom == "text":
        return TEXT_CHANNELS
    if geom == "point":
        return FILLED_CHANNELS
    return CHANNELS


def effective_mapping(spec, layer) -> Mapping:
    if isinstance(layer, Geometry) and layer.inherit_aes:
        mapping = {**spec.mapping, **layer.mapping}
    else:
        mapping = dict(layer.mapping)
    # style set by the caller beats a mapped channel drawn with the same option
    names = channel_names(layer.geom)
    fixed = {names.get(key, key) for key in layer.fixed}
    return {c: b for c, b in mapping.items() if names.get(c, c) not in fixed}


def effective_data(spec, layer) -> DataSource:
    return layer.data if layer.data is not None else spec.data


def resolve_columns(mapping: Mapping, frame: pd.DataFrame) -> tuple[pd.DataFrame, dict[str, str]]:
    """
    Check every column reference against `frame` and materialise literals and
    expressions.

    Returns the frame (with one extra column per literal or expression) and a
    dict of channel -> column name.
    """
    available = [str(c) for c in frame.columns]
    if not available and mapping and all(isinstance(b, Literal) for b in mapping.values()):
        # constants alone describe a single element
        frame = pd.DataFrame(index=range(1))
    columns: dict[str, str] = {}
    for channel, binding in mapping.items():
        if isinstance(binding, ColumnRef):
            if binding.name not in available:
                raise MissingColumnError(channel, binding.name, available)
            columns[channel] = binding.name
        elif isinstance(binding, Literal):
            name = f"__{channel}"
            frame = frame.assign(**{name: [binding.value] * len(frame)})
            columns[channel] = name
        elif isinstance(binding, Expression):
            name = f"__{channel}"
            frame = frame.assign(**{name: binding.fn(frame)})
            columns[channel] = name
    return frame, columns


def summarise(frame: pd.DataFrame, columns: dict[str, str], style: dict[str, Any]):
    """Compute a per-x summary of y. Returns the summary frame and its channels."""
    if "x" not in columns or "y" not in columns:
        raise ValueError("stat 'summary' requires both x and y channels")
    by = list(dict.fromkeys(columns[c] for c in columns if c != "y"))
    y = columns["y"]
    grouped = frame.groupby(by, sort=True)[y]
    fun_data = style.get("fun_data")
    if fun_data is not None:
        if fun_data not in SUMMARY_INTERVALS:
            raise ValueError(
                f"Unrecognized fun_data '{fun_data}', expected one of {list(SUMMARY_INTERVALS)}"
            )
        # private names, so user columns called eg. "mean" or "count" survive
        summary = grouped.agg(__mean="mean", __std="std", __n="count").reset_index()
        se = summary["__std"].fillna(0) / np.sqrt(summary["__n"])
        half_width = SUMMARY_INTERVALS[fun_data](summary["__n"]) * se
        summary = summary.assign(
            **{
                y: summary["__mean"],
                "__ymin": summary["__mean"] - half_width,
                "__ymax": summary["__mean"] + half_width,
            }
        ).drop(columns=["__mean", "__std", "__n"])
        return summary, {**columns, "ymin": "__ymin", "ymax": "__ymax"}
    fun = style.get("fun", "mean")
    if fun not in SUMMARY_FUNS:
        raise ValueError(f"Unrecognized fun '{fun}', expected one of {list(SUMMARY_FUNS)}")
    summary = grouped.agg(SUMMARY_FUNS[fun]).reset_index()
    return summary, columns


def apply_stat(stat: str, frame: pd.DataFrame, columns: dict[str, str], style: dict[str, Any]):
    """Returns (frame, columns, transform) for the layer's statistic."""
    if stat == "identity":
        return frame, columns, None
    if stat == "bin":
        columns = {k: v for k, v in columns.items() if k != "y"}
        options = {"thresholds": style["bins"]} if style.get("bins") is not None else {}
        return frame, columns, {"name": "binX", "outputs": {"y": "count"}, "options": options}
    if stat == "count":
        columns = {k: v for k, v in columns.items() if k != "y"}
        return frame, columns, {"name": "groupX", "outputs": {"y": "count"}, "options": {}}
    if stat == "summary":
        frame, columns = summarise(frame, columns, style)
        return frame, columns, None
    if stat == "smooth":
        method = style.get("method", "lm")
        if method != "lm":
            raise ValueError(f"Unsupported smoothing method '{method}', only 'lm' is available")
        return frame, columns, None
    raise ValueError(f"Unrecognized stat '{stat}'")


def render_mark(spec, layer: Geometry | Annotation) -> dict[str, Any]:
    stat = layer.stat if isinstance(layer, Geometry) else "identity"
    names = channel_names(layer.geom)
    frame, columns = resolve_columns(
        effective_mapping(spec, layer), effective_data(spec, layer).to_frame()
    )
    frame, columns, transform = apply_stat(stat, frame, columns, layer.style)
    if layer.geom == "errorbar" and "ymin" in columns:
        columns.pop("y", None)

    options: dict[str, Any] = {}
    for key, value in layer.style.items():
        if key not in STAT_PARAMS:
            options[names.get(key, key)] = value
    for channel, column in columns.items():
        options[names.get(channel, channel)] = column
    # extra arguments go to the engine untouched
    options.update(layer.extra)

    if layer.geom not in GEOM_MARKS:
        raise ValueError(f"Unrecognized geom '{layer.geom}'")
    return {
        "mark": GEOM_MARKS[layer.geom],
        "data": records(frame, list(columns.values())),
        "options": options,
        "transform": transform,
    }


def fold_scales(layers) -> dict[str, Scale]:
    scales: dict[str, Scale] = {}
    for layer in layers:
        if isinstance(layer, Scale):
            if layer.channel in scales:
                warnings.warn(
                    f"Scale for '{layer.channel}' is already present. "
                    f"Adding another scale for '{layer.channel}', which will replace the existing scale.",
                    UserWarning,
                    stacklevel=2,
                )
            scales[layer.channel] = layer
    return scales


def fold_themes(layers) -> dict[str, Any]:
    theme: dict[str, Any] = CONFIG.get("theme", {})
    for layer in layers:
        if isinstance(layer, Theme):
            theme = deep_merge(theme, {**layer.style, **layer.extra})
    return theme


def scale_options(scale: Scale) -> dict[str, Any]:
    if scale.transform not in SCALE_TRANSFORMS:
        raise ValueError(f"Unrecognized transformation {scale.transform}")
    options = dict(SCALE_TRANSFORMS[scale.transform])
    palette = scale.palette
    if isinstance(palette, str):
        options["scheme"] = palette
    elif isinstance(palette, MappingABC):
        options["domain"] = list(palette.keys())
        options["range"] = list(palette.values())
    elif palette is not None:
        options["range"] = list(palette)
    for key, value in scale.style.items():
        if key == "name":
            options["label"] = value
        elif key == "breaks":
            options["ticks"] = value
        elif key == "limits":
            options["domain"] = list(value)
        else:
            options[key] = value
    options.update(scale.extra)
    return options


THEME_STYLE = {"background": "background", "font_size": "fontSize", "font_family": "fontFamily"}
THEME_OPTIONS = {"width", "height", "margin", "inset", "grid", "aspect_ratio", "clip"}


def theme_options(theme: dict[str, Any]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    style = {css: theme[key] for key, css in THEME_STYLE.items() if key in theme}
    if isinstance(style.get("fontSize"), (int, float)):
        style["fontSize"] = f"{style['fontSize']}px"
    if style:
        options["style"] = style
    for key in THEME_OPTIONS:
        if key in theme:
            options["aspectRatio" if key == "aspect_ratio" else key] = theme[key]
    labels = theme.get("labels", {})
    for key in ("title", "subtitle", "caption"):
        if key in labels:
            options[key] = labels[key]
    for key, value in theme.items():
        if key not in THEME_STYLE and key not in THEME_OPTIONS and key != "labels":
            options[key] = value
    return options


def default_labels(spec) -> dict[str, str]:
    # axis titles default to the column bound to x / y
    labels: dict[str, str] = {}
    mappings = [spec.mapping] + [
        layer.mapping
        for layer in spec.layers
        if isinstance(layer, Geometry) and layer.inherit_aes
    ]
    for mapping in mappings:
        for channel in ("x", "y"):
            binding = mapping.get(channel)
            if channel not in labels and isinstance(binding, ColumnRef):
                labels[channel] = binding.name
    return labels


def render(spec) -> dict[str, Any]:
    """
    Resolve `spec` against its data and return the Observable Plot options.

    Raises:
        MissingColumnError: a mapping names a column absent from the layer's data.
    """
    marks = [
        render_mark(spec, layer)
        for layer in spec.layers
        if isinstance(layer, (Geometry, Annotation))
    ]
    theme = fold_themes(spec.layers)
    options = theme_options(theme)

    labels = {**default_labels(spec), **theme.get("labels", {})}
    for channel in ("x", "y"):
        if channel in labels:
            options[channel] = {**options.get(channel, {}), "label": labels[channel]}
    for name in ("colour", "color", "fill"):
        if name in labels:
            options["color"] = {**options.get("color", {}), "label": labels[name]}

    for channel, scale in fold_scales(spec.layers).items():
        key = SCALE_CHANNELS.get(channel, channel)
        options[key] = deep_merge(options.get(key, {}), scale_options(scale))

    maps_colour = any(
        channel in effective_mapping(spec, layer)
        for layer in spec.layers
        if isinstance(layer, (Geometry, Annotation))
        for channel in COLOUR_CHANNELS
    )
    if maps_colour and "legend" not in options.get("color", {}):
        options["color"] = {**options.get("color", {}), "legend": True}

    return {**options, "marks": marks}
