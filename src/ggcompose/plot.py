# %%
# ruff: noqa: F401
from typing import Any

from ggcompose.aes import (
    ColumnRef,
    Expression,
    Literal,
    Mapping,
    aes,
    capture_reference,
    col,
    expr,
    lit,
)
from ggcompose.data import DataSource
from ggcompose.layers import (
    Annotation,
    Geometry,
    Layer,
    Scale,
    Theme,
    build_layer,
    flatten_layers,
)
from ggcompose.layout import Column, Row
from ggcompose.plot_spec import PlotSpec, compose, ggplot, rebind_data, rebind_mapping
from ggcompose.render import MissingColumnError, render
from ggcompose.util import configure

# This module provides a ggplot2-flavoured way to build plot specifications
# which are rendered by Observable Plot in the browser.
#
# See:
# - https://ggplot2-book.org/programming
# - https://observablehq.com/plot/
# - https://github.com/manzt/anywidget
#
# Key ideas:
# - A plot is data + a mapping + an ordered list of layers
# - Layers are immutable values; compose them with + (lists of layers are flattened)
# - Use col() to forward a column chosen by a caller through your own functions,
#   and expr() to compute a channel from the data
# - spec % other_data swaps the data and keeps everything else


def _geom(
    geom: str,
    mapping: Mapping | None,
    data: Any,
    stat: str,
    style: dict[str, Any],
    extra: dict[str, Any],
    inherit_aes: bool = True,
) -> Geometry:
    inherit_aes = extra.pop("inherit_aes", inherit_aes)
    # None means "use the component default"
    style = {k: v for k, v in style.items() if v is not None}
    return build_layer(
        "geometry",
        {
            "geom": geom,
            "stat": stat,
            "mapping": mapping,
            "data": data,
            "inherit_aes": inherit_aes,
        },
        style,
        **extra,
    )


def geom_point(mapping=None, data=None, *, colour=None, fill=None, size=None, alpha=None, shape=None, **kwargs):
    return _geom(
        "point", mapping, data, "identity",
        {"colour": colour, "fill": fill, "size": size, "alpha": alpha, "shape": shape},
        kwargs,
    )


def geom_line(mapping=None, data=None, *, colour=None, linewidth=None, alpha=None, **kwargs):
    return _geom(
        "line", mapping, data, "identity",
        {"colour": colour, "linewidth": linewidth, "alpha": alpha},
        kwargs,
    )


def geom_area(mapping=None, data=None, *, fill=None, colour=None, alpha=None, **kwargs):
    return _geom(
        "area", mapping, data, "identity",
        {"fill": fill, "colour": colour, "alpha": alpha},
        kwargs,
    )


def geom_col(mapping=None, data=None, *, fill=None, colour=None, alpha=None, **kwargs):
    return _geom(
        "col", mapping, data, "identity",
        {"fill": fill, "colour": colour, "alpha": alpha},
        kwargs,
    )


def geom_bar(mapping=None, data=None, *, fill=None, colour=None, alpha=None, **kwargs):
    """Bars whose height is the number of rows in each x group."""
    return _geom(
        "bar", mapping, data, "count",
        {"fill": fill, "colour": colour, "alpha": alpha},
        kwargs,
    )


def geom_histogram(mapping=None, data=None, *, bins=None, fill=None, colour=None, alpha=None, **kwargs):
    """
    Bin a continuous x variable and draw the count in each bin.

    Args:
        bins: number of bins (default 30).
        fill, colour, alpha: style of the bars.
        **kwargs: passed unchanged to Observable Plot's rectY mark.
    """
    return _geom(
        "histogram", mapping, data, "bin",
        {"bins": bins, "fill": fill, "colour": colour, "alpha": alpha},
        kwargs,
    )


def geom_smooth(mapping=None, data=None, *, method="lm", colour=None, linewidth=None, alpha=None, **kwargs):
    """
    A fitted line (with a confidence band) through the data.

    Only linear models (method="lm") are supported by the renderer.
    """
    return _geom(
        "smooth", mapping, data, "smooth",
        {"method": method, "colour": colour, "linewidth": linewidth, "alpha": alpha},
        kwargs,
    )


def geom_errorbar(mapping=None, data=None, *, colour=None, width=None, linewidth=None, **kwargs):
    return _geom(
        "errorbar", mapping, data, "identity",
        {"colour": colour, "width": width, "linewidth": linewidth},
        kwargs,
    )


def geom_text(mapping=None, data=None, *, colour=None, size=None, **kwargs):
    return _geom("text", mapping, data, "identity", {"colour": colour, "size": size}, kwargs)


def geom_boxplot(mapping=None, data=None, *, fill=None, colour=None, **kwargs):
    return _geom("boxplot", mapping, data, "identity", {"fill": fill, "colour": colour}, kwargs)


def geom_tile(mapping=None, data=None, **kwargs):
    return _geom("tile", mapping, data, "identity", {}, kwargs)


def geom_hline(yintercept, *, colour=None, linewidth=None, **kwargs):
    values = yintercept if isinstance(yintercept, (list, tuple)) else [yintercept]
    return _geom(
        "hline", aes(y="yintercept"), {"yintercept": list(values)}, "identity",
        {"colour": colour, "linewidth": linewidth},
        kwargs,
        inherit_aes=False,
    )


def geom_vline(xintercept, *, colour=None, linewidth=None, **kwargs):
    values = xintercept if isinstance(xintercept, (list, tuple)) else [xintercept]
    return _geom(
        "vline", aes(x="xintercept"), {"xintercept": list(values)}, "identity",
        {"colour": colour, "linewidth": linewidth},
        kwargs,
        inherit_aes=False,
    )


def stat_summary(mapping=None, data=None, *, fun=None, fun_data=None, geom="point", **kwargs):
    """
    Summarise y at each unique x.

    Args:
        fun: "mean", "median", "sum", "min" or "max"; used when fun_data is not given.
        fun_data: "mean_se" or "mean_cl_normal"; adds ymin / ymax channels.
        geom: the geom drawing the summary, eg. "col" or "errorbar".
        **kwargs: style values (fill, colour, width, ...) or extra engine options.
    """
    style_keys = {"fill", "colour", "color", "alpha", "size", "linewidth", "width"}
    style = {k: v for k, v in kwargs.items() if k in style_keys}
    extra = {k: v for k, v in kwargs.items() if k not in style_keys}
    if fun is None and fun_data is None:
        fun = "mean"
    return _geom(geom, mapping, data, "summary", {"fun": fun, "fun_data": fun_data, **style}, extra)


# Annotations ---------------------------------------------------------------------------------

POSITION_PARAMS = ("x", "y", "xmin", "xmax", "ymin", "ymax", "label")


def annotate(geom: str, **kwargs: Any) -> Annotation:
    """
    Add a fixed element (eg. a text label) that does not come from the plot's data.

    Position parameters (x, y, xmin, xmax, ymin, ymax, label) may be scalars or
    equal-length lists; everything else is treated as style.
    """
    positions = {k: kwargs.pop(k) for k in POSITION_PARAMS if k in kwargs}
    columns = {
        k: list(v) if isinstance(v, (list, tuple)) else [v] for k, v in positions.items()
    }
    lengths = {k: len(v) for k, v in columns.items() if len(v) != 1}
    if len(set(lengths.values())) > 1:
        found = ", ".join(f"{k} ({n})" for k, n in lengths.items())
        raise ValueError(f"Unequal parameter lengths: {found}")
    n = max((len(v) for v in columns.values()), default=0)
    rows = [{k: v[i] if len(v) > 1 else v[0] for k, v in columns.items()} for i in range(n)]
    return build_layer(
        "annotation",
        {"geom": geom, "data": rows, "mapping": aes(**{k: k for k in columns})},
        kwargs,
    )


def annotation_layer(data: Any, mapping: Mapping, geom: str = "line", **kwargs: Any) -> Annotation:
    """A layer drawn from its own data with its own mapping, eg. a map outline."""
    return build_layer("annotation", {"geom": geom, "data": data, "mapping": mapping}, kwargs)


# Scales --------------------------------------------------------------------------------------


def _scale(channel, transform="identity", palette=None, **style) -> Scale:
    style = {k: v for k, v in style.items() if v is not None}
    return build_layer("scale", {"channel": channel, "transform": transform, "palette": palette}, style)


def scale_x_continuous(name=None, breaks=None, limits=None, trans="identity"):
    return _scale("x", trans, name=name, breaks=breaks, limits=limits)


def scale_y_continuous(name=None, breaks=None, limits=None, trans="identity"):
    return _scale("y", trans, name=name, breaks=breaks, limits=limits)


def scale_x_log10(name=None):
    return _scale("x", "log10", name=name)


def scale_y_log10(name=None):
    return _scale("y", "log10", name=name)


def scale_x_sqrt(name=None):
    return _scale("x", "sqrt", name=name)


def scale_y_sqrt(name=None):
    return _scale("y", "sqrt", name=name)


def scale_x_reverse(name=None):
    return _scale("x", "reverse", name=name)


def scale_y_reverse(name=None):
    return _scale("y", "reverse", name=name)


def scale_colour_manual(values, name=None):
    return _scale("colour", palette=values, name=name)


def scale_fill_manual(values, name=None):
    return _scale("fill", palette=values, name=name)


def scale_colour_brewer(palette="Blues", name=None):
    # See https://observablehq.com/plot/features/scales#color-scales
    return _scale("colour", palette=palette, name=name)


def scale_fill_brewer(palette="Blues", name=None):
    return _scale("fill", palette=palette, name=name)


def scale_colour_viridis(name=None):
    return _scale("colour", palette="viridis", name=name)


scale_color_manual = scale_colour_manual
scale_color_brewer = scale_colour_brewer
scale_color_viridis = scale_colour_viridis


def xlim(lower, upper):
    return _scale("x", limits=(lower, upper))


def ylim(lower, upper):
    return _scale("y", limits=(lower, upper))


# Themes & labels -----------------------------------------------------------------------------


def theme(**fields: Any) -> Theme:
    """
    Visual defaults. Later themes overwrite the fields they share with earlier ones.

    Known fields: background, font_size, font_family, width, height, margin,
    inset, grid, aspect_ratio, clip. Unknown fields are passed to Plot.plot().
    """
    return build_layer("theme", {}, fields)


def theme_grey(base_size=11) -> Theme:
    return theme(background="#EBEBEB", grid=True, font_size=base_size)


theme_gray = theme_grey


def theme_minimal(base_size=11) -> Theme:
    return theme(background="white", grid=True, font_size=base_size)


def theme_bw(base_size=11) -> Theme:
    return theme(background="white", grid=True, font_size=base_size, clip=True)


def labs(**labels: Any) -> Theme:
    """
    Set the title, subtitle, caption and axis / legend titles.

    Passing None removes a label, eg. labs(x=None).
    """
    return theme(labels=labels)


def ggtitle(label, subtitle=None) -> Theme:
    return labs(title=label) if subtitle is None else labs(title=label, subtitle=subtitle)


def xlab(label) -> Theme:
    return labs(x=label)


def ylab(label) -> Theme:
    return labs(y=label)
