"""
Reusable plot components.

Anything you would add to a plot with + can be stored in a variable or
returned from a function: a single layer, a list of layers, or a mapping.
Functions that build whole plots return a PlotSpec, which can be extended
further by the caller.
"""

from typing import Any

from ggcompose.aes import Mapping, aes, capture_reference
from ggcompose.layers import Geometry, Layer, Theme
from ggcompose.plot import geom_histogram, geom_point, geom_smooth, labs, stat_summary
from ggcompose.plot_spec import PlotSpec, ggplot

# A single component can simply be a value.
bestfit = geom_smooth(method="lm", colour="steelblue", alpha=0.5, linewidth=2)


def geom_lm(colour="steelblue", linewidth=2, alpha=0.5, **kwargs: Any) -> Geometry:
    """A linear best-fit line; remaining arguments are passed on to geom_smooth."""
    return geom_smooth(method="lm", colour=colour, linewidth=linewidth, alpha=alpha, **kwargs)


def geom_mean(se: bool = True, **kwargs: Any) -> list[Layer]:
    """
    Bars at the mean of y for each x, with standard-error bars on top.

    Returns a list of layers; + flattens it into the plot.
    """
    bar = stat_summary(fun="mean", geom="bar", **{"fill": "#B3B3B3", **kwargs})
    if not se:
        return [bar]
    return [bar, stat_summary(fun_data="mean_se", geom="errorbar", width=0.4)]


def remove_labels() -> Theme:
    return labs(x=None, y=None)


def fill_by(var: Any) -> Mapping:
    """Map fill to `var`, eg. spec + fill_by(col("class"))."""
    return aes(fill=capture_reference(var))


def histogram_of(data: Any, var: Any, **kwargs: Any) -> PlotSpec:
    """
    Histogram of one column. `var` is a column name or col(...) from the caller;
    extra keyword arguments go to geom_histogram.
    """
    return ggplot(data, aes(x=capture_reference(var))) + geom_histogram(**kwargs)


def scatter_by(data: Any, x: Any, y: Any, colour: Any = None, **kwargs: Any) -> PlotSpec:
    mapping = aes(
        x=capture_reference(x),
        y=capture_reference(y),
        colour=None if colour is None else capture_reference(colour),
    )
    return ggplot(data, mapping) + geom_point(**kwargs)
