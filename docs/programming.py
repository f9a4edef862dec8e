# %%
import pandas as pd

import ggcompose.plot as Plot
from ggcompose.components import geom_lm, geom_mean, histogram_of, remove_labels

# %% [markdown]
# # Programming with ggcompose
#
# A plot is data, a mapping, and a list of layers. Because every layer is an
# ordinary Python value, anything you would add with `+` can be stored in a
# variable, returned from a function, or combined into lists. This chapter
# shows how to turn repeated plotting code into reusable components.

# %%
mpg = pd.DataFrame(
    {
        "displ": [1.8, 1.8, 2.0, 2.8, 3.1, 4.2, 5.3, 5.7],
        "hwy": [29, 29, 31, 26, 25, 20, 17, 16],
        "cty": [18, 21, 20, 16, 17, 14, 12, 11],
        "drv": ["f", "f", "f", "4", "4", "4", "r", "r"],
        "class": ["compact", "compact", "compact", "midsize", "suv", "suv", "suv", "2seater"],
    }
)

# %% [markdown]
# ## Single components
#
# A layer is a value. Here is a best-fit line we might want on many plots:

# %%
bestfit = Plot.geom_smooth(method="lm", colour="steelblue", alpha=0.5, linewidth=2)

Plot.ggplot(mpg, Plot.aes(x="cty", y="hwy")) + Plot.geom_point() + bestfit

# %% [markdown]
# To make it configurable, wrap it in a function. Extra keyword arguments are
# forwarded, so anything geom_smooth (or Observable Plot) accepts still works:

# %%
(
    Plot.ggplot(mpg, Plot.aes(x="displ", y="hwy"))
    + Plot.geom_point()
    + geom_lm(colour="red", tip=True)
)

# %% [markdown]
# ## Multiple components
#
# A function can return a list of layers; `+` flattens it into the plot.
# `geom_mean()` draws the mean of y for each x, with standard-error bars:

# %%
Plot.ggplot(mpg, Plot.aes(x="drv", y="hwy")) + geom_mean()

# %%
Plot.ggplot(mpg, Plot.aes(x="drv", y="cty")) + geom_mean(se=False, fill="pink")

# %% [markdown]
# Lists can hold scales, themes and labels too:

# %%
house_style = [Plot.theme_minimal(), Plot.scale_colour_brewer("Set2"), remove_labels()]

Plot.ggplot(mpg, Plot.aes(x="displ", y="hwy", colour="drv")) + Plot.geom_point() + house_style

# %% [markdown]
# ## Annotations
#
# Annotation layers carry their own data and never inherit the plot's mapping:

# %%
(
    Plot.ggplot(mpg, Plot.aes(x="displ", y="hwy", colour="class"))
    + Plot.geom_point()
    + Plot.annotate("rect", xmin=5, xmax=6, ymin=10, ymax=20, alpha=0.2)
    + Plot.annotate("text", x=5.5, y=21, label="large engines")
)

# %% [markdown]
# ## Plot functions
#
# A function can also build a whole plot. Column names chosen by the caller are
# passed as `col(...)` references and forwarded unchanged, so the wrapper's own
# parameter name never shows up as a column or an axis label:

# %%
histogram_of(mpg, Plot.col("hwy"), bins=10, fill="pink")


# %%
def point_by(data, x, y, var):
    return Plot.ggplot(data, Plot.aes(x=x, y=y)) + Plot.geom_point(Plot.aes(fill=var))


point_by(mpg, "displ", "hwy", Plot.col("class"))

# %% [markdown]
# A channel can also be computed from the data with `expr(...)`; the function
# receives the layer's DataFrame when the plot is drawn:

# %%
Plot.ggplot(mpg, Plot.aes(x="displ", y=Plot.expr(lambda d: d.hwy / d.cty))) + Plot.geom_point()

# %% [markdown]
# ## Swapping the data
#
# `%` replaces the data of a plot and keeps its mapping and layers, like
# ggplot2's `%+%`:

# %%
base = Plot.ggplot(mpg, Plot.aes(x="displ", y="hwy")) + Plot.geom_point() + bestfit
small_engines = mpg[mpg["displ"] < 3]

base % small_engines

# %% [markdown]
# Exercise: why does rendering the following plot fail? The mapping still
# refers to `displ` and `hwy`, which the new data does not have, so it raises
# `MissingColumnError` when it is drawn.

# %%
try:
    (base % pd.DataFrame({"Value": [1, 2, 3]})).for_json()
except Plot.MissingColumnError as e:
    print(e)

# %% [markdown]
# ## Side by side
#
# Plots lay out with `&` (row) and `|` (column):

# %%
(base + Plot.ggtitle("all")) & (base % small_engines + Plot.ggtitle("displ < 3"))
