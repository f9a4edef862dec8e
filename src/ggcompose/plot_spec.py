from typing import Any, Sequence

from ggcompose.aes import Mapping, as_mapping
from ggcompose.data import DataSource, as_data_source
from ggcompose.layers import Layer, LayerInput, flatten_layers, is_layer
from ggcompose.layout import LayoutItem
from ggcompose.render import render


class PlotSpec(LayoutItem):
    """
    Represents a plot: base data, a mapping, and an ordered sequence of layers.

    PlotSpecs are never mutated; every operation returns a new PlotSpec.
    They compose with the + operator:

    - a Layer, or a (nested) list of layers, is appended;
    - a dict is treated as a mapping override (see rebind_mapping);
    - another PlotSpec contributes its layers.

    `spec % new_data` swaps the data while keeping the mapping.

    Args:
        data: a DataFrame, dict of columns, list of records or DataSource.
        mapping: channel bindings, usually built with aes().
        layers: initial layers.
    """

    def __init__(
        self,
        data: Any = None,
        mapping: Mapping | None = None,
        layers: Sequence[LayerInput] = (),
    ) -> None:
        super().__init__()
        self.data: DataSource = as_data_source(data)
        self.mapping: Mapping = as_mapping(mapping)
        self.layers: tuple[Layer, ...] = tuple(flatten_layers(layers))
        for layer in self.layers:
            if not is_layer(layer):
                raise TypeError(f"Cannot add {type(layer).__name__} as a plot layer")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlotSpec):
            return NotImplemented
        return (
            self.data == other.data
            and self.mapping == other.mapping
            and self.layers == other.layers
        )

    def __repr__(self):
        kinds = ", ".join(type(layer).__name__ for layer in self.layers)
        return f"<PlotSpec data={self.data!r} mapping={self.mapping!r} layers=[{kinds}]>"

    def __add__(self, to_add: Any) -> "PlotSpec":
        """
        Combine this PlotSpec with layers, a mapping override, or another PlotSpec.

        Returns:
            A new PlotSpec.
        """
        if isinstance(to_add, PlotSpec):
            return compose(self, to_add.layers)
        if isinstance(to_add, dict):
            return rebind_mapping(self, as_mapping(to_add))
        return compose(self, [to_add])

    def __radd__(self, to_add: Any) -> "PlotSpec":
        # layer + spec puts the layer underneath the spec's own layers
        items = flatten_layers([to_add])
        if not all(is_layer(item) for item in items):
            return NotImplemented
        return self.derive(self.data, self.mapping, [*items, *self.layers])

    def __mod__(self, new_data: Any) -> "PlotSpec":
        return rebind_data(self, new_data)

    def derive(self, data: Any, mapping: Mapping, layers: Sequence[LayerInput]) -> "PlotSpec":
        """A new PlotSpec from the given parts, keeping how this one is displayed."""
        spec = PlotSpec(data, mapping, layers)
        spec._display_as = self._display_as
        return spec

    def for_json(self) -> Any:
        return render(self)


def compose(base: PlotSpec, layers: Sequence[LayerInput]) -> PlotSpec:
    """
    Append layers (flattening nested lists) to `base`, returning a new PlotSpec.
    """
    return base.derive(base.data, base.mapping, [*base.layers, *flatten_layers(layers)])


def rebind_data(spec: PlotSpec, new_data: Any) -> PlotSpec:
    """
    Replace the data of `spec`, keeping its mapping and layers.

    Columns referenced by the mapping are not checked here: a mismatch fails
    when the plot is rendered.
    """
    return spec.derive(new_data, spec.mapping, spec.layers)


def rebind_mapping(spec: PlotSpec, overrides: Mapping) -> PlotSpec:
    """
    Merge `overrides` into the mapping of `spec`; other channels are kept.
    """
    return spec.derive(spec.data, {**spec.mapping, **as_mapping(overrides)}, spec.layers)


def ggplot(data: Any = None, mapping: Mapping | None = None) -> PlotSpec:
    """Create a new PlotSpec with base data and mapping."""
    return PlotSpec(data, mapping)
