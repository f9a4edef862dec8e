from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Sequence, TypeAlias, Union

from ggcompose.aes import Mapping, as_mapping
from ggcompose.data import DataSource

frozen_dataclass = dataclass(frozen=True)


def freeze(value: Any) -> Any:
    """Read-only view of `value`, applied recursively to nested dicts."""
    if isinstance(value, MappingABC):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    return value


def hashable(value: Any) -> Any:
    if isinstance(value, MappingABC):
        return tuple((k, hashable(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(hashable(v) for v in value)
    return value


class LayerValue:
    """
    Shared behaviour of layer dataclasses: dict fields are frozen on
    construction, so a layer can be reused across plots without being changed
    by any of them.
    """

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, MappingABC):
                object.__setattr__(self, f.name, freeze(value))

    def layer_hash(self) -> int:
        return hash((type(self), *(hashable(getattr(self, f.name)) for f in fields(self))))


@frozen_dataclass
class Geometry(LayerValue):
    """A geometric mark drawn from the plot's data, eg. points, bars or a smoother."""

    geom: str
    stat: str = "identity"
    mapping: Mapping = field(default_factory=dict)
    data: DataSource | None = None
    inherit_aes: bool = True
    style: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    # style keys given by the caller; these win over mapped channels
    fixed: frozenset[str] = frozenset()

    __hash__ = LayerValue.layer_hash


@frozen_dataclass
class Scale(LayerValue):
    """Controls how one channel maps data values to visual values."""

    channel: str
    transform: str = "identity"
    palette: Any = None
    style: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    __hash__ = LayerValue.layer_hash


@frozen_dataclass
class Theme(LayerValue):
    """Visual defaults. Later themes overwrite conflicting fields of earlier ones."""

    style: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    __hash__ = LayerValue.layer_hash


@frozen_dataclass
class Annotation(LayerValue):
    """A fixed overlay with its own data. Never inherits the plot mapping."""

    geom: str
    data: DataSource | None = None
    mapping: Mapping = field(default_factory=dict)
    style: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)
    fixed: frozenset[str] = frozenset()

    __hash__ = LayerValue.layer_hash


Layer: TypeAlias = Union[Geometry, Scale, Theme, Annotation]
LayerInput: TypeAlias = Union[Layer, Sequence["LayerInput"]]

LAYER_KINDS: dict[str, type] = {
    "geometry": Geometry,
    "scale": Scale,
    "theme": Theme,
    "annotation": Annotation,
}

# Built-in style defaults, keyed by geom name (geometry and annotation layers)
# or by channel (scale layers).
GEOM_DEFAULTS: dict[str, dict[str, Any]] = {
    "point": {"size": 1.5},
    "line": {"linewidth": 0.5},
    "area": {"fill": "#595959"},
    "col": {"fill": "#595959"},
    "bar": {"fill": "#595959"},
    "histogram": {"bins": 30, "fill": "#595959"},
    "smooth": {"colour": "#3366FF", "linewidth": 1},
    "errorbar": {"width": 0.5},
    "text": {"size": 11},
    "boxplot": {},
    "tile": {},
    "rect": {"fill": "#595959"},
    "hline": {"colour": "black"},
    "vline": {"colour": "black"},
}

SCALE_DEFAULTS: dict[str, dict[str, Any]] = {
    "x": {},
    "y": {},
    "colour": {"legend": True},
    "fill": {"legend": True},
}


def component_defaults(kind: str, parameters: dict[str, Any]) -> dict[str, Any]:
    if kind in ("geometry", "annotation"):
        return GEOM_DEFAULTS.get(parameters.get("geom"), {})
    if kind == "scale":
        return SCALE_DEFAULTS.get(parameters.get("channel"), {})
    return {}


def build_layer(
    kind: str,
    parameters: dict[str, Any] | None = None,
    style_overrides: dict[str, Any] | None = None,
    **extra: Any,
) -> Layer:
    """
    Construct a Layer from the component's default style merged with overrides.

    Args:
        kind: one of "geometry", "scale", "theme" or "annotation".
        parameters: structural fields of the layer (geom, stat, mapping, channel, ...).
        style_overrides: style values; these always win over the built-in defaults,
            and over mapped channels of the same name when rendered.
        **extra: forwarded verbatim to the rendering engine, never validated here.

    Returns:
        Layer: a new immutable layer value.
    """
    if kind not in LAYER_KINDS:
        raise ValueError(
            f"Unknown layer kind '{kind}', expected one of {list(LAYER_KINDS)}"
        )
    parameters = dict(parameters or {})
    style = {**component_defaults(kind, parameters), **(style_overrides or {})}
    if "data" in parameters and parameters["data"] is not None:
        parameters["data"] = DataSource(parameters["data"])
    if "mapping" in parameters:
        parameters["mapping"] = as_mapping(parameters["mapping"])
    if kind in ("geometry", "annotation"):
        parameters["fixed"] = frozenset(style_overrides or ())
    return LAYER_KINDS[kind](**parameters, style=style, extra=dict(extra))


def flatten_layers(layers: Sequence[Any]) -> list[Any]:
    """
    Merge nested lists of layers into a flat list, keeping their order.
    """
    return [
        item
        for layer in layers
        for item in (
            flatten_layers(layer) if isinstance(layer, (list, tuple)) else [layer]
        )
    ]


def is_layer(value: Any) -> bool:
    return isinstance(value, (Geometry, Scale, Theme, Annotation))
