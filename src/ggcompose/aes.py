from dataclasses import dataclass
from typing import Any, Callable, TypeAlias, Union

frozen_dataclass = dataclass(frozen=True)


@frozen_dataclass
class ColumnRef:
    """
    A reference to a column of the plot's data, resolved at render time.

    Wrapper functions pass ColumnRefs through unchanged, so the column chosen by
    the outer caller ends up in the inner mapping (and in axis labels) instead
    of the wrapper's own parameter name.
    """

    name: str

    def __repr__(self):
        return f"col({self.name!r})"


@frozen_dataclass
class Literal:
    """A constant value inlined into a mapping, eg. aes(colour=lit("loess"))."""

    value: Any

    def __repr__(self):
        return f"lit({self.value!r})"


@frozen_dataclass
class Expression:
    """
    A value computed from the data at render time, eg. expr(lambda d: d.hwy / d.cty).

    `fn` receives the layer's DataFrame and returns a Series, array or scalar.
    """

    fn: Callable[[Any], Any]

    def __repr__(self):
        return f"expr({getattr(self.fn, '__name__', self.fn)})"


Binding: TypeAlias = Union[ColumnRef, Literal, Expression]
Mapping: TypeAlias = dict[str, Binding]

BINDING_TYPES = (ColumnRef, Literal, Expression)


def col(name: str) -> ColumnRef:
    """Marks `name` as a column of the data rather than a plain value."""
    return ColumnRef(name)


def lit(value: Any) -> Literal:
    return Literal(value)


def expr(fn: Callable[[Any], Any]) -> Expression:
    if not callable(fn):
        raise TypeError(f"expr() needs a function of the data, got {type(fn).__name__}")
    return Expression(fn)


def capture_reference(value: Any, capture: bool = True) -> Binding:
    """
    Resolve a parameter into a mapping binding.

    - ColumnRef, Literal and Expression values are forwarded unchanged.
    - A bare string is bound to the column of that name when `capture` is true.
    - Anything else (or any value when `capture` is false) is inlined as a Literal.
    """
    if isinstance(value, BINDING_TYPES):
        return value
    if capture and isinstance(value, str):
        return ColumnRef(value)
    return Literal(value)


def aes(x: Any = None, y: Any = None, **kwargs: Any) -> Mapping:
    """
    Build a mapping from channel names to columns.

    Strings name columns; use lit() to map a constant, expr() to compute values
    from the data, and col() to forward a reference received from a caller.
    Channels left as None are omitted.
    """
    return as_mapping({"x": x, "y": y, **kwargs})


def as_mapping(channels: dict[str, Any] | None) -> Mapping:
    """Normalise a plain dict of channel bindings into a Mapping."""
    return {
        k: capture_reference(v) for k, v in (channels or {}).items() if v is not None
    }
