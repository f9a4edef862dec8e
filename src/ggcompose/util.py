import importlib.util
import pathlib
from collections.abc import Mapping
from typing import Any

PARENT_PATH = pathlib.Path(importlib.util.find_spec("ggcompose.util").origin).parent

CONFIG: dict[str, Any] = {"display_as": "widget", "theme": {}}


def configure(options: dict[str, Any] | None = None, **kwargs: Any) -> None:
    """
    Update global settings.

    Args:
        options: a dict of settings to merge into CONFIG.
        **kwargs: settings passed as keyword arguments, eg. display_as="html".
    """
    options = {**(options or {}), **kwargs}
    if "display_as" in options and options["display_as"] not in ["html", "widget"]:
        raise ValueError("display_as must be either 'html' or 'widget'")
    CONFIG.update(options)


def deep_merge(dict1: Mapping, dict2: Mapping) -> dict:
    """
    Recursively merge two dictionaries. Values from dict2 win on conflicting
    keys; nested dicts are merged rather than replaced. Neither input is mutated.
    """
    result = dict(dict1)
    for key, value in dict2.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result
