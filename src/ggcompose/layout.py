import copy
import os
import uuid
from typing import Any, Sequence

from html2image import Html2Image
from PIL import Image

from ggcompose.util import CONFIG, PARENT_PATH
from ggcompose.widget import Widget, to_json_string

DISPLAY_MODES = ("html", "widget")

SNIPPET = """
<div class="ggcompose" id="{id}"></div>
<script type="application/json">{data}</script>
<script type="module">
{renderer}
const container = document.getElementById("{id}");
renderData(container, JSON.parse(container.nextElementSibling.textContent));
</script>
"""

PAGE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>ggcompose</title>
</head>
<body>
{body}
</body>
</html>
"""


def new_id() -> str:
    return f"ggcompose-{uuid.uuid4().hex}"


def create_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


def html_snippet(ast: Any, id: str | None = None) -> str:
    """
    A <div> plus the scripts that draw `ast` into it.

    js/widget.js is inlined, so the snippet needs no widget frontend; Observable
    Plot itself is imported from a CDN.
    """
    renderer = (PARENT_PATH / "js/widget.js").read_text()
    return SNIPPET.format(id=id or new_id(), data=to_json_string(ast), renderer=renderer)


def html_standalone(ast: Any, id: str | None = None) -> str:
    return PAGE.format(body=html_snippet(ast, id))


class HTML:
    """Static HTML output for notebooks without a widget frontend."""

    def __init__(self, ast: Any):
        self.ast = ast
        self.id = new_id()

    def _repr_mimebundle_(self, **kwargs):
        return {"text/html": html_snippet(self.ast, self.id)}, {}


class LayoutItem:
    """
    Something that can be shown in a notebook, saved, or laid out next to
    other items with & (row) and | (column). Subclasses implement for_json().
    """

    def __init__(self):
        self._html: HTML | None = None
        self._widget: Widget | None = None
        self._display_as: str | None = None

    def for_json(self) -> Any:
        raise NotImplementedError("Subclasses must implement for_json method")

    def display_as(self, display_as: str) -> "LayoutItem":
        """Return a copy of this item shown as "html" or "widget", whatever CONFIG says."""
        if display_as not in DISPLAY_MODES:
            raise ValueError("display_as must be either 'html' or 'widget'")
        item = copy.copy(self)
        item._html = None
        item._widget = None
        item._display_as = display_as
        return item

    def __and__(self, other: Any) -> "Row":
        return Row(self, other)

    def __rand__(self, other: Any) -> "Row":
        return Row(other, self)

    def __or__(self, other: Any) -> "Column":
        return Column(self, other)

    def __ror__(self, other: Any) -> "Column":
        return Column(other, self)

    def html(self) -> HTML:
        if self._html is None:
            self._html = HTML(self.for_json())
        return self._html

    def widget(self) -> Widget:
        if self._widget is None:
            self._widget = Widget(self.for_json())
        return self._widget

    def repr(self) -> Widget | HTML:
        if (self._display_as or CONFIG["display_as"]) == "widget":
            return self.widget()
        return self.html()

    def _repr_mimebundle_(self, **kwargs: Any) -> Any:
        return self.repr()._repr_mimebundle_(**kwargs)

    def save_html(self, path: str) -> None:
        create_parent_dir(path)
        with open(path, "w") as f:
            f.write(html_standalone(self.for_json()))
        print(f"HTML saved to {path}")

    def save_image(self, path: str, width: int = 500, height: int = 1000) -> None:
        """
        Screenshot the plot with a headless browser (via html2image) and crop
        the transparent margin around it.
        """
        create_parent_dir(path)
        browser = Html2Image()
        browser.size = (width, height)
        browser.output_path = os.path.dirname(os.path.abspath(path))
        browser.screenshot(
            html_str=html_standalone(self.for_json()), save_as=os.path.basename(path)
        )

        with Image.open(path) as image:
            cropped = image.crop(image.getbbox())
        cropped.save(path)
        print(f"Image saved to {path}")


def flatten_layout_items(
    items: Sequence[Any], layout_class: type
) -> tuple[list[Any], dict[str, Any]]:
    """Inline nested layouts of the same direction; dicts are layout options."""
    flattened: list[Any] = []
    options: dict[str, Any] = {}
    for item in items:
        if isinstance(item, layout_class):
            flattened.extend(item.items)
            options.update(item.options)
        elif isinstance(item, dict):
            options.update(item)
        else:
            flattened.append(item)
    return flattened, options


class Row(LayoutItem):
    "Render plots side by side."

    def __init__(self, *items: Any, **kwargs):
        super().__init__()
        self.items, options = flatten_layout_items(items, Row)
        self.options = options | kwargs

    def for_json(self) -> Any:
        return {"layout": "row", "options": self.options, "items": self.items}


class Column(LayoutItem):
    """Render plots stacked vertically."""

    def __init__(self, *items: Any, **kwargs):
        super().__init__()
        self.items, options = flatten_layout_items(items, Column)
        self.options = options | kwargs

    def for_json(self) -> Any:
        return {"layout": "column", "options": self.options, "items": self.items}
