"""Declarative views: entities parsed from route config, rendered with kida."""

from pico.view.entities import (
    Field,
    FormEntity,
    FormKind,
    Link,
    LinksEntity,
    MarkdownEntity,
    ObjectEntity,
    TableEntity,
    ViewEntity,
    parse_entity,
    parse_view,
)
from pico.view.markdown import MarkdownRenderer, escape_markdown
from pico.view.renderer import (
    ViewRenderer,
    format_cell,
    markdown_source,
    object_html,
    resolve_href,
    table_data,
)
from pico.view.shape import Absent, Record, Records, Scalar, Shape, Values, classify

__all__ = [
    "Absent",
    "Field",
    "FormEntity",
    "FormKind",
    "Link",
    "LinksEntity",
    "MarkdownEntity",
    "MarkdownRenderer",
    "ObjectEntity",
    "Record",
    "Records",
    "Scalar",
    "Shape",
    "TableEntity",
    "Values",
    "ViewEntity",
    "ViewRenderer",
    "classify",
    "escape_markdown",
    "format_cell",
    "markdown_source",
    "object_html",
    "parse_entity",
    "parse_view",
    "resolve_href",
    "table_data",
]
