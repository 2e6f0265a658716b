"""View renderer — turn view entities plus a result into HTML.

Each entity renders independently from the same result, in declared
order; the fragments are concatenated and, for full-page responses,
wrapped in the layout. The result is classified once into a ``Shape``
and never mutated.
"""

import html
import json
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from kida import DictLoader, Environment
from kida.template import Markup

from pico.view.entities import (
    Field,
    FormEntity,
    LinksEntity,
    MarkdownEntity,
    ObjectEntity,
    TableEntity,
    ViewEntity,
)
from pico.view.markdown import MarkdownRenderer, escape_markdown
from pico.view.shape import Absent, Record, Records, Scalar, Shape, Values, classify
from pico.view.templates import TEMPLATES

DEFAULT_HTMX_SRC = "https://unpkg.com/htmx.org@2.0.4"

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


def format_cell(value: Any) -> str:
    """Text for one table cell or markdown value.

    ``None`` is empty, booleans are ``true``/``false``, nested values
    are compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def resolve_href(target: str) -> str:
    """Root relative targets at ``/``; leave absolute URLs alone.

    ``javascript:`` targets are neutralized.
    """
    target = target.strip()
    if target.lower().startswith("javascript:"):
        return "#"
    if target.startswith(("/", "#", "?")) or _SCHEME.match(target):
        return target
    return "/" + target


@dataclass(frozen=True, slots=True)
class TableData:
    """Columns and string cells of a rendered table."""

    columns: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


def table_data(shape: Shape) -> TableData:
    """Derive columns and rows from a result shape.

    Columns come from the first object's keys, in its order. Later
    objects missing a column get an empty cell; keys the first object
    lacks are not shown.
    """
    match shape:
        case Absent():
            return TableData((), ())
        case Scalar(value):
            return TableData(("value",), ((format_cell(value),),))
        case Values(items):
            return TableData(("value",), tuple((format_cell(v),) for v in items))
        case Record(fields):
            columns = tuple(str(k) for k in fields)
            return TableData(columns, (tuple(format_cell(v) for v in fields.values()),))
        case Records(rows):
            columns = tuple(str(k) for k in rows[0])
            return TableData(columns, tuple(_table_row(columns, row) for row in rows))
    msg = f"Unhandled result shape {shape!r}"
    raise TypeError(msg)


def _table_row(columns: tuple[str, ...], row: Any) -> tuple[str, ...]:
    if isinstance(row, Mapping):
        return tuple(format_cell(row[c]) if c in row else "" for c in columns)
    # A stray non-object row shows its value in the first column.
    return (format_cell(row), *("" for _ in columns[1:]))


def markdown_source(shape: Shape) -> str:
    """Markdown text for a result shape.

    Strings render verbatim; objects become ``**key**: value`` lines with
    values escaped so data never turns into markup.
    """
    match shape:
        case Absent():
            return ""
        case Scalar(value):
            return value if isinstance(value, str) else format_cell(value)
        case Record(fields):
            return _markdown_record(fields)
        case Records(rows) | Values(rows):
            return "\n\n---\n\n".join(_markdown_item(item) for item in rows)
    msg = f"Unhandled result shape {shape!r}"
    raise TypeError(msg)


def _markdown_record(fields: Mapping[str, Any]) -> str:
    return "  \n".join(
        f"**{escape_markdown(str(key))}**: {escape_markdown(format_cell(value))}"
        for key, value in fields.items()
    )


def _markdown_item(item: Any) -> str:
    if isinstance(item, Mapping):
        return _markdown_record(item)
    return escape_markdown(format_cell(item))


def object_html(value: Any) -> str:
    """Recursive key/value markup: ``<dl>`` for objects, ``<ol>`` for lists."""
    if isinstance(value, Mapping):
        items = "".join(
            f"<dt>{html.escape(str(k))}</dt><dd>{object_html(v)}</dd>" for k, v in value.items()
        )
        return f"<dl>{items}</dl>"
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        items = "".join(f"<li>{object_html(v)}</li>" for v in value)
        return f"<ol>{items}</ol>"
    return html.escape(format_cell(value))


@dataclass(frozen=True, slots=True)
class _LinkContext:
    href: str
    text: str


@dataclass(frozen=True, slots=True)
class _FieldContext:
    id: str
    type: str
    control: str
    label: str
    value: str
    has_value: bool
    caption: str


@dataclass(frozen=True, slots=True)
class _FormContext:
    action: str
    method: str
    title: str
    fields: tuple[_FieldContext, ...]


def _field_context(field: Field) -> _FieldContext:
    control = field.type if field.type in ("submit", "textarea") else "input"
    return _FieldContext(
        id=field.id,
        type=field.type,
        control=control,
        # Submit buttons carry their label as the caption instead.
        label="" if control == "submit" else (field.label or ""),
        value=field.value or "",
        has_value=field.value is not None,
        caption=field.value or field.label or "Submit",
    )


class ViewRenderer:
    """Render view definitions with kida templates.

    Usage::

        renderer = ViewRenderer(title="Blog")
        page = renderer.render(route.view, result)
        fragment = renderer.render_fragment(route.view, result)
    """

    __slots__ = ("_env", "_htmx_src", "_markdown", "_title")

    def __init__(
        self,
        *,
        title: str = "pico",
        htmx_src: str | None = DEFAULT_HTMX_SRC,
        markdown: MarkdownRenderer | None = None,
    ) -> None:
        self._title = title
        self._htmx_src = htmx_src or ""
        self._markdown = markdown or MarkdownRenderer()
        self._env = Environment(loader=DictLoader(TEMPLATES), autoescape=True)

    def render(
        self,
        view: Sequence[ViewEntity],
        result: Any,
        *,
        full_page: bool = True,
    ) -> str:
        """Render every entity of *view* against *result*, in order."""
        shape = classify(result)
        body = "".join(self.render_entity(entity, shape) for entity in view)
        if not full_page:
            return body
        return self._template(
            "layout.html", title=self._title, htmx_src=self._htmx_src, body=Markup(body)
        )

    def render_fragment(self, view: Sequence[ViewEntity], result: Any) -> str:
        """Entity markup without the layout, for htmx swaps."""
        return self.render(view, result, full_page=False)

    def render_entity(self, entity: ViewEntity, shape: Shape) -> str:
        """Render a single entity against an already-classified result."""
        match entity:
            case LinksEntity(links):
                contexts = [_LinkContext(href=resolve_href(x.target), text=x.text) for x in links]
                return self._template("links.html", links=contexts)
            case FormEntity():
                form = _FormContext(
                    action=resolve_href(entity.target),
                    method=entity.kind.value.lower(),
                    title=entity.title,
                    fields=tuple(_field_context(f) for f in entity.fields),
                )
                return self._template("form.html", form=form)
            case MarkdownEntity():
                rendered = self._markdown.render(markdown_source(shape))
                return self._template("markdown.html", html=Markup(rendered))
            case ObjectEntity(title):
                body = object_html(_plain(shape))
                return self._template("object.html", title=title, body=Markup(body))
            case TableEntity(title):
                data = table_data(shape)
                return self._template(
                    "table.html", title=title, columns=data.columns, rows=data.rows
                )
        msg = f"Unknown view entity {entity!r}"
        raise TypeError(msg)

    def _template(self, name: str, **context: Any) -> str:
        return self._env.get_template(name).render(context)


def _plain(shape: Shape) -> Any:
    """Back from a shape to plain data for recursive rendering."""
    match shape:
        case Absent():
            return {}
        case Scalar(value):
            return value
        case Record(fields):
            return fields
        case Records(rows) | Values(rows):
            return list(rows)
    return None
