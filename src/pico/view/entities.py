"""View entities — the immutable building blocks of a route's view.

A view definition is an ordered tuple of entities. Entities are parsed
once from route configuration and never change afterwards::

    VIEW = [
        {"TYPE": "MARKDOWN"},
        {"TYPE": "LINKS", "LINKS": [{"value": "/", "label": "Home"}]},
    ]
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pico.errors import ConfigurationError


class FormKind(StrEnum):
    """Submission method of a form entity."""

    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True, slots=True)
class Link:
    """A navigation target with a display label."""

    target: str
    label: str = ""

    @property
    def text(self) -> str:
        return self.label or self.target


@dataclass(frozen=True, slots=True)
class Field:
    """One input of a form entity.

    ``type`` is the input category (``text``, ``number``, ``textarea``,
    ``submit``, ...). ``label`` and ``value`` are optional.
    """

    id: str
    type: str = "text"
    label: str | None = None
    value: str | None = None


@dataclass(frozen=True, slots=True)
class LinksEntity:
    """Static list of links. Ignores the pipeline result."""

    links: tuple[Link, ...] = ()


@dataclass(frozen=True, slots=True)
class FormEntity:
    """Static input form submitted with ``kind`` to ``target``."""

    kind: FormKind
    target: str
    title: str = ""
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True, slots=True)
class MarkdownEntity:
    """Renders the result as markdown."""


@dataclass(frozen=True, slots=True)
class ObjectEntity:
    """Renders the result as a labeled key/value display."""

    title: str = ""


@dataclass(frozen=True, slots=True)
class TableEntity:
    """Renders the result as a grid with auto-detected columns."""

    title: str = ""


type ViewEntity = LinksEntity | FormEntity | MarkdownEntity | ObjectEntity | TableEntity

_ENTITY_TYPES = (LinksEntity, FormEntity, MarkdownEntity, ObjectEntity, TableEntity)

_FORM_TYPES = {
    "POSTFORM": FormKind.POST,
    "PUTFORM": FormKind.PUT,
    "DELETEFORM": FormKind.DELETE,
}


def parse_view(spec: Any) -> tuple[ViewEntity, ...]:
    """Parse a view definition from route configuration.

    Accepts ``None``, a single entity mapping, or a sequence of entity
    mappings (or already-built entities). Order is preserved.

    Raises ``ConfigurationError`` for unknown entity types or malformed
    entity attributes.
    """
    if spec is None:
        return ()
    if isinstance(spec, Mapping) or isinstance(spec, _ENTITY_TYPES):
        spec = [spec]
    if isinstance(spec, (str, bytes)) or not isinstance(spec, Iterable):
        msg = f"VIEW must be a list of entities, got {type(spec).__name__}."
        raise ConfigurationError(msg)
    return tuple(parse_entity(item) for item in spec)


def parse_entity(item: Any) -> ViewEntity:
    """Parse one entity mapping (keys are case-insensitive)."""
    if isinstance(item, _ENTITY_TYPES):
        return item
    if not isinstance(item, Mapping):
        msg = f"View entity must be a mapping, got {type(item).__name__}."
        raise ConfigurationError(msg)

    attrs = _upper_keys(item)
    kind = str(attrs.get("TYPE", "")).upper()

    if kind == "LINKS":
        return LinksEntity(links=tuple(_parse_link(x) for x in _seq(attrs.get("LINKS"), "LINKS")))
    if kind in _FORM_TYPES:
        target = attrs.get("TARGET")
        if not isinstance(target, str) or not target:
            msg = f"{kind} entity requires a TARGET."
            raise ConfigurationError(msg)
        return FormEntity(
            kind=_FORM_TYPES[kind],
            target=target,
            title=str(attrs.get("TITLE") or ""),
            fields=tuple(_parse_field(x) for x in _seq(attrs.get("FIELDS"), "FIELDS")),
        )
    if kind == "MARKDOWN":
        return MarkdownEntity()
    if kind == "OBJECT":
        return ObjectEntity(title=str(attrs.get("TITLE") or ""))
    if kind == "TABLE":
        return TableEntity(title=str(attrs.get("TITLE") or ""))

    msg = f"Unknown view entity TYPE {attrs.get('TYPE')!r}."
    raise ConfigurationError(msg)


def _upper_keys(mapping: Mapping[Any, Any]) -> dict[str, Any]:
    return {str(k).upper(): v for k, v in mapping.items()}


def _seq(value: Any, name: str) -> Sequence[Any]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
        msg = f"{name} must be a list."
        raise ConfigurationError(msg)
    return value


def _parse_link(item: Any) -> Link:
    if isinstance(item, Link):
        return item
    if isinstance(item, str):
        return Link(target=item)
    if not isinstance(item, Mapping):
        msg = f"Link must be a mapping or string, got {type(item).__name__}."
        raise ConfigurationError(msg)
    attrs = _upper_keys(item)
    target = attrs.get("VALUE", attrs.get("TARGET", attrs.get("HREF")))
    if not isinstance(target, str):
        msg = "Link requires a string 'value'."
        raise ConfigurationError(msg)
    return Link(target=target, label=str(attrs.get("LABEL") or ""))


def _parse_field(item: Any) -> Field:
    if isinstance(item, Field):
        return item
    if not isinstance(item, Mapping):
        msg = f"Form field must be a mapping, got {type(item).__name__}."
        raise ConfigurationError(msg)
    attrs = _upper_keys(item)
    field_id = attrs.get("ID")
    if not isinstance(field_id, str) or not field_id:
        msg = "Form field requires an 'id'."
        raise ConfigurationError(msg)
    label = attrs.get("LABEL")
    value = attrs.get("VALUE")
    return Field(
        id=field_id,
        type=str(attrs.get("TYPE") or "text").lower(),
        label=None if label is None else str(label),
        value=None if value is None else str(value),
    )
