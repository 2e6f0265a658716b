"""Markdown rendering via patitas.

A thin, stable interface over ``patitas.Markdown`` so the view renderer
does not depend on patitas' constructor details.
"""

import re

from patitas import Markdown

# CommonMark lets any ASCII punctuation be backslash-escaped.
_MD_SPECIAL = re.compile(r"([\\`*_{}\[\]()#+\-.!|<>&~])")


class MarkdownRenderer:
    """Render Markdown source to HTML.

    Args:
        plugins: Patitas plugins to enable (default: all).
        highlight: Enable syntax highlighting for fenced code blocks.
    """

    __slots__ = ("_md",)

    def __init__(self, *, plugins: list[str] | None = None, highlight: bool = False) -> None:
        self._md = Markdown(plugins=plugins or ["all"], highlight=highlight)

    def render(self, source: str) -> str:
        """Render Markdown source to an HTML string."""
        if not source:
            return ""
        return self._md(source)


def escape_markdown(text: str) -> str:
    """Make *text* render literally: no emphasis, links, or raw HTML.

    Newlines collapse to spaces so a value stays on its own line.
    """
    return _MD_SPECIAL.sub(r"\\\1", " ".join(text.splitlines()))
