"""HTML to Markdown conversion helpers backed by markdownify."""

from __future__ import annotations

import re

from markdownify import ATX, MarkdownConverter

_BLANK_RUNS = re.compile(r"\n(?:[ \t]*\n){2,}")
INLINE_IMAGE_PARENTS = ("td", "th", "h1", "h2", "h3", "h4", "h5", "h6")


class ArticleMarkdownConverter(MarkdownConverter):
    """markdownify converter tuned for article bodies.

    Links without visible text are dropped instead of being rendered as bare
    ``[](href)`` markup, and checkbox inputs become GFM task-list markers.
    """

    def __init__(self, **options) -> None:
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        options.setdefault("code_language", "")
        options.setdefault("escape_misc", False)
        options.setdefault("keep_inline_images_in", list(INLINE_IMAGE_PARENTS))
        super().__init__(**options)

    def convert_a(self, el, text, *args, **kwargs):
        if not text or not text.strip():
            return ""
        return super().convert_a(el, text, *args, **kwargs)

    def convert_input(self, el, text, *args, **kwargs):
        if (el.get("type") or "").lower() != "checkbox":
            return ""
        return "[x] " if el.has_attr("checked") else "[ ] "


def html_to_markdown(html: str) -> str:
    """Convert an HTML fragment to tidy Markdown."""
    if not html or not html.strip():
        return ""
    markdown = ArticleMarkdownConverter().convert(html)
    return _BLANK_RUNS.sub("\n\n", markdown).strip()
