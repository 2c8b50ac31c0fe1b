"""Flatten mistletoe inline tokens to Markdown text."""

from __future__ import annotations

from typing import Any

from mistletoe.span_token import (
    AutoLink,
    Emphasis,
    EscapeSequence,
    HtmlSpan,
    Image,
    InlineCode,
    LineBreak,
    Link,
    RawText,
    Strikethrough,
    Strong,
)


def render_inline(tokens: Any) -> str:
    """Render a sequence of span tokens back to Markdown source text."""
    return "".join(_render_span(token) for token in tokens or ())


def _render_span(token: Any) -> str:
    if isinstance(token, RawText):
        return token.content

    elif isinstance(token, Strong):
        return f"**{render_inline(token.children)}**"

    elif isinstance(token, Emphasis):
        return f"*{render_inline(token.children)}*"

    elif isinstance(token, Strikethrough):
        return f"~~{render_inline(token.children)}~~"

    elif isinstance(token, InlineCode):
        return f"`{extract_text(token)}`"

    elif isinstance(token, Image):
        return f"![{extract_text(token)}]({token.src})"

    elif isinstance(token, Link):
        title = getattr(token, "title", "") or ""
        title_part = f' "{title}"' if title else ""
        return f"[{render_inline(token.children)}]({token.target}{title_part})"

    elif isinstance(token, AutoLink):
        return f"<{extract_text(token)}>"

    elif isinstance(token, LineBreak):
        return "\n" if getattr(token, "soft", True) else "  \n"

    elif isinstance(token, EscapeSequence):
        return extract_text(token)

    elif isinstance(token, HtmlSpan):
        return getattr(token, "content", "") or ""

    elif getattr(token, "children", None):
        return render_inline(token.children)

    return getattr(token, "content", "") or ""


def extract_text(token: Any) -> str:
    """Extract plain text from a token."""
    if isinstance(token, RawText):
        return token.content
    elif getattr(token, "children", None):
        return "".join(extract_text(child) for child in token.children)
    return getattr(token, "content", "") or ""
