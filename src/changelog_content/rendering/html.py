"""Render block-tree documents to HTML."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from changelog_content.documents.models import (
    AUDIO,
    BULLET_LIST_ITEM,
    CHECK_LIST_ITEM,
    CODE_BLOCK,
    DEFAULT_MAX_DEPTH,
    FILE,
    HEADING,
    IMAGE,
    NUMBERED_LIST_ITEM,
    PARAGRAPH,
    TABLE,
    TABLE_CELL,
    TABLE_ROW,
    VIDEO,
    Block,
    InlineItem,
    LinkRun,
    TextRun,
    coerce_document,
)
from changelog_content.errors import RenderingError

logger = logging.getLogger(__name__)

_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


def escape_html(text: str) -> str:
    """Replace the five HTML-significant characters with entities."""

    return text.translate(_ESCAPES)


def render_inline(items: Optional[Iterable[InlineItem]]) -> str:
    if not items:
        return ""
    return "".join(_render_inline_item(item) for item in items)


def _render_inline_item(item: InlineItem) -> str:
    if isinstance(item, str):
        return escape_html(item)
    if isinstance(item, TextRun):
        return _render_text_run(item)
    if isinstance(item, LinkRun):
        return (
            f'<a href="{escape_html(item.href)}" target="_blank" rel="noopener noreferrer">'
            f"{escape_html(item.content)}</a>"
        )
    return ""


def _render_text_run(run: TextRun) -> str:
    styles = run.styles
    text = escape_html(run.text)
    # Wrapped innermost first so the markup reads bold > italic > underline >
    # strike > code > text colour > background colour from the outside in.
    if styles.background_color:
        text = f'<span style="background-color: {escape_html(styles.background_color)}">{text}</span>'
    if styles.text_color:
        text = f'<span style="color: {escape_html(styles.text_color)}">{text}</span>'
    if styles.code:
        text = f"<code>{text}</code>"
    if styles.strike:
        text = f"<s>{text}</s>"
    if styles.underline:
        text = f"<u>{text}</u>"
    if styles.italic:
        text = f"<em>{text}</em>"
    if styles.bold:
        text = f"<strong>{text}</strong>"
    return text


class HtmlRenderer:
    """Walk a document and produce HTML, dispatching on each block's type.

    Nested children deeper than ``max_depth``, and children that repeat one of
    their enclosing blocks, are dropped with a warning.
    """

    def __init__(self, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 0:
            raise ValueError("max_depth must not be negative")
        self.max_depth = max_depth
        self._handlers: dict[str, Callable[[Block, tuple[int, ...]], str]] = {
            PARAGRAPH: self._render_paragraph,
            HEADING: self._render_heading,
            BULLET_LIST_ITEM: self._render_bullet_item,
            NUMBERED_LIST_ITEM: self._render_numbered_item,
            CHECK_LIST_ITEM: self._render_check_item,
            TABLE: self._render_table,
            TABLE_ROW: self._render_table_row,
            TABLE_CELL: self._render_table_cell,
            CODE_BLOCK: self._render_code_block,
            IMAGE: self._render_image,
            VIDEO: self._render_video,
            AUDIO: self._render_audio,
            FILE: self._render_file,
        }

    def render(self, document: Any) -> str:
        """Return the HTML for ``document``, one top-level block per line."""

        try:
            parsed = coerce_document(document, max_depth=self.max_depth)
        except TypeError as exc:
            raise RenderingError(f"Cannot render content of type {type(document).__name__}") from exc

        rendered = (self.render_block(block) for block in parsed)
        return "\n".join(html for html in rendered if html)

    def render_block(self, block: Block, ancestors: tuple[int, ...] = ()) -> str:
        """Render one block; ``ancestors`` are the ids of the blocks enclosing it."""

        handler = self._handlers.get(block.type, self._render_fallback)
        return handler(block, ancestors)

    # ------------------------------------------------------------------
    # Block handlers
    # ------------------------------------------------------------------
    def _render_fallback(self, block: Block, ancestors: tuple[int, ...]) -> str:
        if block.content is None:
            return ""
        return self._render_paragraph(block, ancestors)

    def _render_paragraph(self, block: Block, ancestors: tuple[int, ...]) -> str:
        return f"<p>{render_inline(block.content)}</p>"

    def _render_heading(self, block: Block, ancestors: tuple[int, ...]) -> str:
        level = block.props.level
        return f"<h{level}>{render_inline(block.content)}</h{level}>"

    def _render_bullet_item(self, block: Block, ancestors: tuple[int, ...]) -> str:
        return f"<li>{render_inline(block.content)}{self._nested_list(block, ancestors, 'ul')}</li>"

    def _render_numbered_item(self, block: Block, ancestors: tuple[int, ...]) -> str:
        return f"<li>{render_inline(block.content)}{self._nested_list(block, ancestors, 'ol')}</li>"

    def _render_check_item(self, block: Block, ancestors: tuple[int, ...]) -> str:
        checkbox = '<input type="checkbox" checked disabled>' if block.props.checked else (
            '<input type="checkbox" disabled>'
        )
        return (
            f"<li>{checkbox} {render_inline(block.content)}"
            f"{self._nested_list(block, ancestors, 'ul')}</li>"
        )

    def _render_table(self, block: Block, ancestors: tuple[int, ...]) -> str:
        if block.table_rows is not None and not block.children:
            rows = "".join(
                "<tr>" + "".join(f"<td>{render_inline(cell)}</td>" for cell in row) + "</tr>"
                for row in block.table_rows
            )
        else:
            rows = "".join(
                self._render_table_row(child, (*ancestors, id(block)))
                for child in self._children(block, ancestors)
                if child.type == TABLE_ROW
            )
        return f"<table><tbody>{rows}</tbody></table>"

    def _render_table_row(self, block: Block, ancestors: tuple[int, ...]) -> str:
        cells = "".join(
            self._render_table_cell(child, (*ancestors, id(block)))
            for child in self._children(block, ancestors)
            if child.type == TABLE_CELL
        )
        return f"<tr>{cells}</tr>"

    def _render_table_cell(self, block: Block, ancestors: tuple[int, ...]) -> str:
        return f"<td>{render_inline(block.content)}</td>"

    def _render_code_block(self, block: Block, ancestors: tuple[int, ...]) -> str:
        language = escape_html(block.props.language)
        first = block.content[0] if block.content else ""
        if isinstance(first, TextRun):
            code = first.text
        else:
            code = first if isinstance(first, str) else ""
        return f'<pre><code class="language-{language}">{escape_html(code)}</code></pre>'

    def _render_image(self, block: Block, ancestors: tuple[int, ...]) -> str:
        props = block.props
        width = f' width="{escape_html(props.width)}"' if props.width else ""
        return f'<img src="{escape_html(props.url)}" alt="{escape_html(props.caption)}"{width} />'

    def _render_video(self, block: Block, ancestors: tuple[int, ...]) -> str:
        return f'<video controls><source src="{escape_html(block.props.url)}" /></video>'

    def _render_audio(self, block: Block, ancestors: tuple[int, ...]) -> str:
        return f'<audio controls><source src="{escape_html(block.props.url)}" /></audio>'

    def _render_file(self, block: Block, ancestors: tuple[int, ...]) -> str:
        name = block.props.name or "Download"
        return f'<a href="{escape_html(block.props.url)}" download>{escape_html(name)}</a>'

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _children(self, block: Block, ancestors: tuple[int, ...]) -> list[Block]:
        if not block.children:
            return []
        if len(ancestors) + 1 > self.max_depth:
            logger.warning(
                "Skipping %d nested block(s) of %r below depth %d",
                len(block.children),
                block.type,
                self.max_depth,
            )
            return []
        path = {*ancestors, id(block)}
        children = [child for child in block.children if id(child) not in path]
        if len(children) < len(block.children):
            logger.warning(
                "Skipping %d nested block(s) of %r that repeat an enclosing block",
                len(block.children) - len(children),
                block.type,
            )
        return children

    def _nested_list(self, block: Block, ancestors: tuple[int, ...], tag: str) -> str:
        path = (*ancestors, id(block))
        inner = "".join(self.render_block(child, path) for child in self._children(block, ancestors))
        return f"<{tag}>{inner}</{tag}>" if inner else ""


def render(document: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Render ``document`` to HTML using a default :class:`HtmlRenderer`."""

    return HtmlRenderer(max_depth=max_depth).render(document)
