"""Content conversion helpers between block documents, Markdown and HTML."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from markdown_it import MarkdownIt
from markdown_it.token import Token
from markdownify import markdownify as to_markdown

from changelog_content.documents.models import (
    BULLET_LIST_ITEM,
    CHECK_LIST_ITEM,
    CODE_BLOCK,
    DEFAULT_MAX_DEPTH,
    HEADING,
    IMAGE,
    NUMBERED_LIST_ITEM,
    PARAGRAPH,
    TABLE,
    TABLE_CELL,
    TABLE_ROW,
    Block,
    BlockProps,
    Document,
    InlineItem,
    LinkRun,
    Styles,
    TextRun,
)

from .html import HtmlRenderer

_TASK_MARKERS = {"[ ] ": False, "[x] ": True, "[X] ": True}


class ContentConverter:
    """Translate between block documents, Markdown and HTML."""

    def __init__(self, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._markdown = MarkdownIt("commonmark").enable(["table", "strikethrough"])
        self._renderer = HtmlRenderer(max_depth=max_depth)

    def markdown_to_document(self, markdown: str) -> Document:
        """Parse Markdown into a block document."""

        tokens = self._markdown.parse(markdown)
        blocks, _ = _parse_blocks(tokens, 0, None)
        return Document.from_blocks(blocks)

    def document_to_html(self, document: Any) -> str:
        return self._renderer.render(document)

    def html_to_markdown(self, html: str) -> str:
        return to_markdown(html, heading_style="ATX", bullets="-").strip()

    def document_to_markdown(self, document: Any) -> str:
        return self.html_to_markdown(self.document_to_html(document))


# ----------------------------------------------------------------------
# Block-level token walk
# ----------------------------------------------------------------------
def _parse_blocks(
    tokens: Sequence[Token], index: int, stop: Optional[str]
) -> tuple[list[Block], int]:
    """Convert tokens from ``index`` until a ``stop`` token type into blocks."""

    blocks: list[Block] = []
    while index < len(tokens):
        token = tokens[index]
        if stop is not None and token.type == stop:
            return blocks, index + 1

        if token.type == "heading_open":
            blocks.append(
                Block(
                    type=HEADING,
                    props=BlockProps(level=int(token.tag[1:])),
                    content=_parse_inline(tokens[index + 1]),
                )
            )
            index += 3
        elif token.type == "paragraph_open":
            blocks.append(_paragraph_block(tokens[index + 1]))
            index += 3
        elif token.type in ("bullet_list_open", "ordered_list_open"):
            item_type = BULLET_LIST_ITEM if token.type == "bullet_list_open" else NUMBERED_LIST_ITEM
            close = token.type.replace("_open", "_close")
            items, index = _parse_list(tokens, index + 1, close, item_type)
            blocks.extend(items)
        elif token.type in ("fence", "code_block"):
            language = token.info.split()[0] if token.info.strip() else ""
            blocks.append(
                Block(
                    type=CODE_BLOCK,
                    props=BlockProps(language=language),
                    content=[token.content.rstrip("\n")],
                )
            )
            index += 1
        elif token.type == "table_open":
            table, index = _parse_table(tokens, index + 1)
            blocks.append(table)
        elif token.type == "blockquote_open":
            quoted, index = _parse_blocks(tokens, index + 1, "blockquote_close")
            blocks.extend(quoted)
        elif token.type == "html_block":
            blocks.append(Block(type=PARAGRAPH, content=[token.content.strip()]))
            index += 1
        else:
            index += 1
    return blocks, index


def _parse_list(
    tokens: Sequence[Token], index: int, stop: str, item_type: str
) -> tuple[list[Block], int]:
    items: list[Block] = []
    while index < len(tokens):
        token = tokens[index]
        if token.type == stop:
            return items, index + 1
        if token.type == "list_item_open":
            inner, index = _parse_blocks(tokens, index + 1, "list_item_close")
            items.append(_list_item(inner, item_type))
        else:
            index += 1
    return items, index


def _list_item(inner: list[Block], item_type: str) -> Block:
    content: list[InlineItem] = []
    if inner and inner[0].type == PARAGRAPH:
        content = inner[0].content or []
        inner = inner[1:]

    props = BlockProps()
    if item_type == BULLET_LIST_ITEM:
        checked = _strip_task_marker(content)
        if checked is not None:
            item_type = CHECK_LIST_ITEM
            props = BlockProps(checked=checked)
    return Block(type=item_type, props=props, content=content, children=inner)


def _strip_task_marker(content: list[InlineItem]) -> Optional[bool]:
    """Remove a leading ``[ ]``/``[x]`` marker in place and report its state."""

    if not content:
        return None
    first = content[0]
    text = first if isinstance(first, str) else getattr(first, "text", None)
    if text is None:
        return None
    for marker, checked in _TASK_MARKERS.items():
        if text.startswith(marker):
            rest = text[len(marker):]
            if isinstance(first, TextRun):
                content[0] = TextRun(text=rest, styles=first.styles)
            else:
                content[0] = rest
            return checked
    return None


def _parse_table(tokens: Sequence[Token], index: int) -> tuple[Block, int]:
    rows: list[Block] = []
    cells: list[Block] = []
    while index < len(tokens):
        token = tokens[index]
        if token.type == "table_close":
            index += 1
            break
        if token.type == "tr_open":
            cells = []
        elif token.type == "tr_close":
            rows.append(Block(type=TABLE_ROW, children=cells))
        elif token.type in ("th_open", "td_open"):
            cells.append(Block(type=TABLE_CELL, content=_parse_inline(tokens[index + 1])))
            index += 2
        index += 1
    return Block(type=TABLE, children=rows), index


def _paragraph_block(inline: Token) -> Block:
    children = [child for child in inline.children or [] if child.type != "softbreak"]
    if len(children) == 1 and children[0].type == "image":
        image = children[0]
        return Block(
            type=IMAGE,
            props=BlockProps(
                url=str(image.attrGet("src") or ""),
                caption=image.content,
            ),
        )
    return Block(type=PARAGRAPH, content=_parse_inline(inline))


# ----------------------------------------------------------------------
# Inline token walk
# ----------------------------------------------------------------------
_STYLE_TOKENS = {
    "strong": "bold",
    "em": "italic",
    "s": "strike",
}


def _parse_inline(token: Token) -> list[InlineItem]:
    items: list[InlineItem] = []
    active: dict[str, bool] = {}
    link_href: Optional[str] = None
    link_text: list[str] = []

    def emit(text: str, *, code: bool = False) -> None:
        if link_href is not None:
            link_text.append(text)
            return
        if not text:
            return
        styles = Styles(code=code, **active)
        if styles == Styles():
            items.append(text)
        else:
            items.append(TextRun(text=text, styles=styles))

    for child in token.children or []:
        kind = child.type
        if kind == "text" or kind == "html_inline":
            emit(child.content)
        elif kind == "softbreak":
            emit(" ")
        elif kind == "hardbreak":
            emit("\n")
        elif kind == "code_inline":
            emit(child.content, code=True)
        elif kind.endswith("_open") and kind[: -len("_open")] in _STYLE_TOKENS:
            active[_STYLE_TOKENS[kind[: -len("_open")]]] = True
        elif kind.endswith("_close") and kind[: -len("_close")] in _STYLE_TOKENS:
            active.pop(_STYLE_TOKENS[kind[: -len("_close")]], None)
        elif kind == "link_open":
            link_href = str(child.attrGet("href") or "")
            link_text = []
        elif kind == "link_close":
            if link_href is not None:
                items.append(LinkRun(href=link_href, content="".join(link_text)))
            link_href = None
        elif kind == "image":
            emit(child.content)
    return items
