"""Dataclasses representing block-tree documents produced by the editor.

Documents arrive as untyped JSON. ``Document.from_raw`` turns that payload into
typed blocks while tolerating missing or malformed sub-structure: anything the
editor omits falls back to a documented default instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Union

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32

PARAGRAPH = "paragraph"
HEADING = "heading"
BULLET_LIST_ITEM = "bulletListItem"
NUMBERED_LIST_ITEM = "numberedListItem"
CHECK_LIST_ITEM = "checkListItem"
TABLE = "table"
TABLE_ROW = "tableRow"
TABLE_CELL = "tableCell"
CODE_BLOCK = "codeBlock"
IMAGE = "image"
VIDEO = "video"
AUDIO = "audio"
FILE = "file"

_NO_COLOR = "default"


@dataclass(slots=True)
class Styles:
    """Independently togglable formatting applied to a text run."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strike: bool = False
    code: bool = False
    text_color: Optional[str] = None
    background_color: Optional[str] = None

    @classmethod
    def from_raw(cls, data: object) -> "Styles":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            bold=bool(data.get("bold")),
            italic=bool(data.get("italic")),
            underline=bool(data.get("underline")),
            strike=bool(data.get("strike") or data.get("strikethrough")),
            code=bool(data.get("code")),
            text_color=_color(data.get("textColor")),
            background_color=_color(data.get("backgroundColor")),
        )

    def to_raw(self) -> dict[str, Any]:
        raw: dict[str, Any] = {}
        for key, value in (
            ("bold", self.bold),
            ("italic", self.italic),
            ("underline", self.underline),
            ("strike", self.strike),
            ("code", self.code),
        ):
            if value:
                raw[key] = True
        if self.text_color:
            raw["textColor"] = self.text_color
        if self.background_color:
            raw["backgroundColor"] = self.background_color
        return raw


@dataclass(slots=True)
class TextRun:
    """A run of styled text."""

    text: str
    styles: Styles = field(default_factory=Styles)

    def plain_text(self) -> str:
        return self.text

    def to_raw(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text, "styles": self.styles.to_raw()}


@dataclass(slots=True)
class LinkRun:
    """A hyperlink with plain display text."""

    href: str
    content: str

    def plain_text(self) -> str:
        return self.content

    def to_raw(self) -> dict[str, Any]:
        return {"type": "link", "href": self.href, "content": self.content}


InlineItem = Union[str, TextRun, LinkRun]


@dataclass(slots=True)
class BlockProps:
    """Block attributes with per-type defaults.

    ``level`` applies to headings, ``checked`` to checklist items,
    ``language`` to code blocks and the remaining fields to media blocks.
    Keys the editor sends that are not modelled here are kept in ``extra``.
    """

    level: int = 1
    checked: bool = False
    language: str = ""
    url: str = ""
    caption: str = ""
    name: str = ""
    width: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, data: object) -> "BlockProps":
        if not isinstance(data, Mapping):
            return cls()
        known = {"level", "checked", "language", "url", "caption", "name", "width"}
        width = data.get("width")
        return cls(
            level=_heading_level(data.get("level")),
            checked=bool(data.get("checked")),
            language=_as_str(data.get("language")),
            url=_as_str(data.get("url")),
            caption=_as_str(data.get("caption")),
            name=_as_str(data.get("name")),
            width=str(width) if width else None,
            extra={key: value for key, value in data.items() if key not in known},
        )


@dataclass(slots=True)
class Block:
    """One node of the document tree.

    ``content`` is ``None`` when the editor sent no inline content at all,
    which matters for the fallback rendering of unrecognised block types.
    ``table_rows`` holds the cell grid of tables that carry their cells inline
    (``{"type": "tableContent", "rows": [...]}``) rather than as child blocks.
    """

    type: str
    props: BlockProps = field(default_factory=BlockProps)
    content: Optional[list[InlineItem]] = None
    children: list["Block"] = field(default_factory=list)
    table_rows: Optional[list[list[list[InlineItem]]]] = None

    @classmethod
    def from_raw(cls, data: Mapping[str, Any], *, max_depth: int = DEFAULT_MAX_DEPTH) -> "Block":
        return _parse_block(data, max_depth=max_depth)

    def plain_text(self) -> str:
        """Return the concatenated text of this block's own inline content."""

        return inline_plain_text(self.content or [])


@dataclass(slots=True)
class Document:
    """An ordered sequence of top-level blocks.

    ``raw`` keeps the payload exactly as submitted so it can be persisted
    unchanged and re-rendered later. Documents assembled in Python leave it
    unset and are serialised on demand.
    """

    blocks: list[Block] = field(default_factory=list)
    raw: Optional[list[Any]] = None

    @classmethod
    def from_raw(cls, data: Iterable[Any], *, max_depth: int = DEFAULT_MAX_DEPTH) -> "Document":
        raw = list(data)
        blocks = [
            _parse_block(item, max_depth=max_depth)
            for item in raw
            if isinstance(item, Mapping)
        ]
        return cls(blocks=blocks, raw=raw)

    @classmethod
    def from_blocks(cls, blocks: Sequence[Block]) -> "Document":
        return cls(blocks=list(blocks))

    def to_raw(self) -> list[Any]:
        if self.raw is None:
            return [block_to_raw(block) for block in self.blocks]
        return list(self.raw)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)


def parse_inline(data: object) -> list[InlineItem]:
    """Parse an inline content array, dropping items of unknown shape."""

    if not isinstance(data, list):
        return []
    items: list[InlineItem] = []
    for item in data:
        parsed = _parse_inline_item(item)
        if parsed is not None:
            items.append(parsed)
    return items


def inline_plain_text(items: Iterable[InlineItem]) -> str:
    return "".join(item if isinstance(item, str) else item.plain_text() for item in items)


def block_to_raw(block: Block) -> dict[str, Any]:
    """Serialise a block built in Python back into editor JSON."""

    props = dict(block.props.extra)
    defaults = BlockProps()
    for key in ("level", "checked", "language", "url", "caption", "name", "width"):
        value = getattr(block.props, key)
        if value != getattr(defaults, key):
            props[key] = value
    if block.type == HEADING:
        props["level"] = block.props.level

    raw: dict[str, Any] = {"type": block.type, "props": props}
    if block.content is not None:
        raw["content"] = [item if isinstance(item, str) else item.to_raw() for item in block.content]
    if block.children:
        raw["children"] = [block_to_raw(child) for child in block.children]
    return raw


def _parse_block(
    data: Mapping[str, Any], *, max_depth: int, ancestors: tuple[int, ...] = ()
) -> Block:
    """Parse ``data`` and its children.

    ``ancestors`` holds the ids of the mappings above ``data``; a child that is
    one of them (or ``data`` itself) is dropped.
    """

    raw_content = data.get("content")
    content: Optional[list[InlineItem]]
    table_rows = None
    if raw_content is None:
        content = None
    elif isinstance(raw_content, Mapping):
        content = []
        table_rows = _parse_table_content(raw_content)
    else:
        content = parse_inline(raw_content)

    children: list[Block] = []
    raw_children = data.get("children")
    if isinstance(raw_children, list) and raw_children:
        if len(ancestors) + 1 > max_depth:
            logger.warning(
                "Dropping %d nested block(s) below depth %d", len(raw_children), max_depth
            )
        else:
            path = (*ancestors, id(data))
            nested = [child for child in raw_children if isinstance(child, Mapping)]
            acyclic = [child for child in nested if id(child) not in path]
            if len(acyclic) < len(nested):
                logger.warning(
                    "Dropping %d nested block(s) that repeat an enclosing block",
                    len(nested) - len(acyclic),
                )
            children = [
                _parse_block(child, max_depth=max_depth, ancestors=path) for child in acyclic
            ]

    return Block(
        type=_as_str(data.get("type")),
        props=BlockProps.from_raw(data.get("props")),
        content=content,
        children=children,
        table_rows=table_rows,
    )


def _parse_inline_item(item: object) -> Optional[InlineItem]:
    if isinstance(item, str):
        return item
    if not isinstance(item, Mapping):
        return None
    kind = item.get("type")
    if kind == "text":
        return TextRun(text=_as_str(item.get("text")), styles=Styles.from_raw(item.get("styles")))
    if kind == "link":
        link_content = item.get("content")
        if isinstance(link_content, list):
            text = inline_plain_text(parse_inline(link_content))
        else:
            text = _as_str(link_content)
        return LinkRun(href=_as_str(item.get("href")), content=text)
    return None


def _parse_table_content(data: Mapping[str, Any]) -> list[list[list[InlineItem]]]:
    rows: list[list[list[InlineItem]]] = []
    raw_rows = data.get("rows")
    if not isinstance(raw_rows, list):
        return rows
    for raw_row in raw_rows:
        cells = raw_row.get("cells") if isinstance(raw_row, Mapping) else None
        if not isinstance(cells, list):
            rows.append([])
            continue
        row: list[list[InlineItem]] = []
        for cell in cells:
            # Newer editor versions wrap each cell as {"type": "tableCell", "content": [...]}
            if isinstance(cell, Mapping):
                row.append(parse_inline(cell.get("content")))
            else:
                row.append(parse_inline(cell))
        rows.append(row)
    return rows


def _heading_level(value: object) -> int:
    try:
        level = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 1
    return level if level >= 1 else 1


def _color(value: object) -> Optional[str]:
    # The editor sends "default" for text without a colour of its own.
    if not value or value == _NO_COLOR:
        return None
    return str(value)


def _as_str(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def coerce_document(value: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Document:
    """Accept a :class:`Document`, a sequence of :class:`Block` or raw editor JSON."""

    if isinstance(value, Document):
        return value
    items = list(value)
    if items and all(isinstance(item, Block) for item in items):
        return Document.from_blocks(items)
    return Document.from_raw(items, max_depth=max_depth)
