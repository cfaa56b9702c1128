"""
Parser-specific data models

Type-safe structures for the markdown event stream and the source pre-pass.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class EventKind(Enum):
    START = "start"
    END = "end"
    TEXT = "text"
    CODE = "code"                # inline code span
    HTML = "html"                # block-level raw HTML (comments included)
    INLINE_HTML = "inline-html"
    IMAGE = "image"
    RULE = "rule"
    SOFT_BREAK = "soft-break"
    HARD_BREAK = "hard-break"


class Tag(Enum):
    """Container kinds that open with START and close with END"""
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    QUOTE = "quote"
    CODE_BLOCK = "code-block"
    LIST = "list"
    ITEM = "item"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    LINK = "link"
    TABLE = "table"
    TABLE_ROW = "table-row"
    TABLE_CELL = "table-cell"
    OTHER = "other"              # any token the walker has no mapping for


@dataclass(frozen=True)
class MarkdownEvent:
    """
    One item of the ordered markdown event stream

    Attributes:
        kind: Event kind
        tag: Container tag for START / END events
        text: Payload for TEXT, CODE, HTML, INLINE_HTML (and IMAGE alt text)
        attrs: Extra data: heading `level`, list `start`, code block
            `language`, image `src`, unknown token `name`

    Example:
        "# Hi" yields
            MarkdownEvent(START, Tag.HEADING, attrs={"level": 1})
            MarkdownEvent(TEXT, text="Hi")
            MarkdownEvent(END, Tag.HEADING, attrs={"level": 1})
    """
    kind: EventKind
    tag: Optional[Tag] = None
    text: str = ""
    attrs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProtectedSource:
    """
    Result of the fence-aware source pre-pass

    Attributes:
        text: Source with '---' delimiters guarded and '|||' lines replaced
              by the column sentinel
        slide_delimiters: Number of '---' lines found outside code fences
        column_markers: Number of '|||' lines found outside code fences
    """
    text: str
    slide_delimiters: int = 0
    column_markers: int = 0
