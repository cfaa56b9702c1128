"""
Slide content models

Blocks are the semantic units produced by the markdown translator. Each
block class carries a `kind` tag so that consumers dispatch through a table
keyed by BlockKind rather than isinstance chains.

A Presentation is built once per document load and never mutated: all
containers are tuples and every dataclass is frozen.
"""

from enum import Enum, Flag, auto
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional, Tuple, Union

from .directives import Directive, LayoutKind, TransitionKind


class RunStyle(Flag):
    """Inline style flags; nested markers combine"""
    NONE = 0
    BOLD = auto()
    ITALIC = auto()
    STRIKETHROUGH = auto()
    CODE = auto()


@dataclass(frozen=True)
class StyledRun:
    """
    A piece of text with one style

    Adjacent runs with the same style render the same whether or not they
    have been merged.
    """
    text: str
    style: RunStyle = RunStyle.NONE


StyledLine = Tuple[StyledRun, ...]


class BlockKind(Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    CODE = "code"
    QUOTE = "quote"
    IMAGE = "image"
    # Markers consumed by the slide builder
    RULE = "rule"
    COLUMN_BREAK = "column-break"
    DIRECTIVES = "directives"


@dataclass(frozen=True)
class HeadingBlock:
    level: int
    runs: StyledLine
    banner: Optional[str] = None     # figlet font name when rendered as a banner
    kind: ClassVar[BlockKind] = BlockKind.HEADING

    @property
    def text(self) -> str:
        return ''.join(run.text for run in self.runs)


@dataclass(frozen=True)
class ParagraphBlock:
    lines: Tuple[StyledLine, ...]
    kind: ClassVar[BlockKind] = BlockKind.PARAGRAPH

    @property
    def text(self) -> str:
        return '\n'.join(''.join(run.text for run in line) for line in self.lines)


@dataclass(frozen=True)
class ListItem:
    runs: StyledLine
    depth: int = 0
    ordinal: Optional[int] = None    # None for bullet items
    continuation: bool = False       # further content of the item above, no marker


@dataclass(frozen=True)
class ListBlock:
    ordered: bool
    items: Tuple[ListItem, ...]
    kind: ClassVar[BlockKind] = BlockKind.LIST


@dataclass(frozen=True)
class CodeBlock:
    language: str
    lines: Tuple[str, ...]
    kind: ClassVar[BlockKind] = BlockKind.CODE


@dataclass(frozen=True)
class QuoteBlock:
    lines: Tuple[StyledLine, ...]
    kind: ClassVar[BlockKind] = BlockKind.QUOTE


@dataclass(frozen=True)
class ImageBlock:
    path: str
    alt: str = ""
    max_width_percent: Optional[int] = None
    kind: ClassVar[BlockKind] = BlockKind.IMAGE


@dataclass(frozen=True)
class RuleBlock:
    kind: ClassVar[BlockKind] = BlockKind.RULE


@dataclass(frozen=True)
class ColumnBreakBlock:
    kind: ClassVar[BlockKind] = BlockKind.COLUMN_BREAK


@dataclass(frozen=True)
class DirectiveBlock:
    """Raw text of a top-level HTML comment, parsed by the slide builder"""
    text: str
    kind: ClassVar[BlockKind] = BlockKind.DIRECTIVES


Block = Union[
    HeadingBlock,
    ParagraphBlock,
    ListBlock,
    CodeBlock,
    QuoteBlock,
    ImageBlock,
    RuleBlock,
    ColumnBreakBlock,
    DirectiveBlock,
]

MARKER_KINDS = frozenset({BlockKind.RULE, BlockKind.COLUMN_BREAK, BlockKind.DIRECTIVES})


@dataclass(frozen=True)
class Slide:
    """
    One page of the presentation

    Attributes:
        index: Zero-based position in the document
        content: Blocks of a single-column slide (empty for two-column)
        columns: (left, right) block sequences, set only when the slide
            is laid out in two columns
        layout: Effective layout (TWO_COLUMN only when columns is set)
        transition: Transition played when this slide becomes current
        theme: Palette override, None to use the document theme
        directives: Every directive attached to the slide, including
            unrecognized ones
    """
    index: int
    content: Tuple[Block, ...] = ()
    columns: Optional[Tuple[Tuple[Block, ...], Tuple[Block, ...]]] = None
    layout: LayoutKind = LayoutKind.DEFAULT
    transition: TransitionKind = TransitionKind.NONE
    theme: Optional[str] = None
    directives: Tuple[Directive, ...] = ()

    @property
    def blocks(self) -> Tuple[Block, ...]:
        """All blocks in reading order, left column first"""
        if self.columns is None:
            return self.content
        return self.columns[0] + self.columns[1]

    @property
    def images(self) -> Tuple[ImageBlock, ...]:
        return tuple(block for block in self.blocks if block.kind is BlockKind.IMAGE)


@dataclass(frozen=True)
class Presentation:
    """
    Ordered slides of one document

    Attributes:
        slides: Slides in document order (never empty)
        theme: Document palette name
        image_max_width: Document-level image width, None when unset
        source_path: File the deck was read from, if any
        base_dir: Directory images are resolved against
        diagnostics: Recoverable problems found while building
    """
    slides: Tuple[Slide, ...]
    theme: str
    image_max_width: Optional[int] = None
    source_path: Optional[Path] = None
    base_dir: Path = field(default_factory=lambda: Path("."))
    diagnostics: Tuple[Exception, ...] = ()

    def __len__(self) -> int:
        return len(self.slides)

    def theme_for(self, index: int) -> str:
        """Palette name in effect on a slide"""
        return self.slides[index].theme or self.theme
