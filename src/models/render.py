"""
Render tree and frame models

The layout dispatcher produces a RenderTree per frame: rectangular regions of
styled lines, image placements and a status line. Rasterizing a tree gives a
Frame, a grid of cells, which is what transitions blend and what the terminal
backend paints. Neither carries escape sequences.
"""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple


@dataclass(frozen=True)
class Style:
    """Visual style of a span or cell; colors are '#rrggbb' strings"""
    fg: Optional[str] = None
    bg: Optional[str] = None
    bold: bool = False
    italic: bool = False
    strike: bool = False
    dim: bool = False


@dataclass(frozen=True)
class Span:
    text: str
    style: Style = Style()


@dataclass(frozen=True)
class ImageAnchor:
    """Image reserved at a line of composed content"""
    path: str
    alt: str
    max_width_percent: int
    height: int


@dataclass(frozen=True)
class RenderLine:
    """
    One logical line of composed slide content

    Attributes:
        spans: Styled text
        align: "left" or "center"
        nowrap: Clip instead of wrapping (figlet banners)
        image: Set on the first row of an image placeholder
        fill: Background painted across the whole line (code blocks)
    """
    spans: Tuple[Span, ...] = ()
    align: str = "left"
    nowrap: bool = False
    image: Optional[ImageAnchor] = None
    fill: Optional[str] = None

    @property
    def text(self) -> str:
        return ''.join(span.text for span in self.spans)


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def right(self) -> int:
        return self.x + self.width

    def inner(self, margin_x: int, margin_y: int) -> "Rect":
        """Shrink by a margin on every side, never below zero size"""
        width = max(0, self.width - 2 * margin_x)
        height = max(0, self.height - 2 * margin_y)
        return Rect(self.x + min(margin_x, self.width // 2), self.y + min(margin_y, self.height // 2), width, height)


@dataclass(frozen=True)
class ImagePlacement:
    """Where the image backend should draw, in screen cells"""
    path: str
    alt: str
    max_width_percent: int
    rect: Rect


@dataclass(frozen=True)
class Region:
    """Visible, already wrapped and scrolled rows drawn into a rectangle"""
    rect: Rect
    lines: Tuple[RenderLine, ...]


@dataclass(frozen=True)
class Scrollbar:
    rect: Rect
    position: int
    content_rows: int
    visible_rows: int


@dataclass(frozen=True)
class RenderTree:
    """
    Everything needed to draw one frame of a slide

    Attributes:
        width: Frame width in cells
        height: Frame height in cells
        background: Fill style for cells no region covers
        regions: Content regions
        images: Image placements (drawn by the image backend once released)
        scrollbar: Present when content overflows a single-region layout
        placeholder: Style of the image placeholder box
    """
    width: int
    height: int
    background: Style
    regions: Tuple[Region, ...] = ()
    images: Tuple[ImagePlacement, ...] = ()
    scrollbar: Optional[Scrollbar] = None
    placeholder: Style = Style(dim=True)


class Cell(NamedTuple):
    char: str
    style: Style


@dataclass
class Frame:
    """
    A width x height grid of cells

    Wide characters occupy two cells; the second holds an empty string
    and is skipped by the painter.
    """
    width: int
    height: int
    rows: List[List[Cell]] = field(default_factory=list)

    @classmethod
    def blank(cls, width: int, height: int, style: Style = Style()) -> "Frame":
        blank_cell = Cell(" ", style)
        return cls(width, height, [[blank_cell] * width for _ in range(height)])

    def row_text(self, y: int) -> str:
        return ''.join(cell.char for cell in self.rows[y])

    def text(self) -> str:
        return '\n'.join(self.row_text(y) for y in range(self.height))
