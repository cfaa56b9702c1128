"""
Layout dispatcher

Places a slide's compiled lines into the terminal area and rasterizes the
result into a cell Frame:

    +--------------------------------------------+
    |  content area (margins 2 x 1)              |
    |    default:    one region, top aligned     |
    |    center:     natural-size box, centered  |
    |    two-column: two halves and a gap        |
    +--------------------------------------------+
    | [3/12]  keys ...                    layout |  status line
    +--------------------------------------------+

Content taller than its region is scrolled by the slide's scroll offset and
clipped; clipping never fails, it truncates.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from rich.cells import cell_len, get_character_cell_size

from ..config import AppSettings, appsettings
from ..models.directives import LayoutKind
from ..models.render import (
    Cell,
    Frame,
    ImagePlacement,
    Rect,
    Region,
    RenderLine,
    RenderTree,
    Scrollbar,
    Span,
    Style,
)
from ..models.slides import Presentation, Slide
from .compiler import Compiler
from .theme import Theme, theme_load


STATUS_KEYS = "←/h prev  →/l/space next  j/k scroll  q quit"


@dataclass
class Placement:
    """Output of one layout function"""
    regions: List[Region]
    images: List[ImagePlacement]
    scrollbar: Optional[Scrollbar]
    content_rows: int
    visible_rows: int


def line_cells(line: RenderLine) -> List[Tuple[str, Style, int]]:
    """(character, style, cell width) for every character of a line"""
    return [
        (char, span.style, get_character_cell_size(char))
        for span in line.spans
        for char in span.text
    ]


def cells_line(cells: Sequence[Tuple[str, Style, int]], template: RenderLine) -> RenderLine:
    """Rebuild a RenderLine from cells, merging runs that share a style"""
    spans: List[Span] = []
    text = ""
    style: Optional[Style] = None
    for char, char_style, _ in cells:
        if char_style != style and text:
            spans.append(Span(text, style))
            text = ""
        style = char_style
        text += char
    if text:
        spans.append(Span(text, style))
    return RenderLine(tuple(spans), align=template.align, nowrap=template.nowrap, fill=template.fill)


def line_wrap(line: RenderLine, width: int) -> List[RenderLine]:
    """
    Wrap one line to a cell width

    Breaks at spaces where possible, inside words otherwise. Leading spaces
    of continuation rows are dropped. nowrap lines are clipped instead.
    Image anchors are returned unchanged; the caller reserves their rows.

    Example:
        "alpha beta gamma" at width 11 gives "alpha beta" and "gamma"
    """
    if line.image is not None:
        return [line]
    cells = line_cells(line)
    if not cells:
        return [line]
    if width <= 0:
        return [cells_line([], line)]
    if line.nowrap:
        clipped, used = [], 0
        for cell in cells:
            if used + cell[2] > width:
                break
            clipped.append(cell)
            used += cell[2]
        return [cells_line(clipped, line)]

    rows: List[RenderLine] = []
    start, count = 0, len(cells)
    while start < count:
        if rows:
            while start < count and cells[start][0] == " ":
                start += 1
            if start >= count:
                break
        used, end, last_space = 0, start, None
        while end < count and used + cells[end][2] <= width:
            if cells[end][0] == " ":
                last_space = end
            used += cells[end][2]
            end += 1
        if end < count and cells[end][0] != " " and last_space is not None and last_space > start:
            end = last_space
        if end == start:
            end = start + 1
        rows.append(cells_line(cells[start:end], line))
        start = end
    return rows or [cells_line([], line)]


def lines_wrap(lines: Sequence[RenderLine], width: int) -> List[RenderLine]:
    """Wrap every line; an image anchor is followed by its reserved rows"""
    wrapped: List[RenderLine] = []
    for line in lines:
        wrapped.extend(line_wrap(line, width))
        if line.image is not None:
            wrapped.extend(RenderLine() for _ in range(line.image.height - 1))
    return wrapped


def line_width(line: RenderLine) -> int:
    return sum(cell_len(span.text) for span in line.spans)


class LayoutDispatcher:
    """
    Builds RenderTrees for slides and rasterizes them

    Layout functions are selected from a table keyed by LayoutKind.
    """

    def __init__(self, settings: AppSettings = appsettings) -> None:
        self.settings = settings
        self.layouts: Dict[LayoutKind, Callable[[Slide, Compiler, Rect, int], Placement]] = {
            LayoutKind.DEFAULT: self.default_layout,
            LayoutKind.CENTER: self.center_layout,
            LayoutKind.TWO_COLUMN: self.twoColumn_layout,
        }

    def content_area(self, viewport: Tuple[int, int]) -> Rect:
        """Area left for content: everything but the status row, minus margins"""
        width, height = viewport
        return Rect(0, 0, width, max(0, height - 1)).inner(
            self.settings.content_margin_x, self.settings.content_margin_y
        )

    def theme_get(self, presentation: Presentation, index: int) -> Theme:
        return theme_load(presentation.theme_for(index), self.settings.themes_dir)

    def compiler_get(self, presentation: Presentation, index: int) -> Compiler:
        return Compiler(
            self.theme_get(presentation, index),
            settings=self.settings,
            image_max_width=presentation.image_max_width,
        )

    def region_place(
        self,
        lines: List[RenderLine],
        rect: Rect,
        scroll: int,
        images: List[ImagePlacement],
    ) -> Region:
        """Cut the visible window out of wrapped lines, collecting images in it"""
        visible = lines[scroll:scroll + rect.height]
        for row, line in enumerate(lines):
            if line.image is None:
                continue
            first = max(row, scroll)
            last = min(row + line.image.height, scroll + rect.height)
            if last <= first:
                continue
            width = max(1, rect.width * line.image.max_width_percent // 100)
            images.append(ImagePlacement(
                path=line.image.path,
                alt=line.image.alt,
                max_width_percent=line.image.max_width_percent,
                rect=Rect(rect.x + (rect.width - width) // 2, rect.y + first - scroll, width, last - first),
            ))
        return Region(rect, tuple(visible))

    def default_layout(self, slide: Slide, compiler: Compiler, area: Rect, scroll: int) -> Placement:
        lines = lines_wrap(compiler.blocks_compile(slide.content), area.width)
        scrollbar = None
        if len(lines) > area.height and area.width > 1:
            lines = lines_wrap(compiler.blocks_compile(slide.content), area.width - 1)
            scroll = min(scroll, len(lines) - area.height)
            scrollbar = Scrollbar(
                Rect(area.right - 1, area.y, 1, area.height), scroll, len(lines), area.height
            )
            rect = Rect(area.x, area.y, area.width - 1, area.height)
        else:
            scroll = 0
            rect = area
        images: List[ImagePlacement] = []
        region = self.region_place(lines, rect, scroll, images)
        return Placement([region], images, scrollbar, len(lines), area.height)

    def center_layout(self, slide: Slide, compiler: Compiler, area: Rect, scroll: int) -> Placement:
        lines = lines_wrap(compiler.blocks_compile(slide.content, align="center"), area.width)
        if any(line.image is not None for line in lines):
            width = area.width
        else:
            width = min(max((line_width(line) for line in lines), default=0), area.width)
        height = min(len(lines), area.height)
        box = Rect(
            area.x + (area.width - width) // 2,
            area.y + (area.height - height) // 2,
            width,
            height,
        )
        scroll = min(scroll, max(0, len(lines) - box.height))
        images: List[ImagePlacement] = []
        region = self.region_place(lines, box, scroll, images)
        return Placement([region], images, None, len(lines), box.height)

    def twoColumn_layout(self, slide: Slide, compiler: Compiler, area: Rect, scroll: int) -> Placement:
        left_blocks, right_blocks = slide.columns or (slide.content, ())
        gap = max(1, area.width * self.settings.column_gap_percent // 100)
        column_width = max(0, (area.width - gap) // 2)
        left_rect = Rect(area.x, area.y, column_width, area.height)
        right_rect = Rect(area.right - column_width, area.y, column_width, area.height)

        left = lines_wrap(compiler.blocks_compile(left_blocks), column_width)
        right = lines_wrap(compiler.blocks_compile(right_blocks), column_width)
        content_rows = max(len(left), len(right))
        scroll = min(scroll, max(0, content_rows - area.height))

        images: List[ImagePlacement] = []
        regions = [
            self.region_place(left, left_rect, scroll, images),
            self.region_place(right, right_rect, scroll, images),
        ]
        return Placement(regions, images, None, content_rows, area.height)

    def placement_get(self, presentation: Presentation, index: int, viewport: Tuple[int, int], scroll: int) -> Placement:
        slide = presentation.slides[index]
        layout = self.layouts.get(slide.layout, self.default_layout)
        return layout(slide, self.compiler_get(presentation, index), self.content_area(viewport), max(0, scroll))

    def max_scroll(self, presentation: Presentation, index: int, viewport: Tuple[int, int]) -> int:
        """Largest useful scroll offset for a slide in this viewport"""
        placement = self.placement_get(presentation, index, viewport, 0)
        return max(0, placement.content_rows - placement.visible_rows)

    def status_line(self, presentation: Presentation, index: int, width: int) -> RenderLine:
        theme = self.theme_get(presentation, index)
        style = Style(fg=theme.status_fg, bg=theme.status_bg)
        left = f" [{index + 1}/{len(presentation)}]  {STATUS_KEYS}"
        right = f"{presentation.slides[index].layout.value} "
        padding = max(1, width - cell_len(left) - cell_len(right))
        return RenderLine((Span(left + " " * padding + right, style),), nowrap=True, fill=theme.status_bg)

    def tree_build(
        self,
        presentation: Presentation,
        index: int,
        viewport: Tuple[int, int],
        scroll: int = 0,
    ) -> RenderTree:
        """
        Lay out one slide

        Args:
            presentation: Deck
            index: Slide to lay out
            viewport: (width, height) of the terminal
            scroll: Scroll offset of the slide

        Returns:
            RenderTree for the whole screen, status line included
        """
        width, height = viewport
        theme = self.theme_get(presentation, index)
        placement = self.placement_get(presentation, index, viewport, scroll)
        regions = list(placement.regions)
        if height > 0:
            status = line_wrap(self.status_line(presentation, index, width), width)
            regions.append(Region(Rect(0, height - 1, width, 1), tuple(status)))
        return RenderTree(
            width=width,
            height=height,
            background=Style(fg=theme.fg, bg=theme.bg),
            regions=tuple(regions),
            images=tuple(placement.images),
            scrollbar=placement.scrollbar,
            placeholder=Style(fg=theme.block_quote_prefix, bg=theme.bg),
        )


def cell_put(frame: Frame, x: int, y: int, char: str, style: Style, limit: int) -> int:
    """Write one character, returning the next column; wide characters take two"""
    if not 0 <= y < frame.height:
        return x
    width = get_character_cell_size(char)
    if width == 0:
        if x > 0 and x - 1 < frame.width:
            previous = frame.rows[y][x - 1]
            frame.rows[y][x - 1] = Cell(previous.char + char, previous.style)
        return x
    if x < 0 or x + width > min(limit, frame.width):
        return x + width
    frame.rows[y][x] = Cell(char, style)
    if width == 2:
        frame.rows[y][x + 1] = Cell("", style)
    return x + width


def text_put(frame: Frame, x: int, y: int, text: str, style: Style, limit: int) -> None:
    for char in text:
        x = cell_put(frame, x, y, char, style, limit)


def tree_rasterize(tree: RenderTree) -> Frame:
    """
    Draw a RenderTree into a cell Frame

    Regions first, then image placeholder boxes (alt text centered) and the
    scrollbar.
    """
    frame = Frame.blank(tree.width, tree.height, tree.background)
    background = tree.background

    for region in tree.regions:
        rect = region.rect
        for row, line in enumerate(region.lines[:rect.height]):
            y = rect.y + row
            if line.fill:
                text_put(frame, rect.x, y, " " * rect.width, Style(fg=background.fg, bg=line.fill), rect.right)
            x = rect.x
            if line.align == "center":
                x += max(0, (rect.width - line_width(line)) // 2)
            for span in line.spans:
                style = Style(
                    fg=span.style.fg or background.fg,
                    bg=span.style.bg or line.fill or background.bg,
                    bold=span.style.bold,
                    italic=span.style.italic,
                    strike=span.style.strike,
                    dim=span.style.dim,
                )
                for char in span.text:
                    x = cell_put(frame, x, y, char, style, rect.right)

    for image in tree.images:
        placeholder_draw(frame, image, tree.placeholder)

    if tree.scrollbar is not None:
        scrollbar_draw(frame, tree.scrollbar, tree.placeholder)
    return frame


def placeholder_draw(frame: Frame, image: ImagePlacement, style: Style) -> None:
    rect = image.rect
    label = image.alt or image.path
    if rect.width < 2 or rect.height < 2:
        text_put(frame, rect.x, rect.y, label[:rect.width], style, rect.right)
        return
    horizontal = "─" * (rect.width - 2)
    text_put(frame, rect.x, rect.y, "┌" + horizontal + "┐", style, rect.right)
    for y in range(rect.y + 1, rect.bottom - 1):
        text_put(frame, rect.x, y, "│" + " " * (rect.width - 2) + "│", style, rect.right)
    text_put(frame, rect.x, rect.bottom - 1, "└" + horizontal + "┘", style, rect.right)

    inner = rect.width - 4
    if inner > 0:
        if cell_len(label) > inner:
            label = label[:max(0, inner - 1)] + "…"
        x = rect.x + 2 + max(0, (inner - cell_len(label)) // 2)
        text_put(frame, x, rect.y + (rect.height - 1) // 2, label, style, rect.right - 2)


def scrollbar_draw(frame: Frame, scrollbar: Scrollbar, style: Style) -> None:
    rect = scrollbar.rect
    visible = max(1, scrollbar.visible_rows)
    content = max(visible, scrollbar.content_rows)
    thumb = max(1, visible * visible // content)
    travel = max(1, content - visible)
    top = scrollbar.position * (visible - thumb) // travel
    for row in range(rect.height):
        char = "┃" if top <= row < top + thumb else "│"
        text_put(frame, rect.x, rect.y + row, char, style, rect.right)
