"""
Compiler for slide blocks to styled lines

Transforms the semantic Blocks of a slide into RenderLines (styled spans)
using a palette. Wrapping and placement are left to the layout dispatcher;
the compiler only decides what each line says and how it is colored.
"""

from typing import Callable, Dict, List, Optional, Sequence

from ..config import AppSettings, appsettings
from ..models.render import ImageAnchor, RenderLine, Span, Style
from ..models.slides import (
    Block,
    BlockKind,
    CodeBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    RunStyle,
    StyledLine,
)
from .banner import banner_render
from .log import LOG
from .theme import Theme


BULLET = "• "
QUOTE_PREFIX = "│ "
CODE_INDENT = "  "


class Compiler:
    """
    Compiles slide Blocks to RenderLines

    Responsibilities:
    - Apply palette colors to headings, text, code, quotes and bullets
    - Turn inline run styles into span styles
    - Expand figlet banners
    - Reserve image anchors carrying their width

    Attributes:
        theme: Palette in effect for the slide
        settings: Application settings
        image_max_width: Document default image width (None for settings)
    """

    def __init__(
        self,
        theme: Theme,
        settings: AppSettings = appsettings,
        image_max_width: Optional[int] = None,
    ) -> None:
        self.theme = theme
        self.settings = settings
        self.image_max_width = image_max_width
        self.composers: Dict[BlockKind, Callable[[Block, str], List[RenderLine]]] = {
            BlockKind.HEADING: self.heading_compile,
            BlockKind.PARAGRAPH: self.paragraph_compile,
            BlockKind.LIST: self.list_compile,
            BlockKind.CODE: self.code_compile,
            BlockKind.QUOTE: self.quote_compile,
            BlockKind.IMAGE: self.image_compile,
        }

    @property
    def text_style(self) -> Style:
        return Style(fg=self.theme.fg)

    def blocks_compile(self, blocks: Sequence[Block], align: str = "left") -> List[RenderLine]:
        """
        Compile a sequence of blocks

        Blocks are separated by one blank line; trailing blank lines are
        removed.

        Args:
            blocks: Slide (or column) content
            align: "left", or "center" for the center layout

        Returns:
            RenderLines in reading order
        """
        lines: List[RenderLine] = []
        for block in blocks:
            composer = self.composers.get(block.kind)
            if composer is None:
                LOG(f"No composer for {block.kind.value} block", level=3)
                continue
            lines.extend(composer(block, align))
            lines.append(RenderLine(align=align))

        while lines and not lines[-1].spans and lines[-1].image is None:
            lines.pop()
        return lines

    def runs_spans(self, runs: StyledLine, base: Optional[Style] = None) -> List[Span]:
        """
        Convert StyledRuns to Spans

        Inline code gets a padded chip on the surface color.
        """
        base = base or self.text_style
        spans: List[Span] = []
        for run in runs:
            style = Style(
                fg=base.fg,
                bg=base.bg,
                bold=base.bold or RunStyle.BOLD in run.style,
                italic=base.italic or RunStyle.ITALIC in run.style,
                strike=RunStyle.STRIKETHROUGH in run.style,
            )
            if RunStyle.CODE in run.style:
                style = Style(
                    fg=self.theme.inline_code_fg,
                    bg=self.theme.surface,
                    bold=style.bold,
                    italic=style.italic,
                    strike=style.strike,
                )
                spans.append(Span(f" {run.text} ", style))
            else:
                spans.append(Span(run.text, style))
        return spans

    def heading_compile(self, block: HeadingBlock, align: str) -> List[RenderLine]:
        style = Style(fg=self.theme.headingColor_get(block.level), bold=True)
        if block.banner:
            return [
                RenderLine((Span(line, style),), align=align, nowrap=True)
                for line in banner_render(block.text, block.banner)
            ]
        spans = self.runs_spans(block.runs, style)
        if align != "center":
            spans.insert(0, Span("#" * block.level + " ", style))
        return [RenderLine(tuple(spans), align=align)]

    def paragraph_compile(self, block: ParagraphBlock, align: str) -> List[RenderLine]:
        return [RenderLine(tuple(self.runs_spans(line)), align=align) for line in block.lines]

    def list_compile(self, block: ListBlock, align: str) -> List[RenderLine]:
        bullet_style = Style(fg=self.theme.list_bullet, bold=True)
        lines = []
        for item in block.items:
            if item.continuation:
                marker = " " * len(BULLET)
            elif item.ordinal is not None:
                marker = f"{item.ordinal}. "
            else:
                marker = BULLET
            spans = [Span("  " * item.depth + marker, bullet_style)] + self.runs_spans(item.runs)
            lines.append(RenderLine(tuple(spans), align=align))
        return lines

    def code_compile(self, block: CodeBlock, align: str) -> List[RenderLine]:
        style = Style(fg=self.theme.fg, bg=self.theme.surface)
        lines = [
            RenderLine((Span(CODE_INDENT + line + CODE_INDENT, style),), nowrap=True, fill=self.theme.surface)
            for line in block.lines
        ]
        if block.language:
            label = Style(fg=self.theme.inline_code_fg, bg=self.theme.surface, italic=True)
            lines.insert(0, RenderLine((Span(CODE_INDENT + block.language, label),), nowrap=True, fill=self.theme.surface))
        return lines or [RenderLine(fill=self.theme.surface)]

    def quote_compile(self, block: QuoteBlock, align: str) -> List[RenderLine]:
        prefix = Span(QUOTE_PREFIX, Style(fg=self.theme.block_quote_prefix))
        base = Style(fg=self.theme.fg, italic=True)
        return [
            RenderLine((prefix, *self.runs_spans(line, base)), align=align)
            for line in block.lines
        ]

    def image_compile(self, block: ImageBlock, align: str) -> List[RenderLine]:
        percent = block.max_width_percent or self.image_max_width or self.settings.image_max_width
        anchor = ImageAnchor(
            path=block.path,
            alt=block.alt,
            max_width_percent=percent,
            height=self.settings.image_placeholder_height,
        )
        return [RenderLine(image=anchor)]
