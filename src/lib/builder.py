"""
Slide builder

Splits the translated block stream at RuleBlock markers and turns every
chunk into a Slide:

    [Directive*] content... [ColumnBreak content...]

Only the comments before a slide's first content block are directives;
later comments are dropped. The first slide's leading directives double as
the document header: its theme becomes the document palette and its
image_max_width the document default.
"""

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ..config import AppSettings, appsettings
from ..models.directives import (
    Directive,
    FigletDirective,
    ImageWidthDirective,
    LayoutDirective,
    LayoutKind,
    ThemeDirective,
    TransitionDirective,
    TransitionKind,
)
from ..models.slides import (
    Block,
    BlockKind,
    ParagraphBlock,
    Presentation,
    Slide,
    StyledRun,
)
from .directives import DirectiveRegistry
from .errors import DirectiveError, StructuralWarning
from .log import LOG
from .theme import theme_nameResolve


LITERAL_COLUMN_BREAK = ParagraphBlock(((StyledRun("|||"),),))


class SlideBuilder:
    """
    Builds Slides and the Presentation from translated blocks

    Attributes:
        registry: Directive registry used on each slide's leading comments
        settings: Application settings (default theme, figlet font)
        theme: Palette forced from the command line
    """

    def __init__(
        self,
        registry: Optional[DirectiveRegistry] = None,
        settings: AppSettings = appsettings,
        theme: Optional[str] = None,
    ) -> None:
        self.settings = settings
        self.registry = registry or DirectiveRegistry(themes_dir=settings.themes_dir)
        self.theme = theme

    def chunks_split(self, blocks: Sequence[Block]) -> List[List[Block]]:
        """
        Split blocks at every RuleBlock

        Empty chunks are kept, so the count is markers + 1, except that a
        delimiter closing the document does not open a blank last slide.
        """
        chunks: List[List[Block]] = [[]]
        for block in blocks:
            if block.kind is BlockKind.RULE:
                chunks.append([])
            else:
                chunks[-1].append(block)
        if len(chunks) > 1 and not chunks[-1]:
            chunks.pop()
        return chunks

    def directives_take(
        self,
        chunk: Sequence[Block],
        index: int,
        diagnostics: List[Exception],
    ) -> Tuple[List[Directive], List[Block]]:
        """
        Parse the leading directive comments of a slide

        Args:
            chunk: Blocks of one slide
            index: Slide index
            diagnostics: Receives DirectiveError entries

        Returns:
            (directives, remaining blocks without any DirectiveBlock)
        """
        directives: List[Directive] = []
        rest: List[Block] = []
        leading = True
        for block in chunk:
            if block.kind is BlockKind.DIRECTIVES:
                if leading:
                    directives.extend(self.registry.comment_parse(block.text, diagnostics, index))
                else:
                    LOG(f"Slide {index + 1}: comment after content ignored", level=2)
                continue
            leading = False
            rest.append(block)
        return directives, rest

    def columns_split(
        self,
        blocks: Sequence[Block],
        index: int,
        diagnostics: List[Exception],
    ) -> Optional[Tuple[Tuple[Block, ...], Tuple[Block, ...]]]:
        """
        Split a two-column slide at its column separator

        Returns:
            (left, right), or None when the slide does not have exactly one
            separator; a StructuralWarning is recorded in that case
        """
        breaks = [i for i, block in enumerate(blocks) if block.kind is BlockKind.COLUMN_BREAK]
        if len(breaks) != 1:
            warning = StructuralWarning(
                f"two-column layout needs exactly one '|||' separator, found {len(breaks)}; "
                "showing a single column",
                index,
            )
            LOG(str(warning), level=1)
            diagnostics.append(warning)
            return None
        at = breaks[0]
        return tuple(blocks[:at]), tuple(blocks[at + 1:])

    def banners_apply(self, blocks: Sequence[Block], font: str) -> Tuple[Block, ...]:
        """Mark every heading to be drawn as a figlet banner"""
        return tuple(
            replace(block, banner=font) if block.kind is BlockKind.HEADING else block
            for block in blocks
        )

    def slide_build(self, index: int, chunk: Sequence[Block], diagnostics: List[Exception]) -> Slide:
        """
        Build one Slide from its chunk of blocks

        Layout and transition never inherit from the previous slide.
        """
        directives, blocks = self.directives_take(chunk, index, diagnostics)

        layout = LayoutKind.DEFAULT
        transition = TransitionKind.NONE
        theme: Optional[str] = None
        figlet: Optional[str] = None
        for directive in directives:
            if isinstance(directive, LayoutDirective):
                layout = directive.layout
            elif isinstance(directive, TransitionDirective):
                transition = directive.transition
            elif isinstance(directive, ThemeDirective):
                theme = directive.name
            elif isinstance(directive, FigletDirective):
                figlet = directive.font or self.settings.figlet_font

        if figlet:
            blocks = list(self.banners_apply(blocks, figlet))

        columns = None
        if layout is LayoutKind.TWO_COLUMN:
            columns = self.columns_split(blocks, index, diagnostics)
            if columns is None:
                layout = LayoutKind.DEFAULT

        if columns is None:
            content = tuple(
                LITERAL_COLUMN_BREAK if block.kind is BlockKind.COLUMN_BREAK else block
                for block in blocks
            )
        else:
            content = ()

        LOG(
            f"Slide {index + 1}: layout={layout.value} transition={transition.value} "
            f"blocks={len(blocks)}",
            level=3,
        )
        return Slide(
            index=index,
            content=content,
            columns=columns,
            layout=layout,
            transition=transition,
            theme=theme,
            directives=tuple(directives),
        )

    def documentTheme_resolve(self, first: Slide, diagnostics: List[Exception]) -> str:
        """
        Pick the document palette

        Order: command line, the first slide's theme directive, settings.
        """
        if self.theme:
            resolved = theme_nameResolve(self.theme, self.settings.themes_dir)
            if resolved is not None:
                return resolved
            error = DirectiveError(f"unknown theme {self.theme!r}; using the document theme")
            LOG(str(error), level=1)
            diagnostics.append(error)
        if first.theme:
            return first.theme
        return theme_nameResolve(self.settings.default_theme, self.settings.themes_dir) or "mocha"

    def presentation_build(
        self,
        blocks: Sequence[Block],
        diagnostics: Optional[List[Exception]] = None,
        **presentation_fields,
    ) -> Presentation:
        """
        Build the Presentation

        Args:
            blocks: Translated blocks, markers included
            diagnostics: Problems collected so far; builder problems are added
            **presentation_fields: source_path / base_dir passed through

        Returns:
            Presentation with one slide per chunk
        """
        diagnostics = diagnostics if diagnostics is not None else []
        slides = [
            self.slide_build(index, chunk, diagnostics)
            for index, chunk in enumerate(self.chunks_split(blocks))
        ]

        header = slides[0]
        theme = self.documentTheme_resolve(header, diagnostics)
        # The header's theme is the document theme, not an override
        slides[0] = replace(header, theme=None)

        image_max_width = None
        for directive in header.directives:
            if isinstance(directive, ImageWidthDirective):
                image_max_width = directive.percent

        return Presentation(
            slides=tuple(slides),
            theme=theme,
            image_max_width=image_max_width,
            diagnostics=tuple(diagnostics),
            **presentation_fields,
        )
