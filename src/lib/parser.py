"""
Parser for termdeck markdown decks

Transforms a markdown document into an immutable Presentation.

The parser operates in three phases:
1. Protection: a fence-aware line pass over the raw source guards slide
   delimiters and marks column separators
2. Translation: mistletoe events are turned into Blocks and markers
3. Building: the block stream is split into Slides with their directives

Key features:
- '---' inside fenced code never splits a slide
- '---' right under a paragraph line is a delimiter, not a setext underline
- '|||' (not markdown) is carried through the parser as a sentinel paragraph
- All recoverable problems are collected as diagnostics, never raised

Example:
    >>> deck = Parser("# One\\n---\\n# Two").parse()
    >>> len(deck)
    2
    >>> deck.slides[1].content[0].text
    'Two'
"""

import re
from pathlib import Path
from typing import List, Optional, Tuple

from ..config import AppSettings, appsettings
from ..models.parser import ProtectedSource
from ..models.slides import Presentation
from .builder import SlideBuilder
from .directives import DirectiveRegistry
from .errors import SourceError
from .events import markdown_events
from .log import LOG
from .translator import blocks_translate


FENCE_PATTERN = re.compile(r'^ {0,3}(`{3,}|~{3,})(.*)$')
SLIDE_DELIMITER = '---'
COLUMN_DELIMITER = '|||'


class Parser:
    """
    Parser for termdeck markdown source

    Handles:
    - Slide delimiters outside code fences
    - Column separators for two-column slides
    - Comment directives (through the DirectiveRegistry)
    - Image paths relative to the document directory
    """

    def __init__(
        self,
        source: str,
        base_dir: Path = Path("."),
        registry: Optional[DirectiveRegistry] = None,
        settings: AppSettings = appsettings,
        source_path: Optional[Path] = None,
        theme: Optional[str] = None,
    ):
        """
        Initialize parser with source text

        Args:
            source: Markdown text of the whole deck
            base_dir: Directory image paths are resolved against
            registry: Optional DirectiveRegistry (one is created if omitted)
            settings: Application settings
            source_path: File the source was read from, kept for display
            theme: Palette forced from the command line, overriding the document

        Attributes:
            diagnostics: Recoverable problems found while parsing
        """
        self.source = source
        self.base_dir = Path(base_dir)
        self.settings = settings
        self.source_path = source_path
        self.theme = theme
        self.diagnostics: List[Exception] = []

        if registry is None:
            registry = DirectiveRegistry(themes_dir=settings.themes_dir)
        self.registry = registry

    def fence_track(self, line: str, fence: Optional[Tuple[str, int]]) -> Optional[Tuple[str, int]]:
        """
        Update code fence state with one source line

        Args:
            line: Source line
            fence: (fence character, fence length) of the open fence, or None

        Returns:
            New fence state

        Example:
            "```python" opens ('`', 3); a later "```" closes it, while
            "~~~" inside it is just text
        """
        match = FENCE_PATTERN.match(line)
        if not match:
            return fence
        marker = match.group(1)
        if fence is None:
            # A backtick fence's info string may not contain backticks
            if marker[0] == '`' and '`' in match.group(2):
                return None
            return (marker[0], len(marker))
        if marker[0] == fence[0] and len(marker) >= fence[1] and not match.group(2).strip():
            return None
        return fence

    def source_protect(self) -> ProtectedSource:
        """
        Pre-process the source before markdown parsing

        Outside code fences, every line that is exactly '---' gets a blank
        line before it so markdown reads it as a thematic break, and every
        line that is exactly '|||' becomes a paragraph of its own holding the
        column sentinel.

        Returns:
            ProtectedSource with the rewritten text and marker counts

        Example:
            Input:  "Intro\\n---\\nNext"
            Output: "Intro\\n\\n---\\nNext"
        """
        result: List[str] = []
        fence: Optional[Tuple[str, int]] = None
        delimiters = 0
        columns = 0

        for line in self.source.splitlines():
            if fence is None and line.rstrip() == SLIDE_DELIMITER:
                result.extend(["", SLIDE_DELIMITER])
                delimiters += 1
            elif fence is None and line.strip() == COLUMN_DELIMITER:
                result.extend(["", self.settings.column_sentinel, ""])
                columns += 1
            else:
                result.append(line)
                fence = self.fence_track(line, fence)

        return ProtectedSource('\n'.join(result) + '\n', delimiters, columns)

    def parse(self) -> Presentation:
        """
        Parse the source into a Presentation

        Main entry point. Never raises for malformed markdown or directives;
        problems are available afterwards as `diagnostics` and on the
        returned Presentation.

        Returns:
            Presentation with at least one slide

        Example:
            >>> deck = Parser("a\\n---\\nb\\n---\\nc\\n---\\nd").parse()
            >>> len(deck.slides)
            4
        """
        protected = self.source_protect()
        LOG(
            f"Source: {protected.slide_delimiters} slide delimiters, "
            f"{protected.column_markers} column separators",
            level=3,
        )

        events = markdown_events(protected.text)
        LOG(f"Markdown produced {len(events)} events", level=3)

        blocks = blocks_translate(
            events,
            self.base_dir,
            self.registry,
            self.diagnostics,
            column_sentinel=self.settings.column_sentinel,
        )

        builder = SlideBuilder(registry=self.registry, settings=self.settings, theme=self.theme)
        presentation = builder.presentation_build(
            blocks,
            diagnostics=self.diagnostics,
            source_path=self.source_path,
            base_dir=self.base_dir,
        )

        for problem in presentation.diagnostics:
            LOG(f"{type(problem).__name__}: {problem}", level=1)
        LOG(f"Built {len(presentation)} slides, theme '{presentation.theme}'", level=2)
        return presentation


def source_load(path: Path) -> str:
    """
    Read a markdown file as UTF-8

    Raises:
        SourceError: If the file cannot be read or decoded
    """
    try:
        return Path(path).read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(f"cannot read {path}: {e}")


def presentation_load(
    path: Path,
    theme: Optional[str] = None,
    settings: AppSettings = appsettings,
) -> Presentation:
    """
    Read a markdown file and parse it

    Args:
        path: Markdown file
        theme: Palette forced from the command line
        settings: Application settings

    Returns:
        Presentation

    Raises:
        SourceError: If the file cannot be read or is not UTF-8
    """
    path = Path(path)
    return Parser(
        source_load(path),
        base_dir=path.resolve().parent,
        settings=settings,
        source_path=path,
        theme=theme,
    ).parse()
