"""
Comment directive parser for termdeck

Slides are configured with HTML comments placed before their content:

    <!-- layout: two-column -->
    <!-- transition: lines-cross -->
    <!-- figlet: slant -->

Parsing is line oriented: every line of a comment body that looks like
`key: value` or a bare `key` yields one Directive; prose lines are ignored.
Each key is described by a DirectiveSpec whose handler validates the value.
Invalid values resolve to the spec's fallback and are reported as
DirectiveError diagnostics; unknown keys become UnrecognizedDirective.
"""

import re
from typing import Dict, List, Optional, Tuple

from pyfiglet import FigletFont

from ..models.directives import (
    Directive,
    DirectiveSpec,
    FigletDirective,
    ImageWidthDirective,
    LayoutDirective,
    LayoutKind,
    ThemeDirective,
    TransitionDirective,
    TransitionKind,
    UnrecognizedDirective,
)
from .errors import DirectiveError
from .log import LOG
from .theme import theme_nameResolve


COMMENT_PATTERN = re.compile(r'<!--(.*?)(?:-->|$)', re.DOTALL)
LINE_PATTERN = re.compile(r'^([A-Za-z_][\w-]*)\s*(?::(.*))?$')

TRANSITION_ALIASES: Dict[str, TransitionKind] = {
    'sweep': TransitionKind.SWEEP_IN,
}


class DirectiveRegistry:
    """
    Registry of directive specifications

    Maps directive keys to DirectiveSpec objects holding the value parser
    and the fallback used for invalid values.
    """

    def __init__(self, themes_dir: Optional[str] = None) -> None:
        """
        Initialize the registry and register all built-in directive keys

        Args:
            themes_dir: Directory used to validate theme names
        """
        self.specs: Dict[str, DirectiveSpec] = {}
        self.themes_dir = themes_dir
        self.slideDirectives_register()
        self.appearanceDirectives_register()

    def register(self, spec: DirectiveSpec) -> None:
        """Register a directive specification"""
        self.specs[spec.name] = spec
        for alias in spec.aliases:
            self.specs[alias] = spec

    def spec_get(self, key: str) -> Optional[DirectiveSpec]:
        """Get the spec handling a key, or None for unknown keys"""
        normalized = key.lower().replace('-', '_')
        if normalized in self.specs:
            return self.specs[normalized]
        for spec in self.specs.values():
            if spec.matches(key):
                return spec
        return None

    def slideDirectives_register(self) -> None:
        """Register layout and transition keys"""

        def layout_handler(value: Optional[str]) -> Directive:
            return LayoutDirective(LayoutKind(_value_require(value)))

        def transition_handler(value: Optional[str]) -> Directive:
            name = _value_require(value)
            if name in TRANSITION_ALIASES:
                return TransitionDirective(TRANSITION_ALIASES[name])
            return TransitionDirective(TransitionKind(name))

        self.register(DirectiveSpec(
            name='layout',
            description='Arrangement of the slide: default, center or two-column',
            handler=layout_handler,
            fallback=LayoutDirective(LayoutKind.DEFAULT),
            examples=['<!-- layout: center -->', '<!-- layout: two-column -->'],
        ))

        self.register(DirectiveSpec(
            name='transition',
            description='Animation played when the slide is entered',
            handler=transition_handler,
            fallback=TransitionDirective(TransitionKind.NONE),
            examples=['<!-- transition: fade -->', '<!-- transition: lines-cross -->'],
        ))

    def appearanceDirectives_register(self) -> None:
        """Register theme, figlet and image width keys"""

        def theme_handler(value: Optional[str]) -> Directive:
            name = theme_nameResolve(_value_require(value), self.themes_dir)
            if name is None:
                raise ValueError(f"unknown theme {value!r}")
            return ThemeDirective(name)

        def figlet_handler(value: Optional[str]) -> Directive:
            if not value:
                return FigletDirective(None)
            if value not in FigletFont.getFonts():
                raise ValueError(f"unknown figlet font {value!r}")
            return FigletDirective(value)

        def image_width_handler(value: Optional[str]) -> Directive:
            percent = int(_value_require(value).rstrip('%').strip())
            if not 1 <= percent <= 100:
                raise ValueError(f"image width {percent}% outside 1..100")
            return ImageWidthDirective(percent)

        self.register(DirectiveSpec(
            name='theme',
            description='Palette for the document (at the top) or for one slide',
            handler=theme_handler,
            fallback=ThemeDirective(None),
            examples=['<!-- theme: latte -->', '<!-- theme: catppuccin-frappe -->'],
        ))

        self.register(DirectiveSpec(
            name='figlet',
            description='Render the slide headings as figlet banners',
            handler=figlet_handler,
            fallback=FigletDirective(None),
            examples=['<!-- figlet -->', '<!-- figlet: slant -->'],
        ))

        self.register(DirectiveSpec(
            name='image_max_width',
            description='Maximum image width as a percentage of its region',
            handler=image_width_handler,
            fallback=ImageWidthDirective(100),
            examples=['<!-- image_max_width: 60 -->', '<!-- image_max_width: 40% -->'],
            aliases=['image_width'],
        ))

    def line_parse(
        self,
        line: str,
        diagnostics: Optional[List[Exception]] = None,
        slide_index: Optional[int] = None,
    ) -> Optional[Directive]:
        """
        Parse one comment line into a Directive

        Args:
            line: Comment body line, e.g. "layout: center" or "figlet"
            diagnostics: List receiving DirectiveError for invalid values
            slide_index: Slide the line belongs to (for messages)

        Returns:
            Directive, or None if the line is not of the key/value form

        Example:
            >>> DirectiveRegistry().line_parse("layout: center")
            LayoutDirective(layout=<LayoutKind.CENTER: 'center'>, key='layout')
            >>> DirectiveRegistry().line_parse("remember to smile") is None
            True
        """
        match = LINE_PATTERN.match(line.strip())
        if not match:
            return None

        key = match.group(1)
        value = match.group(2).strip() if match.group(2) is not None else None

        spec = self.spec_get(key)
        if spec is None:
            LOG(f"Unrecognized directive '{key}' kept for later versions", level=2)
            return UnrecognizedDirective(key=key, value=value)

        try:
            return spec.handler(value.lower() if value and spec.name != 'figlet' else value)
        except ValueError as e:
            error = DirectiveError(
                f"invalid value {value!r} for '{spec.name}' ({e}); using default",
                slide_index,
            )
            LOG(str(error), level=1)
            if diagnostics is not None:
                diagnostics.append(error)
            return spec.fallback

    def comment_parse(
        self,
        text: str,
        diagnostics: Optional[List[Exception]] = None,
        slide_index: Optional[int] = None,
        keys: Optional[Tuple[str, ...]] = None,
    ) -> List[Directive]:
        """
        Parse every directive in a run of HTML comments

        Args:
            text: Raw comment text, possibly several comments and lines
            diagnostics: List receiving DirectiveError for invalid values
            slide_index: Slide the comments belong to (for messages)
            keys: Only parse lines for these directive names

        Returns:
            Directives in source order

        Example:
            "<!--\\nlayout: center\\ntransition: fade\\n-->" yields
            [LayoutDirective(CENTER), TransitionDirective(FADE)]
        """
        directives: List[Directive] = []
        for body in COMMENT_PATTERN.findall(text):
            for line in body.splitlines():
                if keys is not None and not self.line_selects(line, keys):
                    continue
                directive = self.line_parse(line, diagnostics, slide_index)
                if directive is not None:
                    directives.append(directive)
        return directives

    def line_selects(self, line: str, keys: Tuple[str, ...]) -> bool:
        """True if a comment line sets one of the given directive names"""
        match = LINE_PATTERN.match(line.strip())
        if not match:
            return False
        spec = self.spec_get(match.group(1))
        return spec is not None and spec.name in keys


def _value_require(value: Optional[str]) -> str:
    if not value:
        raise ValueError("missing value")
    return value
