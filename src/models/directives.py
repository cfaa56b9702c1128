"""
Directive specification and value models

Comment directives (<!-- key: value -->) are parsed into a small tagged
union of frozen dataclasses. Every variant carries a `key`; unknown keys are
kept as UnrecognizedDirective so newer decks still load.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union


class LayoutKind(Enum):
    """Spatial arrangement of a slide's content"""
    DEFAULT = "default"
    CENTER = "center"
    TWO_COLUMN = "two-column"


class TransitionKind(Enum):
    """Animation played when a slide becomes current"""
    NONE = "none"
    FADE = "fade"
    DISSOLVE = "dissolve"
    SWEEP_IN = "sweep-in"
    COALESCE = "coalesce"
    LINES = "lines"
    LINES_CROSS = "lines-cross"
    SLIDE_RGB = "slide-rgb"
    LINES_RGB = "lines-rgb"


@dataclass(frozen=True)
class LayoutDirective:
    layout: LayoutKind
    key: str = "layout"


@dataclass(frozen=True)
class TransitionDirective:
    transition: TransitionKind
    key: str = "transition"


@dataclass(frozen=True)
class ThemeDirective:
    name: Optional[str]      # None when the requested palette is unknown
    key: str = "theme"


@dataclass(frozen=True)
class FigletDirective:
    font: Optional[str] = None   # None means the configured default font
    key: str = "figlet"


@dataclass(frozen=True)
class ImageWidthDirective:
    percent: int
    key: str = "image_max_width"


@dataclass(frozen=True)
class UnrecognizedDirective:
    key: str
    value: Optional[str] = None


Directive = Union[
    LayoutDirective,
    TransitionDirective,
    ThemeDirective,
    FigletDirective,
    ImageWidthDirective,
    UnrecognizedDirective,
]


@dataclass
class DirectiveSpec:
    """
    Specification for a comment directive key

    Defines metadata and the value parser for a directive. Used by
    DirectiveRegistry to turn `key: value` comment lines into typed values.

    Attributes:
        name: Directive key as written in the comment
        description: Human-readable description
        handler: Value parser (value or None) -> Directive; raises ValueError
            on an invalid value
        fallback: Directive used when the value is invalid
        examples: Example comment lines
        aliases: Alternative key spellings
    """
    name: str
    description: str
    handler: Callable[[Optional[str]], Directive]
    fallback: Directive
    examples: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)

    def matches(self, key: str) -> bool:
        """
        Check if this spec handles a directive key

        Keys are compared case-insensitively, with '-' and '_' treated alike
        (image-max-width and image_max_width are the same key).

        Args:
            key: Key to check

        Returns:
            True if this spec handles the key
        """
        normalized = key.lower().replace('-', '_')
        if self.name == normalized:
            return True
        return normalized in self.aliases
