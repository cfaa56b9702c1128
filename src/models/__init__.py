"""
Models package for termdeck

Contains data structures and type definitions for the presentation pipeline.
"""

from .state import ProgramState, pipeline
from .directives import (
    Directive,
    DirectiveSpec,
    LayoutKind,
    TransitionKind,
    LayoutDirective,
    TransitionDirective,
    ThemeDirective,
    FigletDirective,
    ImageWidthDirective,
    UnrecognizedDirective,
)
from .parser import EventKind, Tag, MarkdownEvent, ProtectedSource
from .slides import (
    Block,
    BlockKind,
    RunStyle,
    StyledRun,
    HeadingBlock,
    ParagraphBlock,
    ListItem,
    ListBlock,
    CodeBlock,
    QuoteBlock,
    ImageBlock,
    RuleBlock,
    ColumnBreakBlock,
    DirectiveBlock,
    Slide,
    Presentation,
)
from .session import NavEvent, Direction, PendingSlot, NavigationState, TransitionState, SessionContext
from .render import Style, Span, RenderLine, Rect, Region, RenderTree, ImagePlacement, Cell, Frame

__all__ = [
    "ProgramState",
    "pipeline",
    "Directive",
    "DirectiveSpec",
    "LayoutKind",
    "TransitionKind",
    "LayoutDirective",
    "TransitionDirective",
    "ThemeDirective",
    "FigletDirective",
    "ImageWidthDirective",
    "UnrecognizedDirective",
    "EventKind",
    "Tag",
    "MarkdownEvent",
    "ProtectedSource",
    "Block",
    "BlockKind",
    "RunStyle",
    "StyledRun",
    "HeadingBlock",
    "ParagraphBlock",
    "ListItem",
    "ListBlock",
    "CodeBlock",
    "QuoteBlock",
    "ImageBlock",
    "RuleBlock",
    "ColumnBreakBlock",
    "DirectiveBlock",
    "Slide",
    "Presentation",
    "NavEvent",
    "Direction",
    "PendingSlot",
    "NavigationState",
    "TransitionState",
    "SessionContext",
    "Style",
    "Span",
    "RenderLine",
    "Rect",
    "Region",
    "RenderTree",
    "ImagePlacement",
    "Cell",
    "Frame",
]
