"""
Error types for termdeck

Only SourceError is ever raised out of the presentation pipeline. The
others describe recoverable problems: they are instantiated (not raised)
and collected as diagnostics on the Presentation, or raised inside a
collaborator and caught by the event loop, which degrades the render
instead of aborting.
"""

from typing import Optional


class TermdeckError(Exception):
    """Base class for all termdeck errors"""

    def __init__(self, message: str, slide_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.slide_index = slide_index

    def __str__(self) -> str:
        if self.slide_index is None:
            return self.message
        return f"slide {self.slide_index + 1}: {self.message}"


class ParseError(TermdeckError):
    """Markdown construct that termdeck does not render; shown as plain text"""


class DirectiveError(TermdeckError):
    """Invalid directive value; the directive falls back to its default"""


class StructuralWarning(TermdeckError):
    """Two-column slide without exactly one '|||'; rendered single-column"""


class ResourceError(TermdeckError):
    """Missing or unreadable image; a placeholder box with alt text stays"""


class SourceError(TermdeckError):
    """The source document could not be read. Fatal, raised before any UI"""
