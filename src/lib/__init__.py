"""
termdeck library

Markdown to slides pipeline, navigation and transitions, layout and the
terminal backends.
"""

from .parser import Parser, presentation_load
from .directives import DirectiveRegistry
from .log import LOG, state_connectToLogger

__all__ = ["Parser", "presentation_load", "DirectiveRegistry", "LOG", "state_connectToLogger"]
