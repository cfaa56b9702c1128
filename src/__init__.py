"""
termdeck - Markdown slides in the terminal

Presents one markdown document as animated, full-screen terminal slides.
"""

__version__ = "0.3.0"

from .lib import Parser, DirectiveRegistry, LOG, state_connectToLogger, presentation_load

__all__ = ["Parser", "DirectiveRegistry", "LOG", "state_connectToLogger", "presentation_load", "__version__"]
