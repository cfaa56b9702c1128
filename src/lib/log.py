"""
Centralized logging using Loguru with context-aware verbosity.

This module provides a LOG() function that respects the current ProgramState's
verbosity level without requiring explicit state passing.

Features:
- Context-aware logging tied to ProgramState verbosity
- Rich formatting with timestamps, colors, and metadata
- Thread-safe using contextvars
- Works throughout lib modules without passing state
- Can be diverted away from the terminal while the slideshow owns the screen

Usage:
    from termdeck.lib.log import LOG, state_connectToLogger

    # At start of pipeline function:
    state_connectToLogger(state)

    # Anywhere in that context:
    LOG("This message appears if verbosity >= 1", level=1)
    LOG("Debug details appear if verbosity >= 2", level=2)
    LOG("Verbose trace appears if verbosity >= 3", level=3)
"""

from loguru import logger
from typing import Any, Iterator, List, Optional
from contextlib import contextmanager
from contextvars import ContextVar
import sys

# Context variable to hold current ProgramState
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

# Configure loguru with termdeck-specific format
logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()  # Remove default handler
_stderr_sink: int = logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Connect a ProgramState to the logging context.

    Call this at the start of the pipeline to make the state's verbosity
    setting available to LOG() calls throughout that context.

    Args:
        state: ProgramState instance with verbosity attribute
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if current state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=debug)
        **kwargs: Additional loguru metadata (e.g., exc_info=True for exceptions)

    Verbosity levels:
        1 = Normal output (default)
        2 = Verbose (-v)
        3 = Debug (-vv or higher)

    Example:
        LOG("Read 42 lines", level=1)
        LOG("Slide 3: layout two-column", level=2)
        LOG("Transition progress 0.53", level=3)
    """
    state = _program_state.get()

    if state and hasattr(state, 'verbosity') and state.verbosity >= level:
        # depth=1 reports the caller, not this helper, in the {function} column
        logger.opt(depth=1).debug(message, **kwargs)


@contextmanager
def logging_divert(log_file: Optional[str] = None) -> Iterator[None]:
    """
    Keep log output off the terminal while the slideshow is on screen.

    With a log_file, records are written there for the duration. Without
    one, records are buffered and replayed to stderr once the block exits.

    Args:
        log_file: Optional path of a file sink
    """
    global _stderr_sink

    buffered: List[str] = []
    logger.remove(_stderr_sink)
    if log_file:
        sink = logger.add(log_file, format=logger_format, level="DEBUG", colorize=False)
    else:
        sink = logger.add(buffered.append, format=logger_format, level="DEBUG", colorize=True)
    try:
        yield
    finally:
        logger.remove(sink)
        _stderr_sink = logger.add(sys.stderr, format=logger_format, level="DEBUG")
        for record in buffered:
            sys.stderr.write(record)
