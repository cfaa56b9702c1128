"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, Dict, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the startup pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as startup progresses.

    Pipeline stages and their state additions:
        - Initial: inputFile, theme, verbosity, logFile, noIntro
        - env_check: inputSourceFile, envOK
        - source_read: sourceText
        - presentation_build: presentation
        - slideshow_run: runResult

    Attributes:
        inputFile: Markdown file given on the command line
        theme: Optional palette name from --theme (overrides the document)
        verbosity: Logging verbosity level (1-3)
        logFile: Optional file receiving log output while the UI is shown
        noIntro: Skip the startup transition
        envOK: Environment validation passed
        inputSourceFile: Resolved path to the markdown file
        sourceText: Contents of the markdown file
        presentation: Built Presentation
        runResult: Summary of the slideshow run (slides seen, last index)
    """

    # CLI arguments
    inputFile: str = field(default="")
    theme: Optional[str] = field(default=None)
    verbosity: int = field(default=1)
    logFile: Optional[str] = field(default=None)
    noIntro: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    sourceText: str = field(default="")
    presentation: Optional[Any] = field(default=None)  # Presentation at runtime
    runResult: Optional[Dict] = field(default=None)

    @classmethod
    def state_createFromNamespace(cls: Type["ProgramState"], options: Namespace) -> "ProgramState":
        """
        Create ProgramState from an argparse Namespace.

        Args:
            options: Parsed CLI arguments (inputFile, theme, etc.)

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        # Get the dictionary of all attributes from the Namespace
        options_dict = vars(options)

        # Get the set of valid field names for ProgramState
        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        # Filter options_dict to only include fields that exist in ProgramState
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}

        # Instantiate the dataclass by unpacking the filtered dictionary.
        return cls(**filtered_options)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            source_read,
            presentation_build,
            slideshow_run
        )

    This is equivalent to:
        slideshow_run(presentation_build(source_read(env_check(initial_state))))

    But reads left-to-right instead of inside-out.
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
