#!/usr/bin/env python3
"""
termdeck - Markdown slides in the terminal

Presents a single markdown document as a sequence of full-screen terminal
slides, with per-slide layouts, animated transitions and inline images.

Philosophy:
    - Text-first: the deck is a plain markdown file, readable anywhere
    - Comment directives: <!-- key: value --> lines configure slides
    - One file, one deck: slides are separated by '---' lines
    - Degrade, never crash: malformed input renders imperfectly

Key Features:
    - Layouts: default, center, two-column ('|||' separates the columns)
    - Transitions: fade, dissolve, sweep-in, coalesce, lines, lines-cross,
      slide-rgb, lines-rgb
    - Figlet banners for headings
    - Catppuccin palettes (mocha, macchiato, frappe, latte)
    - Inline images on iTerm2, WezTerm and Kitty

Usage:
    termdeck slides.md

Examples:
    # Present with the document's own theme
    termdeck talk.md

    # Force a palette and log diagnostics to a file
    termdeck talk.md --theme latte --logFile termdeck.log -vv
"""

import sys
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import appsettings
from .lib import LOG, state_connectToLogger
from .lib.banner import banner_render
from .lib.errors import SourceError
from .lib.images import imageBackend_detect
from .lib.log import logging_divert
from .lib.parser import Parser, source_load
from .lib.session import Slideshow
from .lib.terminal import RichTerminal
from .lib.theme import ThemeError, theme_load, theme_nameResolve, themes_listAvailable
from .models import ProgramState, pipeline


# Define CLI arguments
parser = ArgumentParser(
    description="termdeck - present a markdown file as terminal slides",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument("inputFile", type=str, help="Markdown file to present")

parser.add_argument(
    "--theme",
    default=None,
    type=str,
    help="Palette overriding the document theme (mocha, macchiato, frappe, latte)",
)

parser.add_argument(
    "--logFile",
    default=None,
    type=str,
    help="Write log output here while the slides are on screen (default: replay to stderr on exit)",
)

parser.add_argument(
    "--noIntro",
    action="store_true",
    help="Show the first slide without playing its transition",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate the environment before anything is read.

    Verifies that the input file exists and that a --theme, if given,
    names an installed palette.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to the markdown file
            - theme: Installed palette name (when --theme was given)
            - envOK: True if environment is valid

    Exits:
        1 if the input file or the theme is missing
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG("\n" + "\n".join(banner_render("termdeck", "standard")), level=2)

    LOG("Checking environment...", level=2)

    input_file = Path(state.inputFile)
    if not input_file.is_file():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.inputSourceFile = input_file.resolve()
    LOG(f"Input file: {state.inputSourceFile}", level=2)

    if state.theme:
        resolved = theme_nameResolve(state.theme, appsettings.themes_dir)
        if resolved is None:
            available = ", ".join(themes_listAvailable(appsettings.themes_dir))
            print(f"Error: Unknown theme '{state.theme}'. Available: {available}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.theme = resolved
        LOG(f"Theme forced to {resolved}", level=2)

    state.envOK = True
    return state


def source_read(inputstate: ProgramState) -> ProgramState:
    """
    Read the markdown source.

    Args:
        inputstate: Program state with inputSourceFile set

    Returns:
        ProgramState with added field:
            - sourceText: Contents of the markdown file

    Exits:
        1 if the file cannot be read as UTF-8
    """

    state = inputstate.copy()

    LOG("Reading source file...", level=2)
    try:
        state.sourceText = source_load(state.inputSourceFile)
    except SourceError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Read {len(state.sourceText)} characters from {state.inputSourceFile.name}", level=2)
    return state


def presentation_build(inputstate: ProgramState) -> ProgramState:
    """
    Parse the source into a Presentation and load its palettes.

    Malformed markdown and directives never stop the build; they are
    logged as diagnostics.

    Args:
        inputstate: Program state with sourceText

    Returns:
        ProgramState with added field:
            - presentation: Presentation ready to show

    Exits:
        1 if a palette file is broken
    """

    state = inputstate.copy()

    LOG("Building slides...", level=2)
    deck_parser = Parser(
        state.sourceText,
        base_dir=state.inputSourceFile.parent,
        source_path=state.inputSourceFile,
        theme=state.theme,
    )
    presentation = deck_parser.parse()

    try:
        for index in range(len(presentation)):
            theme_load(presentation.theme_for(index), appsettings.themes_dir)
    except ThemeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(
        f"{len(presentation)} slides, {len(presentation.diagnostics)} diagnostics, "
        f"theme {presentation.theme}",
        level=1,
    )
    state.presentation = presentation
    return state


def slideshow_run(inputstate: ProgramState) -> ProgramState:
    """
    Show the slides until the user quits.

    Logging is diverted away from the screen for the duration.

    Args:
        inputstate: Program state with presentation

    Returns:
        ProgramState with added field:
            - runResult: Summary of the session

    Exits:
        1 if there is no presentation or no interactive terminal
    """

    state = inputstate.copy()

    if state.presentation is None:
        print("Error: No presentation to show", file=sys.stderr)
        sys.exit(1)

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        print("Error: termdeck needs an interactive terminal", file=sys.stderr)
        sys.exit(1)

    with logging_divert(state.logFile):
        slideshow = Slideshow(
            state.presentation,
            RichTerminal(),
            image_backend=imageBackend_detect(),
            intro=not state.noIntro,
        )
        try:
            state.runResult = slideshow.run()
        except KeyboardInterrupt:
            LOG("Interrupted", level=2)
            state.runResult = {
                'slides': len(state.presentation),
                'last_index': slideshow.ctx.navigation.current_index,
            }

    LOG(f"Session: {state.runResult}", level=2)
    return state


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point - present a markdown deck.

    Orchestrates the startup pipeline:
        1. env_check: Validate the input file and theme
        2. source_read: Read the markdown source
        3. presentation_build: Build the immutable Presentation
        4. slideshow_run: Run the interactive slideshow

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Process exit status
    """

    options: Namespace = parser.parse_args(argv)
    state: ProgramState = ProgramState.state_createFromNamespace(options)

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, source_read, presentation_build, slideshow_run)
    return 0


if __name__ == "__main__":
    sys.exit(main())
