"""
Figlet banners for slide headings

Example:
    >>> lines = banner_render("Hi", "standard")
    >>> len(lines) > 1
    True
"""

from typing import List

from pyfiglet import Figlet, FontNotFound

from .log import LOG


def banner_render(text: str, font: str, width: int = 1000) -> List[str]:
    """
    Render text as figlet lines

    Args:
        text: Heading text
        font: pyfiglet font name
        width: Line width pyfiglet may use before wrapping

    Returns:
        Banner lines without trailing blank lines. An unknown font gives
        the plain text as a single line.
    """
    try:
        rendered = Figlet(font=font, width=width).renderText(text)
    except FontNotFound:
        LOG(f"Figlet font '{font}' not found, heading shown as text", level=1)
        return [text]

    lines = rendered.rstrip('\n').split('\n')
    while lines and not lines[-1].strip():
        lines.pop()
    return [line.rstrip() for line in lines] or [text]
