"""
Inline image backends

Images are drawn by writing a terminal graphics escape sequence at the top
left cell of their placement, after the slide text has been painted and
only once the slide's transition has completed.

Supported protocols:
  - iTerm2 (also WezTerm): OSC 1337 File, the original bytes base64 encoded
  - Kitty graphics: PNG re-encoded with Pillow, sent in 4096 byte chunks
  - none: the placeholder box with the alt text stays on screen
"""

import base64
import io
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from PIL import Image, UnidentifiedImageError

from ..models.render import Rect
from .errors import ResourceError
from .log import LOG


KITTY_CHUNK = 4096


@dataclass(frozen=True)
class ImageHandle:
    """
    A ready-to-draw image

    Attributes:
        path: Image file
        rect: Cells the image occupies
        sequence: Escape sequence to write with the cursor at rect's corner
    """
    path: str
    rect: Rect
    sequence: str


class ImageBackend:
    """Base backend: subclasses encode images for one terminal protocol"""

    name = "none"

    def __init__(self) -> None:
        self.payloads: Dict[str, bytes] = {}
        self.failures: Dict[str, ResourceError] = {}

    def payload_load(self, path: str) -> bytes:
        """
        Read and validate an image file once; a failure is remembered too

        Raises:
            ResourceError: For URLs, missing files and undecodable data
        """
        if path in self.payloads:
            return self.payloads[path]
        if path in self.failures:
            raise self.failures[path]
        try:
            self.payloads[path] = self.payload_read(path)
        except ResourceError as e:
            self.failures[path] = e
            raise
        return self.payloads[path]

    def payload_read(self, path: str) -> bytes:
        if "://" in path:
            raise ResourceError(f"remote image {path} is not fetched")
        try:
            data = Path(path).read_bytes()
            with Image.open(io.BytesIO(data)) as image:
                image.verify()
        except (UnidentifiedImageError, SyntaxError, ValueError) as e:
            raise ResourceError(f"cannot decode image {path}: {e}")
        except OSError as e:
            raise ResourceError(f"cannot read image {path}: {e}")
        return self.payload_encode(path, data)

    def payload_encode(self, path: str, data: bytes) -> bytes:
        return data

    def render_image(self, resolved_path: str, max_width_percent: int, region: Rect) -> Optional[ImageHandle]:
        """
        Prepare an image for drawing in a region

        Args:
            resolved_path: Image file
            max_width_percent: Width already applied to the region
            region: Cells reserved for the image

        Returns:
            ImageHandle, or None when this backend draws nothing

        Raises:
            ResourceError: If the image cannot be loaded
        """
        return None

    def clear(self) -> str:
        """Sequence removing previously drawn images (if the protocol needs one)"""
        return ""


class NullImageBackend(ImageBackend):
    """Terminal without inline images"""


class Iterm2ImageBackend(ImageBackend):
    name = "iterm2"

    def render_image(self, resolved_path: str, max_width_percent: int, region: Rect) -> Optional[ImageHandle]:
        data = self.payload_load(resolved_path)
        encoded = base64.b64encode(data).decode("ascii")
        sequence = (
            f"\x1b]1337;File=size={len(data)};width={region.width};height={region.height};"
            f"inline=1;preserveAspectRatio=1:{encoded}\x07"
        )
        return ImageHandle(resolved_path, region, sequence)


class KittyImageBackend(ImageBackend):
    name = "kitty"

    def payload_encode(self, path: str, data: bytes) -> bytes:
        with Image.open(io.BytesIO(data)) as image:
            buffer = io.BytesIO()
            image.convert("RGBA").save(buffer, format="PNG")
        return buffer.getvalue()

    def render_image(self, resolved_path: str, max_width_percent: int, region: Rect) -> Optional[ImageHandle]:
        encoded = base64.b64encode(self.payload_load(resolved_path)).decode("ascii")
        chunks = [encoded[i:i + KITTY_CHUNK] for i in range(0, len(encoded), KITTY_CHUNK)] or [""]
        parts = []
        for number, chunk in enumerate(chunks):
            more = 1 if number < len(chunks) - 1 else 0
            if number == 0:
                control = f"a=T,f=100,q=2,C=1,c={region.width},r={region.height},m={more}"
            else:
                control = f"m={more}"
            parts.append(f"\x1b_G{control};{chunk}\x1b\\")
        return ImageHandle(resolved_path, region, "".join(parts))

    def clear(self) -> str:
        return "\x1b_Ga=d,q=2\x1b\\"


def imageBackend_detect(environ: Optional[Mapping[str, str]] = None) -> ImageBackend:
    """
    Pick the image backend for the running terminal

    Args:
        environ: Environment to inspect (default: os.environ)

    Returns:
        Iterm2ImageBackend, KittyImageBackend or NullImageBackend
    """
    environ = os.environ if environ is None else environ
    term_program = environ.get("TERM_PROGRAM", "")
    if "iTerm" in term_program or "WezTerm" in term_program or "iTerm" in environ.get("LC_TERMINAL", ""):
        backend: ImageBackend = Iterm2ImageBackend()
    elif environ.get("TERM") == "xterm-kitty" or "KITTY_WINDOW_ID" in environ:
        backend = KittyImageBackend()
    else:
        backend = NullImageBackend()
    LOG(f"Image backend: {backend.name}", level=2)
    return backend
