"""
Transition orchestrator

Blends the outgoing slide's frame into the incoming one while a transition
is in progress. Every transition kind is a pure function

    blend(old_frame, new_frame, progress, settings) -> Frame

selected from the BLENDS table. Progress is elapsed time over the transition
duration, clamped to [0, 1] and never decreasing; it ends at exactly 1.
"""

import colorsys
from typing import Callable, Dict, Optional, Tuple

from ..config import AppSettings, appsettings
from ..models.directives import TransitionKind
from ..models.render import Cell, Frame, Style
from ..models.session import Direction, TransitionState
from .log import LOG


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(max(value, low), high)


def hex_rgb(color: Optional[str]) -> Tuple[int, int, int]:
    if not color or len(color) != 7:
        return (0, 0, 0)
    return (int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16))


def color_mix(old: Optional[str], new: Optional[str], t: float) -> Optional[str]:
    """Linear mix of two '#rrggbb' colors"""
    if old is None or new is None:
        return new if t >= 0.5 else old
    a, b = hex_rgb(old), hex_rgb(new)
    return "#{:02x}{:02x}{:02x}".format(*(round(x + (y - x) * t) for x, y in zip(a, b)))


def cell_mix(old: Cell, new: Cell, t: float) -> Cell:
    """Cross-fade one cell: colors mix, the glyph switches half way"""
    source = new if t >= 0.5 else old
    style = Style(
        fg=color_mix(old.style.fg, new.style.fg, t),
        bg=color_mix(old.style.bg, new.style.bg, t),
        bold=source.style.bold,
        italic=source.style.italic,
        strike=source.style.strike,
        dim=source.style.dim,
    )
    return Cell(source.char, style)


def cell_noise(x: int, y: int) -> float:
    """Deterministic per-cell value in [0, 1)"""
    value = (x * 73856093) ^ (y * 19349663) ^ 0x5bd1e995
    value = (value ^ (value >> 13)) * 0x27d4eb2d
    return ((value ^ (value >> 15)) & 0xFFFF) / 0x10000


def rainbow(position: float) -> str:
    r, g, b = colorsys.hsv_to_rgb(position % 1.0, 0.65, 1.0)
    return "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))


def frame_map(old: Frame, new: Frame, pick: Callable[[int, int, Cell, Cell], Cell]) -> Frame:
    rows = [
        [pick(x, y, old.rows[y][x], new.rows[y][x]) for x in range(new.width)]
        for y in range(new.height)
    ]
    return Frame(new.width, new.height, rows)


def blend_none(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    return new


def blend_fade(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    """Uniform cross-fade of every cell"""
    return frame_map(old, new, lambda x, y, a, b: cell_mix(a, b, progress))


def blend_dissolve(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    """Cells switch to the new frame in a fixed random order"""
    return frame_map(old, new, lambda x, y, a, b: b if cell_noise(x, y) < progress else a)


def blend_sweepIn(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    """Left-to-right wipe with a soft gradient at the leading edge"""
    band = max(1, settings.sweep_gradient)
    edge = progress * (new.width + band)

    def pick(x: int, y: int, a: Cell, b: Cell) -> Cell:
        t = clamp((edge - x) / band)
        if t >= 1.0:
            return b
        if t <= 0.0:
            return a
        return cell_mix(a, b, t)

    return frame_map(old, new, pick)


def blend_coalesce(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    """Left-to-right wipe whose leading band fills in scattered cells"""
    band = max(1, settings.sweep_gradient)
    edge = progress * (new.width + band) - band

    def pick(x: int, y: int, a: Cell, b: Cell) -> Cell:
        if x < edge:
            return b
        if x >= edge + band:
            return a
        return b if cell_noise(x, y) >= (x - edge) / band else a

    return frame_map(old, new, pick)


def blend_slideRgb(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    """Left-to-right wipe with a color-cycling leading edge"""
    edge = progress * new.width
    width = max(1, new.width)

    def pick(x: int, y: int, a: Cell, b: Cell) -> Cell:
        if x < edge - 1:
            return b
        if x < edge + 1:
            return Cell(b.char, Style(fg=b.style.fg, bg=rainbow(progress + x / width + y / 40)))
        return a

    return frame_map(old, new, pick)


def row_reveal(y: int, height: int, progress: float, stagger: float) -> float:
    """
    Reveal fraction of one row in the lines transitions

    Each row starts after a delay proportional to its index; the last row
    starts at progress == stagger.
    """
    delay = stagger * y / (height - 1) if height > 1 else 0.0
    return clamp((progress - delay) / (1.0 - stagger))


def lines_blend(old: Frame, new: Frame, progress: float, settings: AppSettings, cross: bool, rgb: bool) -> Frame:
    width = new.width
    rows = []
    for y in range(new.height):
        revealed = row_reveal(y, new.height, progress, settings.lines_stagger) * width
        reverse = cross and y % 2 == 1
        row = []
        for x in range(width):
            position = width - 1 - x if reverse else x
            a, b = old.rows[y][x], new.rows[y][x]
            if position < revealed - 1 or (not rgb and position < revealed):
                row.append(b)
            elif rgb and position < revealed + 1 and 0.0 < revealed < width:
                row.append(Cell(b.char, Style(fg=b.style.fg, bg=rainbow(progress + y / max(1, new.height)))))
            else:
                row.append(a)
        rows.append(row)
    return Frame(width, new.height, rows)


def blend_lines(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    """Each row wipes left to right, lower rows starting later"""
    return lines_blend(old, new, progress, settings, cross=False, rgb=False)


def blend_linesCross(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    """As lines, but odd rows wipe right to left"""
    return lines_blend(old, new, progress, settings, cross=True, rgb=False)


def blend_linesRgb(old: Frame, new: Frame, progress: float, settings: AppSettings) -> Frame:
    """As lines-cross, with a color-cycling edge on every row"""
    return lines_blend(old, new, progress, settings, cross=True, rgb=True)


BLENDS: Dict[TransitionKind, Callable[[Frame, Frame, float, AppSettings], Frame]] = {
    TransitionKind.NONE: blend_none,
    TransitionKind.FADE: blend_fade,
    TransitionKind.DISSOLVE: blend_dissolve,
    TransitionKind.SWEEP_IN: blend_sweepIn,
    TransitionKind.COALESCE: blend_coalesce,
    TransitionKind.LINES: blend_lines,
    TransitionKind.LINES_CROSS: blend_linesCross,
    TransitionKind.SLIDE_RGB: blend_slideRgb,
    TransitionKind.LINES_RGB: blend_linesRgb,
}


class TransitionOrchestrator:
    """
    Drives TransitionState progress and blends frames

    The orchestrator owns no slide data: the caller supplies the old and
    new frames, which must come from the same viewport.
    """

    def __init__(self, settings: AppSettings = appsettings) -> None:
        self.settings = settings

    def duration_get(self, kind: TransitionKind) -> float:
        """Transition length in seconds; none is instantaneous"""
        if kind is TransitionKind.NONE:
            return 0.0
        return self.settings.transition_duration_ms / 1000.0

    def begin(
        self,
        state: TransitionState,
        kind: TransitionKind,
        direction: Direction,
        now: float,
        source_index: Optional[int],
    ) -> None:
        """Enter Transitioning with progress 0"""
        state.kind = kind
        state.direction = direction
        state.progress = 0.0
        state.active = True
        state.started_at = now
        state.duration = self.duration_get(kind)
        state.source_index = source_index
        LOG(f"Transition {kind.value} {direction.value} from slide {source_index}", level=3)

    def advance(self, state: TransitionState, now: float) -> bool:
        """
        Update progress from the clock

        Args:
            state: Active transition
            now: Current clock reading (seconds)

        Returns:
            True once progress has reached exactly 1
        """
        if not state.active:
            return False
        if state.duration <= 0:
            progress = 1.0
        else:
            progress = clamp((now - state.started_at) / state.duration)
        state.progress = max(state.progress, progress)
        if state.progress >= 1.0:
            state.progress = 1.0
            return True
        return False

    def frame(self, state: TransitionState, old: Optional[Frame], new: Frame) -> Frame:
        """Blend the frames for the current progress"""
        if old is None or (old.width, old.height) != (new.width, new.height):
            old = Frame.blank(new.width, new.height, new.rows[0][0].style if new.rows and new.rows[0] else Style())
        if state.progress >= 1.0:
            return new
        blend = BLENDS.get(state.kind, blend_none)
        return blend(old, new, state.progress, self.settings)

    def cancel(self, state: TransitionState) -> None:
        """Leave Transitioning without completing; used on quit"""
        state.active = False
        state.pending.clear()
