"""
Transition tests

Tests progress bookkeeping and the blend functions on small frames.
"""

import pytest

from termdeck.config import AppSettings
from termdeck.lib.transitions import (
    BLENDS,
    TransitionOrchestrator,
    blend_dissolve,
    blend_fade,
    blend_linesCross,
    blend_lines,
    blend_sweepIn,
    row_reveal,
)
from termdeck.models.directives import TransitionKind
from termdeck.models.render import Cell, Frame, Style
from termdeck.models.session import Direction, TransitionState


OLD_STYLE = Style(fg="#000000", bg="#000000")
NEW_STYLE = Style(fg="#ffffff", bg="#ffffff")


def filled(char, style, width=10, height=8):
    return Frame(width, height, [[Cell(char, style) for _ in range(width)] for _ in range(height)])


@pytest.fixture
def frames():
    return filled("o", OLD_STYLE), filled("n", NEW_STYLE)


@pytest.fixture
def settings():
    return AppSettings(lines_stagger=0.5, transition_duration_ms=400, sweep_gradient=4)


class TestProgress:
    """Test the orchestrator's clock handling"""

    def test_progress_monotonic_to_one(self, settings):
        """Progress never decreases and ends at exactly 1"""
        orchestrator = TransitionOrchestrator(settings)
        state = TransitionState()
        orchestrator.begin(state, TransitionKind.FADE, Direction.FORWARD, 0.0, 0)
        assert state.progress == 0.0

        seen = []
        for now in (0.1, 0.05, 0.2, 0.3, 0.39):
            assert not orchestrator.advance(state, now)
            seen.append(state.progress)
        assert seen == sorted(seen)
        assert orchestrator.advance(state, 0.9)
        assert state.progress == 1.0

    def test_none_is_instant(self, settings):
        """The none transition completes on its first advance"""
        orchestrator = TransitionOrchestrator(settings)
        state = TransitionState()
        orchestrator.begin(state, TransitionKind.NONE, Direction.FORWARD, 5.0, 0)
        assert state.duration == 0.0
        assert orchestrator.advance(state, 5.0)
        assert state.progress == 1.0

    def test_inactive_never_completes(self, settings):
        orchestrator = TransitionOrchestrator(settings)
        assert not orchestrator.advance(TransitionState(), 100.0)

    def test_frame_at_end_is_new(self, settings, frames):
        """A finished transition shows the new frame unchanged"""
        old, new = frames
        orchestrator = TransitionOrchestrator(settings)
        state = TransitionState()
        orchestrator.begin(state, TransitionKind.DISSOLVE, Direction.FORWARD, 0.0, 0)
        orchestrator.advance(state, 1.0)
        assert orchestrator.frame(state, old, new) is new

    def test_size_mismatch_blends_from_blank(self, settings, frames):
        """An old frame of another size is replaced by a blank one"""
        _, new = frames
        orchestrator = TransitionOrchestrator(settings)
        state = TransitionState()
        orchestrator.begin(state, TransitionKind.LINES, Direction.FORWARD, 0.0, 0)
        orchestrator.advance(state, 0.0)
        frame = orchestrator.frame(state, filled("o", OLD_STYLE, 3, 3), new)
        assert (frame.width, frame.height) == (10, 8)
        assert "o" not in frame.text()

    def test_every_kind_has_blend(self):
        assert set(BLENDS) == set(TransitionKind)


class TestBlends:
    """Test individual blend functions"""

    def test_fade_endpoints(self, settings, frames):
        """Fade starts at the old frame and ends at the new one"""
        old, new = frames
        assert blend_fade(old, new, 0.0, settings).rows[0][0] == Cell("o", OLD_STYLE)
        assert blend_fade(old, new, 1.0, settings).rows[0][0] == Cell("n", NEW_STYLE)

    def test_fade_midway_mixes_color(self, settings, frames):
        old, new = frames
        cell = blend_fade(old, new, 0.5, settings).rows[3][3]
        assert cell.style.bg not in (OLD_STYLE.bg, NEW_STYLE.bg)

    def test_dissolve_endpoints(self, settings, frames):
        old, new = frames
        assert "n" not in blend_dissolve(old, new, 0.0, settings).text()
        assert "o" not in blend_dissolve(old, new, 1.0, settings).text()

    def test_sweep_starts_on_left(self, settings, frames):
        """The sweep reveals the left edge first"""
        old, new = frames
        frame = blend_sweepIn(old, new, 0.5, settings)
        assert frame.rows[0][0].char == "n"
        assert frame.rows[0][9].char == "o"

    def test_lines_stagger(self, settings, frames):
        """Lower rows start later"""
        old, new = frames
        frame = blend_lines(old, new, 0.3, settings)
        revealed = [row.count("n") for row in frame.text().split("\n")]
        assert revealed == sorted(revealed, reverse=True)
        assert revealed[0] > 0
        assert revealed[-1] == 0

    def test_lines_cross_alternates(self, settings, frames):
        """Even rows reveal from the left, odd rows from the right"""
        old, new = frames
        frame = blend_linesCross(old, new, 0.3, settings)
        for y in range(5):
            left, right = frame.rows[y][0].char, frame.rows[y][9].char
            if y % 2 == 0:
                assert (left, right) == ("n", "o")
            else:
                assert (left, right) == ("o", "n")

    def test_row_reveal(self):
        """The first row starts at once, the last at progress == stagger"""
        assert row_reveal(0, 8, 0.25, 0.5) == 0.5
        assert row_reveal(7, 8, 0.5, 0.5) == 0.0
        assert row_reveal(7, 8, 1.0, 0.5) == 1.0
