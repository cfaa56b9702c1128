"""
Slideshow event loop tests

Runs whole sessions against a scripted terminal and a fake clock.
"""

import pytest

from termdeck.config import AppSettings
from termdeck.lib.errors import ResourceError
from termdeck.lib.images import ImageBackend, ImageHandle
from termdeck.lib.parser import Parser
from termdeck.lib.session import Slideshow
from termdeck.models.session import NavEvent


class ScriptedTerminal:
    """Terminal double: hands out key batches, records what is painted"""

    def __init__(self, batches, size=(80, 24)):
        self.batches = list(batches)
        self.viewport = size
        self.frames = []
        self.image_draws = []
        self.entered = False
        self.exited = False

    def __enter__(self):
        self.entered = True
        return self

    def __exit__(self, *exc_info):
        self.exited = True

    def size(self):
        return self.viewport

    def keys_read(self, timeout):
        if self.batches:
            return self.batches.pop(0)
        return [NavEvent.QUIT]

    def frame_paint(self, frame):
        self.frames.append(frame)

    def images_draw(self, handles, clear=""):
        self.image_draws.append(list(handles))


class StepClock:
    """Clock advancing a fixed step on every reading"""

    def __init__(self, step=0.01):
        self.now = 0.0
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


class RecordingBackend(ImageBackend):
    """Image backend noting whether the session was idle at each draw"""

    name = "recording"

    def __init__(self):
        super().__init__()
        self.slideshow = None
        self.calls = []

    def render_image(self, resolved_path, max_width_percent, region):
        self.calls.append((resolved_path, self.slideshow.ctx.idle))
        return ImageHandle(resolved_path, region, "<image>")


class FailingBackend(ImageBackend):
    name = "failing"

    def render_image(self, resolved_path, max_width_percent, region):
        raise ResourceError(f"cannot read image {resolved_path}")


def deck(transition="fade", count=4, body="# Slide {n}"):
    header = f"<!-- transition: {transition} -->\n"
    return Parser("\n---\n".join(header + body.format(n=n) for n in range(count))).parse()


def idle_batches(count):
    return [[] for _ in range(count)]


class TestRun:
    """Test complete sessions"""

    def test_quit_immediately(self):
        """Quit in the first batch ends before anything is painted"""
        terminal = ScriptedTerminal([[NavEvent.QUIT]])
        result = Slideshow(deck(), terminal, clock=StepClock()).run()

        assert terminal.entered and terminal.exited
        assert result['last_index'] == 0
        assert result['frames'] == 0
        assert result['slides'] == 4

    def test_quit_has_priority(self):
        """Events after Quit in the same batch are not processed"""
        terminal = ScriptedTerminal([[NavEvent.NEXT, NavEvent.QUIT, NavEvent.NEXT]])
        result = Slideshow(deck(), terminal, clock=StepClock(), intro=False).run()
        assert result['last_index'] == 1

    def test_pending_applied_once(self):
        """Two Next presses during a fade end on the third slide"""
        terminal = ScriptedTerminal([[NavEvent.NEXT, NavEvent.NEXT]] + idle_batches(200))
        slideshow = Slideshow(deck(), terminal, clock=StepClock(), intro=False)
        result = slideshow.run()

        assert result['last_index'] == 2
        assert result['slides_seen'] == 3
        assert not slideshow.ctx.transition.pending

    def test_frames_painted_during_transition(self):
        """A transition repaints on every tick until it completes"""
        terminal = ScriptedTerminal([[NavEvent.NEXT]] + idle_batches(100))
        Slideshow(deck(), terminal, clock=StepClock(), intro=False).run()
        assert len(terminal.frames) > 2
        assert all((f.width, f.height) == (80, 24) for f in terminal.frames)

    def test_intro_transition(self):
        """The first slide's transition plays from a blank screen"""
        terminal = ScriptedTerminal(idle_batches(100))
        slideshow = Slideshow(deck(), terminal, clock=StepClock())
        slideshow.run()
        assert slideshow.ctx.images_released
        assert len(terminal.frames) > 1

    def test_no_intro(self):
        """With the intro off the first slide appears at once"""
        slideshow = Slideshow(deck(), ScriptedTerminal([]), clock=StepClock(), intro=False)
        slideshow.start(0.0)
        assert slideshow.ctx.idle

    def test_intro_disabled_in_settings(self):
        settings = AppSettings(initial_transition=False)
        slideshow = Slideshow(deck(), ScriptedTerminal([]), clock=StepClock(), settings=settings)
        slideshow.start(0.0)
        assert slideshow.ctx.idle

    def test_resize(self):
        """A new terminal size is picked up and frames follow it"""
        terminal = ScriptedTerminal(idle_batches(3))
        slideshow = Slideshow(deck("none"), terminal, clock=StepClock(), intro=False)
        slideshow.ctx.viewport = (40, 10)
        slideshow.resize_check()
        assert slideshow.ctx.viewport == (80, 24)
        assert slideshow.ctx.dirty


class TestImages:
    """Test image release and failures"""

    def test_images_only_when_idle(self):
        """The backend is called only after the transition completes"""
        presentation = deck(body="![chart {n}](chart.png)")
        backend = RecordingBackend()
        terminal = ScriptedTerminal([[NavEvent.NEXT]] + idle_batches(100))
        slideshow = Slideshow(presentation, terminal, image_backend=backend, clock=StepClock())
        backend.slideshow = slideshow
        slideshow.run()

        assert backend.calls
        assert all(idle for _, idle in backend.calls)
        assert terminal.image_draws[-1][0].sequence == "<image>"

    def test_missing_image_keeps_running(self):
        """ResourceError leaves the placeholder and is recorded"""
        presentation = deck("none", count=1, body="![gone](missing.png)")
        terminal = ScriptedTerminal(idle_batches(5))
        slideshow = Slideshow(presentation, terminal, image_backend=FailingBackend(), clock=StepClock())
        result = slideshow.run()

        assert result['frames'] >= 1
        assert slideshow.problems
        assert slideshow.problems[0].slide_index == 0
        assert "gone" in terminal.frames[-1].text()

    def test_missing_image_reported_once(self):
        """Scrolling repaints a slide with a missing image without new reports"""
        body = "![gone](missing.png)\n\n" + "\n\n".join(f"line {i}" for i in range(60))
        presentation = deck("none", count=1, body=body)
        terminal = ScriptedTerminal([[NavEvent.SCROLL_DOWN]] * 20 + [[NavEvent.SCROLL_UP]] * 20)
        slideshow = Slideshow(presentation, terminal, image_backend=FailingBackend(), clock=StepClock())
        slideshow.run()

        assert len(slideshow.problems) == 1
        assert slideshow.problem_paths == {presentation.slides[0].images[0].path}


class TestFrameCache:
    """Test the rendered frame cache"""

    def test_cache_bounded(self):
        """Only the most recently used frames are kept"""
        body = "\n\n".join(f"line {i}" for i in range(60))
        terminal = ScriptedTerminal([[NavEvent.SCROLL_DOWN]] * 30)
        slideshow = Slideshow(
            deck("none", count=1, body=body), terminal, clock=StepClock(),
            settings=AppSettings(frame_cache_size=4),
        )
        slideshow.run()

        assert terminal.frames
        assert len(slideshow.cache) == 4
        assert terminal.frames[-1] is slideshow.render_get(0)[1]
