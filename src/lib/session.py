"""
Slideshow event loop

One thread, one SessionContext. Each iteration waits for input no longer
than the next render tick, then:

1. processes the keys that arrived, in order (Quit ends the loop at once)
2. picks up terminal resizes
3. on a tick, advances the running transition
4. repaints when something changed, and draws images once released

Frames are cached per (slide, scroll offset, viewport) up to
frame_cache_size entries; the Presentation is never modified. A missing
image is reported once per path.
"""

import time
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..config import AppSettings, appsettings
from ..models.directives import TransitionKind
from ..models.render import Frame, RenderTree
from ..models.session import Direction, NavEvent, SessionContext
from ..models.slides import Presentation
from .errors import ResourceError
from .images import ImageBackend, ImageHandle, NullImageBackend
from .layout import LayoutDispatcher, tree_rasterize
from .log import LOG
from .navigation import Navigator
from .transitions import TransitionOrchestrator


class Slideshow:
    """
    Runs a Presentation on a terminal

    The terminal is any object with `size()`, `keys_read(timeout)`,
    `frame_paint(frame)`, `images_draw(handles, clear)` and context manager
    support; tests pass a scripted double with a fake clock.
    """

    def __init__(
        self,
        presentation: Presentation,
        terminal: Any,
        image_backend: Optional[ImageBackend] = None,
        clock: Callable[[], float] = time.monotonic,
        settings: AppSettings = appsettings,
        intro: bool = True,
    ) -> None:
        self.presentation = presentation
        self.terminal = terminal
        self.image_backend = image_backend or NullImageBackend()
        self.clock = clock
        self.settings = settings
        self.intro = intro and settings.initial_transition

        self.dispatcher = LayoutDispatcher(settings)
        self.orchestrator = TransitionOrchestrator(settings)
        self.navigator = Navigator(self.orchestrator, self.scroll_limit, settings)

        self.ctx = SessionContext.context_create(presentation)
        self.cache: "OrderedDict[Tuple[int, int, Tuple[int, int]], Tuple[RenderTree, Frame]]" = OrderedDict()
        self.slides_seen: Set[int] = set()
        self.problems: List[ResourceError] = []
        self.problem_paths: Set[str] = set()
        self.frames_painted = 0

    def scroll_limit(self, ctx: SessionContext, index: int) -> int:
        return self.dispatcher.max_scroll(ctx.presentation, index, ctx.viewport)

    def render_get(self, index: int) -> Tuple[RenderTree, Frame]:
        """RenderTree and Frame of a slide at its scroll offset, cached"""
        nav = self.ctx.navigation
        key = (index, nav.scroll_offsets.get(index, 0), self.ctx.viewport)
        if key in self.cache:
            self.cache.move_to_end(key)
            return self.cache[key]
        tree = self.dispatcher.tree_build(self.presentation, index, self.ctx.viewport, key[1])
        self.cache[key] = (tree, tree_rasterize(tree))
        while len(self.cache) > self.settings.frame_cache_size:
            self.cache.popitem(last=False)
        return self.cache[key]

    def start(self, now: float) -> None:
        """Play the first slide's own transition from a blank screen"""
        first = self.presentation.slides[0]
        self.slides_seen.add(0)
        if self.intro and first.transition is not TransitionKind.NONE:
            self.orchestrator.begin(self.ctx.transition, first.transition, Direction.FORWARD, now, None)
            self.ctx.images_released = False

    def tick(self, now: float) -> None:
        if self.ctx.idle:
            return
        if self.orchestrator.advance(self.ctx.transition, now):
            self.navigator.transition_complete(self.ctx, now)
        self.ctx.dirty = True

    def frame_compose(self) -> Frame:
        """Frame on screen now: the current slide, blended while transitioning"""
        _, new = self.render_get(self.ctx.navigation.current_index)
        if self.ctx.idle:
            return new
        source = self.ctx.transition.source_index
        old = self.render_get(source)[1] if source is not None else None
        return self.orchestrator.frame(self.ctx.transition, old, new)

    def paint(self) -> None:
        index = self.ctx.navigation.current_index
        self.terminal.frame_paint(self.frame_compose())
        self.frames_painted += 1
        self.slides_seen.add(index)
        self.ctx.dirty = False
        if self.ctx.idle and self.ctx.images_released:
            self.images_draw()

    def images_draw(self) -> None:
        """Hand the current slide's placements to the image backend"""
        tree, _ = self.render_get(self.ctx.navigation.current_index)
        handles: List[ImageHandle] = []
        for placement in tree.images:
            try:
                handle = self.image_backend.render_image(placement.path, placement.max_width_percent, placement.rect)
            except ResourceError as e:
                if placement.path not in self.problem_paths:
                    self.problem_paths.add(placement.path)
                    e.slide_index = self.ctx.navigation.current_index
                    LOG(str(e), level=1)
                    self.problems.append(e)
                continue
            if handle is not None:
                handles.append(handle)
        if handles or tree.images:
            self.terminal.images_draw(handles, self.image_backend.clear())

    def resize_check(self) -> None:
        size = tuple(self.terminal.size())
        if size != self.ctx.viewport:
            LOG(f"Viewport {self.ctx.viewport} -> {size}", level=3)
            self.ctx.viewport = size
            self.cache.clear()
            self.navigator.scroll_clamp(self.ctx)
            self.ctx.dirty = True

    def events_process(self, events: Sequence[NavEvent]) -> None:
        for event in events:
            self.navigator.event_handle(self.ctx, event, self.clock())
            if not self.ctx.running:
                return

    def run(self) -> Dict[str, Any]:
        """
        Run until Quit

        Returns:
            Summary: slide count, last index, slides seen, frames painted
        """
        period = 1.0 / self.settings.tick_hz
        with self.terminal:
            self.ctx.viewport = tuple(self.terminal.size())
            now = self.clock()
            self.start(now)
            next_tick = now
            while self.ctx.running:
                timeout = max(0.0, next_tick - self.clock())
                self.events_process(self.terminal.keys_read(timeout))
                if not self.ctx.running:
                    break
                self.resize_check()
                now = self.clock()
                if now >= next_tick:
                    self.tick(now)
                    next_tick += period
                    if next_tick < now:
                        next_tick = now + period
                if self.ctx.dirty:
                    self.paint()

        LOG(f"Slideshow ended on slide {self.ctx.navigation.current_index + 1}", level=2)
        return {
            'slides': len(self.presentation),
            'last_index': self.ctx.navigation.current_index,
            'slides_seen': len(self.slides_seen),
            'frames': self.frames_painted,
        }
