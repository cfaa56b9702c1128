"""
Navigation state machine

Two states, read off the session context:

    Idle ──Next/Previous (target != current)──▶ Transitioning
      ▲                                              │
      └──────────── progress reaches 1 ──────────────┘
                    (pending request dispatched here)

Next/Previous while Transitioning go to the single-slot pending mailbox.
Scrolling only applies while Idle. Quit ends the session from any state.
"""

from typing import Callable, Dict, Optional

from ..config import AppSettings, appsettings
from ..models.session import (
    NAVIGATION_EVENTS,
    SCROLL_EVENTS,
    Direction,
    NavEvent,
    SessionContext,
)
from .log import LOG
from .transitions import TransitionOrchestrator


class Navigator:
    """
    Applies NavEvents to a SessionContext

    Attributes:
        orchestrator: Starts transitions when the slide changes
        scroll_limit: Callable (context, index) -> largest scroll offset of
            that slide in the current viewport
        settings: Scroll steps and pending policy
    """

    def __init__(
        self,
        orchestrator: TransitionOrchestrator,
        scroll_limit: Callable[[SessionContext, int], int],
        settings: AppSettings = appsettings,
    ) -> None:
        self.orchestrator = orchestrator
        self.scroll_limit = scroll_limit
        self.settings = settings
        self.scroll_steps: Dict[NavEvent, int] = {
            NavEvent.SCROLL_DOWN: settings.scroll_step,
            NavEvent.SCROLL_UP: -settings.scroll_step,
            NavEvent.PAGE_DOWN: settings.page_scroll_step,
            NavEvent.PAGE_UP: -settings.page_scroll_step,
        }

    def event_handle(self, ctx: SessionContext, event: NavEvent, now: float) -> None:
        """
        Process one input event

        Args:
            ctx: Session context (mutated)
            event: Decoded input event
            now: Clock reading, used to start transitions
        """
        if event is NavEvent.QUIT:
            self.quit(ctx)
        elif event in NAVIGATION_EVENTS:
            if ctx.idle:
                self.slide_change(ctx, event, now)
            elif ctx.transition.pending.offer(event, self.settings.pending_policy):
                LOG(f"Queued {event.value} until the transition ends", level=3)
            else:
                LOG(f"Dropped {event.value}: a request is already pending", level=3)
        elif event in SCROLL_EVENTS:
            if ctx.idle:
                self.scroll(ctx, self.scroll_steps[event])

    def slide_change(self, ctx: SessionContext, event: NavEvent, now: float) -> bool:
        """
        Move to the next or previous slide, without wrapping around

        Returns:
            True if a transition started
        """
        nav = ctx.navigation
        step, direction = (1, Direction.FORWARD) if event is NavEvent.NEXT else (-1, Direction.BACKWARD)
        target = min(max(nav.current_index + step, 0), nav.slide_count - 1)
        if target == nav.current_index:
            return False

        source = nav.current_index
        nav.current_index = target
        nav.scroll_offsets.setdefault(target, 0)
        ctx.images_released = False
        ctx.dirty = True
        slide = ctx.presentation.slides[target]
        self.orchestrator.begin(ctx.transition, slide.transition, direction, now, source)
        LOG(f"Slide {source + 1} -> {target + 1}", level=2)
        return True

    def scroll(self, ctx: SessionContext, delta: int) -> None:
        nav = ctx.navigation
        limit = self.scroll_limit(ctx, nav.current_index)
        offset = min(max(nav.scroll_offset + delta, 0), limit)
        if offset != nav.scroll_offset:
            nav.scroll_offsets[nav.current_index] = offset
            ctx.dirty = True

    def scroll_clamp(self, ctx: SessionContext) -> None:
        """Pull the current scroll offset back in range, e.g. after a resize"""
        nav = ctx.navigation
        limit = self.scroll_limit(ctx, nav.current_index)
        if nav.scroll_offset > limit:
            nav.scroll_offsets[nav.current_index] = limit
            ctx.dirty = True

    def transition_complete(self, ctx: SessionContext, now: float) -> Optional[NavEvent]:
        """
        Return to Idle and dispatch the pending request, if any

        Images are released only when no new transition was started.

        Returns:
            The pending event that was dispatched
        """
        ctx.transition.active = False
        ctx.dirty = True
        pending = ctx.transition.pending.take()
        if pending is not None:
            self.slide_change(ctx, pending, now)
        if ctx.idle:
            ctx.images_released = True
        return pending

    def quit(self, ctx: SessionContext) -> None:
        """Stop the session, discarding any transition and pending request"""
        self.orchestrator.cancel(ctx.transition)
        ctx.running = False
        LOG("Quit", level=3)
