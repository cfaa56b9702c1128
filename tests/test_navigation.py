"""
Navigation state machine tests

Tests slide changes, bounds, the pending request mailbox, scrolling and
quit, driving the Navigator directly with an explicit clock.
"""

import pytest

from termdeck.config import AppSettings
from termdeck.lib.navigation import Navigator
from termdeck.lib.parser import Parser
from termdeck.lib.transitions import TransitionOrchestrator
from termdeck.models.session import NavEvent, PendingSlot, SessionContext


def deck(transition="fade", count=4):
    header = f"<!-- transition: {transition} -->\n"
    return Parser("\n---\n".join(f"{header}# Slide {n}" for n in range(count))).parse()


def navigator_make(settings=None, limit=5):
    settings = settings or AppSettings()
    orchestrator = TransitionOrchestrator(settings)
    return Navigator(orchestrator, lambda ctx, index: limit, settings)


def settle(navigator, ctx, now=10.0, step=10.0):
    """Run the active transition, and any it dispatches, to completion"""
    while ctx.transition.active:
        assert navigator.orchestrator.advance(ctx.transition, now)
        navigator.transition_complete(ctx, now)
        now += step


class TestSlideChange:
    """Test Next and Previous while idle"""

    def test_next_next_previous(self):
        """From slide 1, Next, Next, Previous ends on slide 2"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck(count=3))
        for event in (NavEvent.NEXT, NavEvent.NEXT, NavEvent.PREVIOUS):
            navigator.event_handle(ctx, event, 0.0)
            settle(navigator, ctx)
        assert ctx.navigation.current_index == 1

    def test_instant_transition_still_completes(self):
        """Even 'none' goes through a transition that completes on advance"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck("none"))
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        assert ctx.transition.active
        assert navigator.orchestrator.advance(ctx.transition, 0.0)
        navigator.transition_complete(ctx, 0.0)
        assert ctx.idle
        assert ctx.navigation.current_index == 1

    def test_previous_at_first_slide(self):
        """Previous on the first slide does nothing"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.PREVIOUS, 0.0)
        assert ctx.navigation.current_index == 0
        assert ctx.idle

    def test_next_at_last_slide(self):
        """Next on the last slide does not wrap around"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck(count=2))
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        settle(navigator, ctx)
        navigator.event_handle(ctx, NavEvent.NEXT, 20.0)
        assert ctx.navigation.current_index == 1
        assert ctx.idle

    def test_single_slide(self):
        """A one-slide deck ignores both directions"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck(count=1))
        for event in (NavEvent.NEXT, NavEvent.PREVIOUS):
            navigator.event_handle(ctx, event, 0.0)
        assert ctx.navigation.current_index == 0
        assert ctx.idle

    def test_images_held_until_complete(self):
        """Images are released only after the transition finishes"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        assert not ctx.images_released
        settle(navigator, ctx)
        assert ctx.images_released

    def test_transition_source(self):
        """The transition records the slide it leaves"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        assert ctx.transition.source_index == 0


class TestPending:
    """Test events arriving during a transition"""

    def test_pending_applied_once(self):
        """Several Next presses mid-transition advance one extra slide"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        navigator.event_handle(ctx, NavEvent.NEXT, 0.1)
        navigator.event_handle(ctx, NavEvent.NEXT, 0.2)
        assert ctx.navigation.current_index == 1

        assert navigator.orchestrator.advance(ctx.transition, 1.0)
        assert navigator.transition_complete(ctx, 1.0) is NavEvent.NEXT
        assert ctx.navigation.current_index == 2
        assert ctx.transition.active
        assert not ctx.images_released

        settle(navigator, ctx, 5.0)
        assert ctx.navigation.current_index == 2
        assert not ctx.transition.pending

    def test_replace_policy(self):
        """The newest request replaces the queued one"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        navigator.event_handle(ctx, NavEvent.NEXT, 0.1)
        navigator.event_handle(ctx, NavEvent.PREVIOUS, 0.2)
        assert ctx.transition.pending.event is NavEvent.PREVIOUS
        settle(navigator, ctx)
        assert ctx.navigation.current_index == 0

    def test_drop_policy(self):
        """With 'drop' the first queued request is kept"""
        navigator = navigator_make(AppSettings(pending_policy="drop"))
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        navigator.event_handle(ctx, NavEvent.NEXT, 0.1)
        navigator.event_handle(ctx, NavEvent.PREVIOUS, 0.2)
        assert ctx.transition.pending.event is NavEvent.NEXT
        settle(navigator, ctx)
        assert ctx.navigation.current_index == 2

    def test_pending_noop_releases_images(self):
        """A queued request that changes nothing leaves the session idle"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck(count=2))
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        navigator.event_handle(ctx, NavEvent.NEXT, 0.1)
        settle(navigator, ctx)
        assert ctx.navigation.current_index == 1
        assert ctx.idle
        assert ctx.images_released

    def test_slot_holds_one_event(self):
        """The mailbox never holds more than one event"""
        slot = PendingSlot()
        assert slot.offer(NavEvent.NEXT)
        assert slot.offer(NavEvent.PREVIOUS)
        assert not slot.offer(NavEvent.NEXT, policy="drop")
        assert slot.take() is NavEvent.PREVIOUS
        assert slot.take() is None


class TestScroll:
    """Test scroll events"""

    def test_scroll_down_and_up(self):
        """Scrolling moves one row and stops at zero"""
        navigator = navigator_make(limit=5)
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.SCROLL_DOWN, 0.0)
        navigator.event_handle(ctx, NavEvent.SCROLL_DOWN, 0.0)
        assert ctx.navigation.scroll_offset == 2
        for _ in range(4):
            navigator.event_handle(ctx, NavEvent.SCROLL_UP, 0.0)
        assert ctx.navigation.scroll_offset == 0

    def test_page_down_clamped(self):
        """Page down never passes the slide's limit"""
        navigator = navigator_make(limit=5)
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.PAGE_DOWN, 0.0)
        assert ctx.navigation.scroll_offset == 5

    def test_scroll_ignored_while_transitioning(self):
        """Scrolling does nothing mid-transition"""
        navigator = navigator_make(limit=5)
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        navigator.event_handle(ctx, NavEvent.SCROLL_DOWN, 0.1)
        assert ctx.navigation.scroll_offset == 0
        assert not ctx.transition.pending

    def test_offsets_kept_per_slide(self):
        """Returning to a slide restores its scroll offset"""
        navigator = navigator_make(limit=5)
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.SCROLL_DOWN, 0.0)
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        settle(navigator, ctx)
        assert ctx.navigation.scroll_offset == 0
        navigator.event_handle(ctx, NavEvent.PREVIOUS, 20.0)
        settle(navigator, ctx, 30.0)
        assert ctx.navigation.scroll_offset == 1

    def test_clamp_after_resize(self):
        """A smaller limit pulls the offset back"""
        navigator = navigator_make(limit=5)
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.PAGE_DOWN, 0.0)
        navigator.scroll_limit = lambda ctx, index: 2
        navigator.scroll_clamp(ctx)
        assert ctx.navigation.scroll_offset == 2


class TestQuit:
    """Test quit from every state"""

    def test_quit_idle(self):
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.QUIT, 0.0)
        assert not ctx.running

    def test_quit_discards_transition(self):
        """Quit mid-transition drops the animation and the pending request"""
        navigator = navigator_make()
        ctx = SessionContext.context_create(deck())
        navigator.event_handle(ctx, NavEvent.NEXT, 0.0)
        navigator.event_handle(ctx, NavEvent.NEXT, 0.1)
        navigator.event_handle(ctx, NavEvent.QUIT, 0.2)
        assert not ctx.running
        assert ctx.idle
        assert not ctx.transition.pending


def test_invalid_policy_rejected():
    """Only 'replace' and 'drop' are accepted"""
    with pytest.raises(ValueError):
        AppSettings(pending_policy="queue")
