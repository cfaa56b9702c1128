"""
Session state models

Everything that changes while a deck is on screen lives in one
SessionContext, owned and mutated only by the event loop.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .directives import TransitionKind
from .slides import Presentation


class NavEvent(Enum):
    """Input events understood by the navigation state machine"""
    NEXT = "next"
    PREVIOUS = "previous"
    SCROLL_DOWN = "scroll-down"
    SCROLL_UP = "scroll-up"
    PAGE_DOWN = "page-down"
    PAGE_UP = "page-up"
    QUIT = "quit"


NAVIGATION_EVENTS = frozenset({NavEvent.NEXT, NavEvent.PREVIOUS})
SCROLL_EVENTS = frozenset({NavEvent.SCROLL_DOWN, NavEvent.SCROLL_UP, NavEvent.PAGE_DOWN, NavEvent.PAGE_UP})


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass
class PendingSlot:
    """
    Single-slot mailbox for a navigation event that arrives mid-transition

    The slot never holds more than one event. With the "replace" policy the
    newest event wins; with "drop" the first queued event is kept.
    """
    event: Optional[NavEvent] = None

    def offer(self, event: NavEvent, policy: str = "replace") -> bool:
        """
        Queue an event.

        Returns:
            True if the slot now holds this event
        """
        if self.event is not None and policy == "drop":
            return False
        self.event = event
        return True

    def take(self) -> Optional[NavEvent]:
        """Remove and return the queued event, if any"""
        event, self.event = self.event, None
        return event

    def clear(self) -> None:
        self.event = None

    def __bool__(self) -> bool:
        return self.event is not None


@dataclass
class NavigationState:
    """
    Current slide and per-slide scroll positions

    Attributes:
        slide_count: Number of slides (at least 1)
        current_index: Slide on screen, always in [0, slide_count - 1]
        scroll_offsets: Rows scrolled per slide; a slide gets 0 the first
            time it becomes current and keeps its offset afterwards
    """
    slide_count: int
    current_index: int = 0
    scroll_offsets: Dict[int, int] = field(default_factory=lambda: {0: 0})

    def __post_init__(self) -> None:
        if self.slide_count < 1:
            raise ValueError("a presentation has at least one slide")
        self.current_index = min(max(self.current_index, 0), self.slide_count - 1)
        self.scroll_offsets.setdefault(self.current_index, 0)

    @property
    def scroll_offset(self) -> int:
        return self.scroll_offsets.get(self.current_index, 0)


@dataclass
class TransitionState:
    """
    Progress of the animation between two slides

    Attributes:
        kind: Transition being played
        progress: Fraction complete, 0 at start, exactly 1 at the end
        direction: FORWARD for Next, BACKWARD for Previous
        active: True while Transitioning, False while Idle
        pending: Navigation event queued during the transition
        started_at: Clock reading when the transition began (seconds)
        duration: Length of the transition (seconds)
        source_index: Slide shown before the transition (None for the
            startup transition from a blank screen)
    """
    kind: TransitionKind = TransitionKind.NONE
    progress: float = 0.0
    direction: Direction = Direction.FORWARD
    active: bool = False
    pending: PendingSlot = field(default_factory=PendingSlot)
    started_at: float = 0.0
    duration: float = 0.0
    source_index: Optional[int] = None


@dataclass
class SessionContext:
    """
    All mutable state of a running slideshow, threaded through the loop

    Attributes:
        presentation: Immutable deck
        navigation: Current index and scroll offsets
        transition: Animation state and pending request
        viewport: (width, height) of the terminal in cells
        running: False once Quit has been processed
        images_released: True once the last transition completed; the
            image backend may only draw while this is set
        dirty: The screen needs repainting
    """
    presentation: Presentation
    navigation: NavigationState
    transition: TransitionState = field(default_factory=TransitionState)
    viewport: Tuple[int, int] = (80, 24)
    running: bool = True
    images_released: bool = True
    dirty: bool = True

    @classmethod
    def context_create(cls, presentation: Presentation, viewport: Tuple[int, int] = (80, 24)) -> "SessionContext":
        return cls(
            presentation=presentation,
            navigation=NavigationState(slide_count=len(presentation)),
            viewport=viewport,
        )

    @property
    def idle(self) -> bool:
        return not self.transition.active
