"""Advisory progress reporting for parse and generation calls.

Long-running calls accept an optional :data:`ProgressSink`. The sink is a
plain callable receiving :class:`ProgressEvent` objects at coarse
milestones (:class:`ProgressPhase`). Reporting is fire-and-forget: a sink
that raises is logged and ignored, and nothing in the pipeline branches on
what the sink does.

:class:`ProgressTracker` wraps a sink for the duration of one call. It
guarantees that fractions never decrease within the call and remembers the
last event so that tool results can echo ``progress`` and
``progressMessage``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ProgressPhase(enum.Enum):
    """Milestones of a parse or generation call, in the order they occur.

    The value of each member is its nominal completion fraction.
    ``COMPLETE`` and ``FAILED`` are both terminal and both report 1.0.
    """

    CACHE_LOOKUP = ("cache-lookup", 0.1)
    ACQUIRE_START = ("acquire-start", 0.3)
    ACQUIRE_DONE = ("acquire-done", 0.5)
    PARSE_START = ("parse-start", 0.6)
    VALIDATION_FALLBACK = ("validation-fallback", 0.7)
    GENERATE = ("generate", 0.8)
    COMPLETE = ("complete", 1.0)
    FAILED = ("failed", 1.0)

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def fraction(self) -> float:
        return self.value[1]

    @property
    def is_terminal(self) -> bool:
        return self in (ProgressPhase.COMPLETE, ProgressPhase.FAILED)


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress notification.

    Attributes:
        phase: The milestone reached.
        fraction: Completion fraction in ``[0.0, 1.0]``.
        message: Human-readable description of the milestone.
    """

    phase: ProgressPhase
    fraction: float
    message: str


ProgressSink = Callable[[ProgressEvent], None]


class ProgressTracker:
    """Monotonic progress reporter for one call.

    Args:
        sink: Optional callable notified of every event.

    Example::

        tracker = ProgressTracker(lambda e: print(f"{e.fraction:.0%} {e.message}"))
        tracker.emit(ProgressPhase.ACQUIRE_START, "Fetching document")
        tracker.emit(ProgressPhase.COMPLETE, "Done")
    """

    def __init__(self, sink: Optional[ProgressSink] = None) -> None:
        self._sink = sink
        self._last: Optional[ProgressEvent] = None

    @property
    def fraction(self) -> float:
        """The last reported fraction, 0.0 before the first event."""
        return self._last.fraction if self._last else 0.0

    @property
    def message(self) -> str:
        """The last reported message, empty before the first event."""
        return self._last.message if self._last else ""

    @property
    def last_event(self) -> Optional[ProgressEvent]:
        return self._last

    @property
    def finished(self) -> bool:
        """Whether a terminal event has been emitted."""
        return self._last is not None and self._last.phase.is_terminal

    def emit(self, phase: ProgressPhase, message: str) -> ProgressEvent:
        """Record *phase* and notify the sink.

        The reported fraction is never lower than the previous one, so
        phases that are skipped or revisited (a cache hit jumps straight to
        parsing) still produce a non-decreasing sequence.

        Returns:
            The event that was recorded.
        """
        fraction = max(phase.fraction, self.fraction)
        event = ProgressEvent(phase=phase, fraction=fraction, message=message)
        self._last = event
        logger.debug("Progress %3.0f%% [%s] %s", fraction * 100, phase.label, message)
        if self._sink is not None:
            try:
                self._sink(event)
            except Exception:
                logger.warning("Progress sink raised; ignoring", exc_info=True)
        return event

    def complete(self, message: str = "Completed") -> ProgressEvent:
        return self.emit(ProgressPhase.COMPLETE, message)

    def fail(self, message: str) -> ProgressEvent:
        return self.emit(ProgressPhase.FAILED, message)


def ensure_tracker(progress: "ProgressTracker | ProgressSink | None") -> ProgressTracker:
    """Return *progress* if it is already a tracker, otherwise wrap it in one."""
    if isinstance(progress, ProgressTracker):
        return progress
    return ProgressTracker(progress)
