"""
Progress event channel for pipeline runs.

Listeners are plain callables invoked synchronously, in registration
order, before ``emit`` returns. Consumers that must not slow the pipeline
down can read from a bounded queue instead (``open_queue``).
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from core.clock import Clock
from core.exceptions import ProgressStateError
from models.base import ProcessingStatus
from schemas.pipeline import ProgressEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], Any]


class ProgressChannel:
    """
    Publish progress events for one run at a time.

    Guarantees per run:
    - percent is clamped to [0, 100] and never decreases
    - nothing may be emitted after FINISHED or FAILED
    - late subscribers do not receive earlier events
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or Clock()
        self._listeners: List[ProgressCallback] = []
        self._queues: List[asyncio.Queue] = []
        self._last_percent = 0
        self._last_event: Optional[ProgressEvent] = None

    @property
    def last_event(self) -> Optional[ProgressEvent]:
        return self._last_event

    @property
    def last_percent(self) -> int:
        return self._last_percent

    def subscribe(self, callback: ProgressCallback) -> None:
        self._listeners.append(callback)

    def unsubscribe(self, callback: ProgressCallback) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def open_queue(self, maxsize: int = 100) -> asyncio.Queue:
        """
        Return a bounded queue receiving every subsequent event.

        The emitter never waits on a queue: when it is full the oldest
        queued event is dropped to make room.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._queues.append(queue)
        return queue

    def close_queue(self, queue: asyncio.Queue) -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    def reset(self) -> None:
        """Start a new run: percent goes back to 0 and emits are allowed again"""
        self._last_percent = 0
        self._last_event = None

    def emit(
        self,
        status: ProcessingStatus,
        percent: float,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> ProgressEvent:
        """
        Build an event and deliver it to every listener.

        Raises:
            ProgressStateError: If the run already reached a terminal status
        """
        if self._last_event is not None and self._last_event.status.is_terminal:
            raise ProgressStateError(
                f"Cannot emit {status.value} after {self._last_event.status.value}",
                context={"status": status.value, "message": message}
            )

        # Clamp into range and keep percent monotonic within the run
        bounded = max(0, min(100, int(round(percent))))
        bounded = max(bounded, self._last_percent)

        event = ProgressEvent(
            status=status,
            percent=bounded,
            message=message,
            timestamp=self.clock.now(),
            details=details
        )
        self._last_percent = bounded
        self._last_event = event

        logger.debug(f"[{status.value}] {bounded}% {message}")

        for callback in list(self._listeners):
            callback(event)

        for queue in self._queues:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(event)

        return event
