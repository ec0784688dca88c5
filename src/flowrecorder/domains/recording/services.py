"""Services for the recording bounded context.

Services orchestrate the capture provider, the step cursor and event
publication. Protocol-based abstractions keep the engine testable without
a native accessibility recorder.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Type,
    runtime_checkable,
)

from .aggregates import StepCursor
from .entities import RawStep, RecordingSession
from .errors import (
    AlreadyRecordingError,
    NoActiveSessionError,
    ProviderPollFailedError,
    ProviderStartFailedError,
)
from .events import (
    RecorderErrorOccurred,
    RecordingStarted,
    RecordingStopped,
    StepRecorded,
)
from .value_objects import PollInterval

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class CaptureProviderProtocol(Protocol):
    """Abstraction over the native accessibility capture recorder.

    The provider only supports pull-based cumulative reads; it never pushes
    notifications.
    """

    def start_recording(self, session_id: str) -> bool: ...

    def stop_recording(self) -> bool: ...

    def is_recording(self) -> bool: ...

    def get_recorded_steps(self) -> Sequence[RawStep]: ...

    def clear_steps(self) -> bool: ...


@runtime_checkable
class EventPublisherProtocol(Protocol):
    """Publishes domain events for observability."""

    def publish(self, event: Any) -> None: ...


# ---------------------------------------------------------------------------
# Event publishers
# ---------------------------------------------------------------------------


@dataclass
class EventCollector:
    """Simple in-memory event collector for domain events."""

    events: List[Any] = field(default_factory=list)
    max_events: int = 1000

    def publish(self, event: Any) -> None:
        if len(self.events) >= self.max_events:
            self.events.pop(0)
        self.events.append(event)
        logger.debug("Domain event: %s", getattr(event, "to_dict", lambda: event)())

    def get_recent(self, n: int = 10) -> List[Any]:
        return self.events[-n:]

    def of_type(self, event_type: Type[Any]) -> List[Any]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()


class ListenerRegistry:
    """Callback registry dispatching events to per-type listeners.

    A listener subscribed without an event type receives every event.
    Listener failures are logged and never interrupt dispatch to the
    remaining listeners.
    """

    def __init__(self) -> None:
        self._listeners: Dict[Optional[type], List[Callable[[Any], None]]] = (
            defaultdict(list)
        )

    def subscribe(
        self,
        listener: Callable[[Any], None],
        event_type: Optional[type] = None,
    ) -> Callable[[], None]:
        """Register *listener* and return a callable that unsubscribes it."""
        self._listeners[event_type].append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener, event_type)

        return _unsubscribe

    def unsubscribe(
        self,
        listener: Callable[[Any], None],
        event_type: Optional[type] = None,
    ) -> None:
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: Optional[type] = None) -> int:
        return len(self._listeners.get(event_type, ()))

    def publish(self, event: Any) -> None:
        targets = list(self._listeners.get(type(event), ())) + list(
            self._listeners.get(None, ())
        )
        for listener in targets:
            try:
                listener(event)
            except Exception:
                logger.warning(
                    "Listener %r failed for %s",
                    listener,
                    type(event).__name__,
                    exc_info=True,
                )


# ---------------------------------------------------------------------------
# StepCollector (Service)
# ---------------------------------------------------------------------------


class StepCollector:
    """Turns the provider's cumulative step log into an exactly-once stream.

    A background asyncio task sleeps for the poll interval and then runs one
    synchronous tick (``drain``). Cancellation can therefore only land
    between ticks, so ``stop()`` never interrupts a tick halfway and ticks
    never overlap.
    """

    def __init__(
        self,
        provider: CaptureProviderProtocol,
        event_publisher: Optional[EventPublisherProtocol] = None,
        interval: Optional[PollInterval] = None,
    ) -> None:
        self._provider = provider
        self._event_publisher = event_publisher
        self._interval = interval or PollInterval.default()
        self._cursor = StepCursor()
        self._task: Optional[asyncio.Task] = None
        self._session_id: Optional[str] = None

    @property
    def interval(self) -> PollInterval:
        return self._interval

    @property
    def delivered_count(self) -> int:
        return self._cursor.delivered_count

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, session_id: Optional[str] = None) -> None:
        """Begin polling on the running event loop."""
        if self.is_polling:
            raise RuntimeError("Step collector is already polling")
        self._session_id = session_id
        self._task = asyncio.create_task(self._poll_loop())
        logger.debug(
            "Step collector started (interval: %dms)", self._interval.milliseconds
        )

    async def stop(self) -> None:
        """Cancel the poll loop and wait until it has fully quiesced."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Step collector stopped")

    def reset(self) -> None:
        """Forget delivered steps; only valid once the provider buffer is cleared."""
        self._cursor.reset()
        self._session_id = None

    def drain(self) -> List[RawStep]:
        """Run one tick: read the provider, publish and return new steps."""
        try:
            all_steps = self._provider.get_recorded_steps()
        except Exception as exc:
            error = ProviderPollFailedError(exc, self._session_id)
            logger.warning("%s (polling continues)", error.message)
            self._publish(
                RecorderErrorOccurred(
                    reason=error.reason,
                    message=error.message,
                    session_id=self._session_id,
                    error=error,
                )
            )
            return []

        first_index = self._cursor.delivered_count
        if len(all_steps) < first_index:
            logger.warning(
                "Provider step log shrank from %d to %d without clear_steps",
                first_index,
                len(all_steps),
            )
        new_steps = self._cursor.advance(all_steps)
        if new_steps:
            logger.debug(
                "Collected %d new step(s) (delivered: %d)",
                len(new_steps),
                self._cursor.delivered_count,
            )
        for offset, step in enumerate(new_steps):
            self._publish(
                StepRecorded(
                    session_id=self._session_id,
                    step=step,
                    index=first_index + offset,
                )
            )
        return new_steps

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval.seconds)
            self.drain()

    def _publish(self, event: Any) -> None:
        if self._event_publisher:
            self._event_publisher.publish(event)


# ---------------------------------------------------------------------------
# SessionController (Service - Main Entry Point)
# ---------------------------------------------------------------------------


class SessionController:
    """Single authority over the recording session.

    This is the only component that calls the provider's start/stop
    primitives. It:
    1. Rejects ``start`` while a session is active (no queueing).
    2. Starts and quiesces the StepCollector around the provider calls.
    3. Reads the exhaustive step list on ``stop`` before clearing the
       provider buffer.
    4. Publishes RecordingStarted / RecordingStopped events.

    ``start`` and ``stop`` are serialized by an asyncio lock, so a second
    ``stop`` racing the first one observes no session and raises.
    """

    def __init__(
        self,
        provider: CaptureProviderProtocol,
        event_publisher: Optional[EventPublisherProtocol] = None,
        poll_interval: Optional[PollInterval] = None,
        collector: Optional[StepCollector] = None,
    ) -> None:
        self._provider = provider
        self._event_publisher = event_publisher
        self._collector = collector or StepCollector(
            provider, event_publisher=event_publisher, interval=poll_interval
        )
        self._session: Optional[RecordingSession] = None
        self._lock = asyncio.Lock()

    @property
    def collector(self) -> StepCollector:
        return self._collector

    @property
    def current_session_id(self) -> Optional[str]:
        return self._session.session_id if self._session else None

    @property
    def has_session(self) -> bool:
        return self._session is not None

    def is_recording(self) -> bool:
        """Live capture state as reported by the provider."""
        return bool(self._provider.is_recording())

    async def start(self, session_id: str) -> None:
        """Start a new recording session.

        Raises:
            ValueError: If session_id is empty.
            AlreadyRecordingError: If a session is already active.
            ProviderStartFailedError: If the provider refused to start.
        """
        if not session_id:
            raise ValueError("session_id must not be empty")
        async with self._lock:
            if self._session is not None:
                raise AlreadyRecordingError(self._session.session_id)

            if not self._provider.start_recording(session_id):
                logger.warning("Capture provider refused session %s", session_id)
                raise ProviderStartFailedError(session_id)

            self._session = RecordingSession(session_id=session_id)
            self._collector.start(session_id)
            self._publish(RecordingStarted(session_id=session_id))
            logger.info("Recording started (session: %s)", session_id)

    async def stop(self) -> List[RawStep]:
        """Stop the active session and return every step it captured.

        The poll loop is quiesced before the final read, and the provider
        buffer is only cleared after the exhaustive read succeeded. If the
        provider fails before that point the error propagates and the
        session stays registered so ``stop`` can be retried.

        Raises:
            NoActiveSessionError: If no session is active.
        """
        async with self._lock:
            session = self._session
            if session is None:
                raise NoActiveSessionError()

            await self._collector.stop()

            if not self._provider.stop_recording():
                logger.warning(
                    "Capture provider reported failure stopping session %s",
                    session.session_id,
                )

            final_steps = list(self._provider.get_recorded_steps())

            session.close()
            self._session = None
            self._collector.reset()
            self._publish(
                RecordingStopped(
                    session_id=session.session_id,
                    step_count=len(final_steps),
                    duration_seconds=session.duration_seconds,
                )
            )

            try:
                self._provider.clear_steps()
            except Exception as exc:
                logger.warning("Clearing the capture buffer failed: %s", exc)

            logger.info(
                "Recording stopped (session: %s, %d steps)",
                session.session_id,
                len(final_steps),
            )
            return final_steps

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session": self._session.to_dict() if self._session else None,
            "is_recording": self.is_recording(),
            "collector": {
                "polling": self._collector.is_polling,
                "interval_ms": self._collector.interval.milliseconds,
                "delivered_count": self._collector.delivered_count,
            },
        }

    def _publish(self, event: Any) -> None:
        if self._event_publisher:
            self._event_publisher.publish(event)
