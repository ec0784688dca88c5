"""Domain events for the recording bounded context.

All events are frozen dataclasses with ``to_dict()``. These are the four
notifications consumed by the surrounding application.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .entities import RawStep


@dataclass(frozen=True)
class RecordingStarted:
    """Emitted after the provider accepted a new session."""

    session_id: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": "recording_started",
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class RecordingStopped:
    """Emitted once the final step list has been read."""

    session_id: str
    step_count: int
    duration_seconds: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": "recording_stopped",
            "session_id": self.session_id,
            "step_count": self.step_count,
            "duration_seconds": round(self.duration_seconds, 2),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class StepRecorded:
    """Emitted once per newly captured step, in capture order."""

    session_id: Optional[str]
    step: RawStep
    index: int
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": "step_recorded",
            "session_id": self.session_id,
            "index": self.index,
            "step": self.step.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class RecorderErrorOccurred:
    """Emitted for non-fatal errors such as a failed poll tick."""

    reason: str  # e.g. "provider_poll_failed"
    message: str
    session_id: Optional[str] = None
    error: Optional[BaseException] = field(default=None, compare=False)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": "recorder_error",
            "reason": self.reason,
            "message": self.message,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
        }
