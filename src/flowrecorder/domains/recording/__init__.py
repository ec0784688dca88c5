"""Recording bounded context.

Owns the capture session lifecycle and drains newly captured steps from a
pull-only native provider:
1. SessionController: at most one active session, start/stop ordering
2. StepCollector: polling loop with exactly-once, in-order delivery
3. Domain events: RecordingStarted, RecordingStopped, StepRecorded,
   RecorderErrorOccurred

Public API re-exports for adapter and entry point use.
"""

from .value_objects import (
    ActionKind,
    ApplicationInfo,
    Frame,
    Modifiers,
    MouseButton,
    Point,
    PollInterval,
    TargetDescriptor,
)
from .entities import RawStep, RecordingSession
from .aggregates import StepCursor
from .errors import (
    AlreadyRecordingError,
    NoActiveSessionError,
    ProviderPollFailedError,
    ProviderStartFailedError,
    RecorderError,
    StepDecodeError,
)
from .events import (
    RecorderErrorOccurred,
    RecordingStarted,
    RecordingStopped,
    StepRecorded,
)
from .services import (
    CaptureProviderProtocol,
    EventCollector,
    EventPublisherProtocol,
    ListenerRegistry,
    SessionController,
    StepCollector,
)

__all__ = [
    # Value Objects
    "ActionKind",
    "ApplicationInfo",
    "Frame",
    "Modifiers",
    "MouseButton",
    "Point",
    "PollInterval",
    "TargetDescriptor",
    # Entities
    "RawStep",
    "RecordingSession",
    # Aggregates
    "StepCursor",
    # Errors
    "AlreadyRecordingError",
    "NoActiveSessionError",
    "ProviderPollFailedError",
    "ProviderStartFailedError",
    "RecorderError",
    "StepDecodeError",
    # Events
    "RecorderErrorOccurred",
    "RecordingStarted",
    "RecordingStopped",
    "StepRecorded",
    # Services
    "CaptureProviderProtocol",
    "EventCollector",
    "EventPublisherProtocol",
    "ListenerRegistry",
    "SessionController",
    "StepCollector",
]
