"""Entities for the recording bounded context.

Entities carry identity and lifecycle. They use ``__test__ = False`` to
suppress pytest collection warnings.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import StepDecodeError
from .value_objects import (
    ActionKind,
    ApplicationInfo,
    Modifiers,
    MouseButton,
    Point,
    TargetDescriptor,
    _pick,
)

_monotonic = time.monotonic


@dataclass(frozen=True)
class RawStep:
    """One user action as captured by the native provider.

    ``text`` is only meaningful for ``type`` actions. Instances are never
    mutated once captured; the collector and the synthesizer share them.
    """

    __test__ = False

    timestamp: float  # milliseconds
    session_id: str
    action: ActionKind
    location: Point = field(default_factory=lambda: Point(0.0, 0.0))
    modifiers: Modifiers = field(default_factory=Modifiers)
    target_descriptor: TargetDescriptor = field(default_factory=TargetDescriptor)
    app_info: ApplicationInfo = field(default_factory=ApplicationInfo)
    button: Optional[MouseButton] = None
    text: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RawStep":
        """Decode a provider payload (camelCase or snake_case keys).

        Raises:
            StepDecodeError: If the payload is not a mapping or names an
                unknown action or button.
        """
        if not isinstance(payload, Mapping):
            raise StepDecodeError(
                f"Recorded step must be an object, got {type(payload).__name__}",
                payload,
            )
        raw_action = payload.get("action")
        try:
            action = ActionKind(raw_action)
        except ValueError:
            raise StepDecodeError(
                f"Unknown recorded action: {raw_action!r}", payload
            ) from None

        raw_button = payload.get("button")
        button: Optional[MouseButton] = None
        if raw_button:
            try:
                button = MouseButton(raw_button)
            except ValueError:
                raise StepDecodeError(
                    f"Unknown mouse button: {raw_button!r}", payload
                ) from None

        text = payload.get("text")
        try:
            return cls(
                timestamp=float(payload.get("timestamp", 0)),
                session_id=str(_pick(payload, "sessionId", "session_id", default="")),
                action=action,
                location=Point.from_dict(payload.get("location")),
                modifiers=Modifiers.from_dict(payload.get("modifiers")),
                target_descriptor=TargetDescriptor.from_dict(
                    _pick(payload, "targetDescriptor", "target_descriptor")
                ),
                app_info=ApplicationInfo.from_dict(
                    _pick(payload, "appInfo", "app_info")
                ),
                button=button,
                text=None if text is None else str(text),
            )
        except (TypeError, ValueError) as exc:
            raise StepDecodeError(f"Malformed recorded step: {exc}", payload) from exc

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "sessionId": self.session_id,
            "action": self.action.value,
        }
        if self.button is not None:
            data["button"] = self.button.value
        if self.text is not None:
            data["text"] = self.text
        data.update(
            {
                "location": self.location.to_dict(),
                "modifiers": self.modifiers.to_dict(),
                "targetDescriptor": self.target_descriptor.to_dict(),
                "appInfo": self.app_info.to_dict(),
            }
        )
        return data


@dataclass
class RecordingSession:
    """The single recording interval owned by the SessionController.

    Lifecycle:
    1. Created active after the provider accepted ``start_recording``
    2. Closed by ``stop``; a closed session is discarded by its owner
    """

    __test__ = False

    session_id: str
    active: bool = True
    started_at: float = field(default_factory=_monotonic)
    ended_at: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.session_id:
            raise ValueError("RecordingSession.session_id must not be empty")

    def close(self) -> None:
        self.active = False
        self.ended_at = _monotonic()

    @property
    def duration_seconds(self) -> float:
        end = self.ended_at if self.ended_at is not None else _monotonic()
        return end - self.started_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "active": self.active,
            "duration_seconds": round(self.duration_seconds, 2),
        }
