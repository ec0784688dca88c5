"""Value objects for the recording bounded context.

All value objects are frozen dataclasses with validation in __post_init__,
ClassVar constants, and factory classmethods. Payload keys follow the
camelCase shape produced by the native capture provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple


class ActionKind(str, Enum):
    """Kind of user action captured by the provider."""

    CLICK = "click"
    TYPE = "type"
    DRAG = "drag"


class MouseButton(str, Enum):
    """Mouse button used for a click or drag."""

    LEFT = "left"
    RIGHT = "right"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key from *payload* (camelCase or snake_case)."""
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Point:
    """Screen location of a captured action."""

    x: float
    y: float

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "Point":
        payload = payload or {}
        return cls(x=float(payload.get("x", 0)), y=float(payload.get("y", 0)))

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Frame:
    """Bounding box of a UI element in screen coordinates."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "Frame":
        payload = payload or {}
        return cls(
            x=float(payload.get("x", 0)),
            y=float(payload.get("y", 0)),
            width=float(payload.get("width", 0)),
            height=float(payload.get("height", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Modifiers:
    """Keyboard modifier state at the time of the action."""

    shift: bool = False
    control: bool = False
    option: bool = False
    command: bool = False

    NAMES: ClassVar[Tuple[str, ...]] = ("shift", "control", "option", "command")

    @classmethod
    def none(cls) -> "Modifiers":
        return cls()

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "Modifiers":
        payload = payload or {}
        return cls(**{name: bool(payload.get(name, False)) for name in cls.NAMES})

    @property
    def active(self) -> Tuple[str, ...]:
        """Names of the pressed modifiers, in canonical order."""
        return tuple(name for name in self.NAMES if getattr(self, name))

    def to_dict(self) -> Dict[str, bool]:
        return {name: getattr(self, name) for name in self.NAMES}


# ---------------------------------------------------------------------------
# ApplicationInfo
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApplicationInfo:
    """Application that owned the target element."""

    name: str = ""
    process_id: int = 0

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "ApplicationInfo":
        payload = payload or {}
        return cls(
            name=_as_str(payload.get("name")),
            process_id=int(_pick(payload, "processId", "process_id", default=0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "processId": self.process_id}


# ---------------------------------------------------------------------------
# TargetDescriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TargetDescriptor:
    """Accessibility metadata of the element a step acted upon.

    Every string field may be empty. ``identifier`` and ``title`` are the
    most useful for selectors and are frequently missing.
    """

    role: str = ""
    title: str = ""
    identifier: str = ""
    value: str = ""
    frame: Frame = field(default_factory=Frame)
    ancestry: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "TargetDescriptor":
        payload = payload or {}
        return cls(
            role=_as_str(payload.get("role")),
            title=_as_str(payload.get("title")),
            identifier=_as_str(payload.get("identifier")),
            value=_as_str(payload.get("value")),
            frame=Frame.from_dict(payload.get("frame")),
            ancestry=tuple(_as_str(r) for r in payload.get("ancestry") or ()),
        )

    @property
    def is_anonymous(self) -> bool:
        """True when no role, identifier or title is available."""
        return not (self.role or self.identifier or self.title)

    @property
    def display_name(self) -> str:
        return self.title or self.role or "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "title": self.title,
            "identifier": self.identifier,
            "value": self.value,
            "frame": self.frame.to_dict(),
            "ancestry": list(self.ancestry),
        }


# ---------------------------------------------------------------------------
# PollInterval
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PollInterval:
    """Delay between two collector ticks."""

    milliseconds: int

    MIN_MS: ClassVar[int] = 10
    MAX_MS: ClassVar[int] = 5000
    DEFAULT_MS: ClassVar[int] = 100

    def __post_init__(self) -> None:
        if not (self.MIN_MS <= self.milliseconds <= self.MAX_MS):
            raise ValueError(
                f"PollInterval must be {self.MIN_MS}-{self.MAX_MS}ms, "
                f"got {self.milliseconds}"
            )

    @classmethod
    def default(cls) -> "PollInterval":
        return cls(milliseconds=cls.DEFAULT_MS)

    @property
    def seconds(self) -> float:
        return self.milliseconds / 1000.0
