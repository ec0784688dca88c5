"""Value objects for the flow bounded context.

A Flow is the declarative, replayable automation script synthesized from a
recording. All types here are frozen; a Flow never changes after synthesis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Tuple

FLOW_FORMAT_VERSION = "0.1"


class FlowStepType(str, Enum):
    """Kinds of steps a Flow may contain."""

    CLICK = "click"
    TYPE = "type"
    SELECT = "select"
    NAVIGATE = "navigate"
    WAIT_FOR = "wait_for"
    OPEN_APP = "open_app"
    GUARD = "guard"


class VariableType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    FILE = "file"
    TABLE = "table"
    SECRET = "secret"


class VariableSource(str, Enum):
    PROMPT = "prompt"
    FILE = "file"
    SHEETS = "sheets"


# ---------------------------------------------------------------------------
# FlowStep
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FlowStep:
    """One action within a Flow.

    Only ``click`` and ``type`` are synthesized from recordings; the other
    kinds exist for flows authored or extended elsewhere.
    """

    type: FlowStepType
    selector: Optional[str] = None
    text: Optional[str] = None
    url: Optional[str] = None
    app: Optional[str] = None
    condition: Optional[str] = None
    timeout: Optional[float] = None

    # Step kinds that cannot be replayed without a target element
    SELECTOR_REQUIRED: ClassVar[FrozenSet[FlowStepType]] = frozenset(
        {FlowStepType.CLICK, FlowStepType.TYPE, FlowStepType.SELECT}
    )

    def __post_init__(self) -> None:
        if self.type in self.SELECTOR_REQUIRED and not self.selector:
            raise ValueError(f"FlowStep of type '{self.type.value}' needs a selector")
        if self.timeout is not None and self.timeout < 0:
            raise ValueError(f"FlowStep.timeout must be non-negative, got {self.timeout}")

    @classmethod
    def click(cls, selector: str) -> "FlowStep":
        return cls(type=FlowStepType.CLICK, selector=selector)

    @classmethod
    def type_text(cls, selector: str, text: str) -> "FlowStep":
        return cls(type=FlowStepType.TYPE, selector=selector, text=text)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with unset optional keys omitted."""
        data: Dict[str, Any] = {"type": self.type.value}
        for key in ("selector", "text", "url", "app", "condition", "timeout"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


# ---------------------------------------------------------------------------
# FlowVariable
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FlowVariable:
    """A named input a Flow expects at run time."""

    name: str
    type: VariableType = VariableType.TEXT
    required: bool = False
    default: Any = None
    source: Optional[VariableSource] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("FlowVariable.name must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "required": self.required,
        }
        if self.default is not None:
            data["default"] = self.default
        if self.source is not None:
            data["source"] = self.source.value
        return data


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Flow:
    """Declarative automation script produced once per recording."""

    name: str
    steps: Tuple[FlowStep, ...] = ()
    variables: Tuple[FlowVariable, ...] = ()
    version: str = field(default=FLOW_FORMAT_VERSION)

    def __post_init__(self) -> None:
        if not self.version:
            raise ValueError("Flow.version must not be empty")
        # Accept lists from callers while keeping the instance immutable
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "variables", tuple(self.variables))

    @property
    def step_count(self) -> int:
        return len(self.steps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "name": self.name,
            "variables": [v.to_dict() for v in self.variables],
            "steps": [s.to_dict() for s in self.steps],
        }
