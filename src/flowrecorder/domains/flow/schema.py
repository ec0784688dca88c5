"""Pydantic models validating Flow documents that arrive as JSON.

Synthesized flows are trusted; these models guard flows that were authored
or edited by hand before they are turned back into domain objects.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .value_objects import (
    FLOW_FORMAT_VERSION,
    Flow,
    FlowStep,
    FlowStepType,
    FlowVariable,
    VariableSource,
    VariableType,
)


class FlowVariableModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    type: VariableType
    required: bool = False
    default: Any = None
    source: Optional[VariableSource] = None

    def to_domain(self) -> FlowVariable:
        return FlowVariable(
            name=self.name,
            type=self.type,
            required=self.required,
            default=self.default,
            source=self.source,
        )


class FlowStepModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: FlowStepType
    selector: Optional[str] = None
    text: Optional[str] = None
    url: Optional[str] = None
    app: Optional[str] = None
    condition: Optional[str] = None
    timeout: Optional[float] = Field(default=None, ge=0)

    def to_domain(self) -> FlowStep:
        return FlowStep(
            type=self.type,
            selector=self.selector,
            text=self.text,
            url=self.url,
            app=self.app,
            condition=self.condition,
            timeout=self.timeout,
        )


class FlowDocument(BaseModel):
    """Top-level shape of a Flow JSON document."""

    model_config = ConfigDict(extra="ignore")

    version: str = FLOW_FORMAT_VERSION
    name: str
    variables: List[FlowVariableModel] = Field(default_factory=list)
    steps: List[FlowStepModel] = Field(default_factory=list)

    def to_domain(self) -> Flow:
        return Flow(
            version=self.version,
            name=self.name,
            variables=tuple(v.to_domain() for v in self.variables),
            steps=tuple(s.to_domain() for s in self.steps),
        )


def parse_flow_document(data: Mapping[str, Any]) -> Flow:
    """Validate *data* and return the corresponding Flow.

    Raises:
        pydantic.ValidationError: If the document does not match the schema.
        ValueError: If a step is structurally valid but unusable (for
            example a click without a selector).
    """
    return FlowDocument.model_validate(data).to_domain()
