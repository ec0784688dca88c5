"""Flow bounded context.

Synthesizes declarative Flow documents from recorded steps:
1. Selector derivation from accessibility descriptors
2. Consecutive text-entry merging
3. Schema validation for externally authored flow documents
"""

from .value_objects import (
    FLOW_FORMAT_VERSION,
    Flow,
    FlowStep,
    FlowStepType,
    FlowVariable,
    VariableSource,
    VariableType,
)
from .selectors import derive_selector
from .services import DEFAULT_FLOW_NAME, FlowSynthesizer
from .schema import (
    FlowDocument,
    FlowStepModel,
    FlowVariableModel,
    parse_flow_document,
)

__all__ = [
    # Value Objects
    "FLOW_FORMAT_VERSION",
    "Flow",
    "FlowStep",
    "FlowStepType",
    "FlowVariable",
    "VariableSource",
    "VariableType",
    # Selectors
    "derive_selector",
    # Services
    "DEFAULT_FLOW_NAME",
    "FlowSynthesizer",
    # Schema
    "FlowDocument",
    "FlowStepModel",
    "FlowVariableModel",
    "parse_flow_document",
]
