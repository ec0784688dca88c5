"""Flow Recorder - desktop action recording and flow synthesis."""

from flowrecorder.domains.flow import Flow, FlowSynthesizer, derive_selector
from flowrecorder.domains.recording import RawStep, SessionController, StepCollector

__all__ = [
    "Flow",
    "FlowSynthesizer",
    "RawStep",
    "SessionController",
    "StepCollector",
    "derive_selector",
]

__version__ = "0.1.0"
