"""Pytest configuration for the flow-recorder test suite."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest

from flowrecorder.adapters import InMemoryCaptureProvider
from flowrecorder.domains.recording import (
    ActionKind,
    ApplicationInfo,
    Frame,
    Modifiers,
    MouseButton,
    Point,
    RawStep,
    TargetDescriptor,
)


@pytest.fixture
def make_descriptor() -> Callable[..., TargetDescriptor]:
    """Factory for TargetDescriptors with sensible blanks."""

    def _make(
        role: str = "",
        title: str = "",
        identifier: str = "",
        value: str = "",
        frame: Optional[Frame] = None,
        ancestry: tuple = (),
    ) -> TargetDescriptor:
        return TargetDescriptor(
            role=role,
            title=title,
            identifier=identifier,
            value=value,
            frame=frame or Frame(x=100, y=200, width=80, height=30),
            ancestry=ancestry,
        )

    return _make


@pytest.fixture
def make_step(make_descriptor) -> Callable[..., RawStep]:
    """Factory for RawSteps with increasing timestamps."""
    clock = itertools.count(1_700_000_000_000, 100)

    def _make(
        action: str = "click",
        text: Optional[str] = None,
        session_id: str = "test-session",
        descriptor: Optional[TargetDescriptor] = None,
        **descriptor_fields: Any,
    ) -> RawStep:
        kind = ActionKind(action)
        return RawStep(
            timestamp=float(next(clock)),
            session_id=session_id,
            action=kind,
            button=MouseButton.LEFT if kind != ActionKind.TYPE else None,
            text=text,
            location=Point(150.0, 250.0),
            modifiers=Modifiers.none(),
            target_descriptor=descriptor or make_descriptor(**descriptor_fields),
            app_info=ApplicationInfo(name="Mail", process_id=1234),
        )

    return _make


@pytest.fixture
def provider() -> InMemoryCaptureProvider:
    return InMemoryCaptureProvider()


@pytest.fixture
def step_payload() -> Dict[str, Any]:
    """A raw step as the native provider serializes it."""
    return {
        "timestamp": 1700000000000,
        "sessionId": "test-session",
        "action": "type",
        "text": "Hello World",
        "location": {"x": 150, "y": 250},
        "modifiers": {
            "shift": False,
            "control": False,
            "option": False,
            "command": False,
        },
        "targetDescriptor": {
            "role": "AXTextField",
            "title": "Email",
            "identifier": "email-input",
            "value": "",
            "frame": {"x": 150, "y": 250, "width": 200, "height": 25},
            "ancestry": ["AXApplication", "AXWindow", "AXTextField"],
        },
        "appInfo": {"name": "Mail", "processId": 5678},
    }


@pytest.fixture
def sample_steps_path() -> Path:
    """Recorded Mail compose session: compose, address, drag, send."""
    return Path(__file__).parent / "data" / "mail_compose_steps.json"
