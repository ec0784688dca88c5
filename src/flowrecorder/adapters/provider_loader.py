"""Resolve a capture provider from a ``module:attribute`` reference."""

from __future__ import annotations

import importlib
import logging
from typing import Any

from flowrecorder.domains.recording.services import CaptureProviderProtocol

logger = logging.getLogger(__name__)


def load_provider(reference: str) -> CaptureProviderProtocol:
    """Import and instantiate the provider named by *reference*.

    The attribute may be a class, a factory function or a ready instance.
    Callables are invoked without arguments.

    Raises:
        ValueError: If the reference is not of the form ``module:attribute``.
        ImportError: If the module cannot be imported.
        AttributeError: If the module has no such attribute.
        TypeError: If the result does not implement the provider protocol.
    """
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(
            f"Provider reference must look like 'package.module:factory', got {reference!r}"
        )

    target: Any = importlib.import_module(module_name)
    for part in attr_path.split("."):
        target = getattr(target, part)

    provider = target() if callable(target) else target
    if not isinstance(provider, CaptureProviderProtocol):
        raise TypeError(
            f"{reference} produced {type(provider).__name__}, which does not "
            "implement the capture provider interface"
        )
    logger.debug("Loaded capture provider %s from %s", type(provider).__name__, reference)
    return provider
