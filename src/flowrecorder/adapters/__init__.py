"""Capture provider adapters.

The native accessibility recorder lives outside this package and is
plugged in through ``load_provider``. ``InMemoryCaptureProvider`` stands in
for it in tests and dry runs.
"""

from .memory_provider import InMemoryCaptureProvider
from .provider_loader import load_provider

__all__ = ["InMemoryCaptureProvider", "load_provider"]
