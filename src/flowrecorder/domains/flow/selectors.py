"""Selector derivation for recorded target elements.

A selector is a concatenation of attribute fragments built from the
accessibility descriptor, in this precedence:

1. ``[role="..."]`` when the role is known
2. ``[id="..."]`` when the identifier is known, else ``[title="..."]``
3. ``[ax-position="x,y"]`` when none of the above produced a fragment

Identical descriptors always give byte-identical selectors; the text merge
in the synthesizer relies on that.
"""

from __future__ import annotations

from typing import List

from flowrecorder.domains.recording.value_objects import TargetDescriptor


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _fragment(attribute: str, value: str) -> str:
    return f'[{attribute}="{_quote(value)}"]'


def _format_coordinate(value: float) -> str:
    """Render 100.0 as ``100`` and 100.5 as ``100.5``."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def derive_selector(descriptor: TargetDescriptor) -> str:
    """Build a stable, never-empty selector for *descriptor*."""
    parts: List[str] = []

    if descriptor.role:
        parts.append(_fragment("role", descriptor.role))

    if descriptor.identifier:
        parts.append(_fragment("id", descriptor.identifier))
    elif descriptor.title:
        parts.append(_fragment("title", descriptor.title))

    if not parts:
        position = (
            f"{_format_coordinate(descriptor.frame.x)},"
            f"{_format_coordinate(descriptor.frame.y)}"
        )
        parts.append(_fragment("ax-position", position))

    return "".join(parts)
