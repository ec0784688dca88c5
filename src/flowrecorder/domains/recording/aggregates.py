"""Aggregates for the recording bounded context.

Aggregates enforce invariants and encapsulate domain logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from .entities import RawStep


# ---------------------------------------------------------------------------
# StepCursor (Aggregate Root)
# ---------------------------------------------------------------------------


@dataclass
class StepCursor:
    """Read-and-diff cursor over the provider's append-only step log.

    Invariants:
    - ``delivered_count`` never decreases until ``reset()``
    - A step is returned by ``advance()`` at most once
    - Steps are returned in capture order
    """

    __test__ = False

    delivered_count: int = 0

    def advance(self, all_steps: Sequence[RawStep]) -> List[RawStep]:
        """Return the steps beyond the cursor and move the cursor to the end.

        A log shorter than the cursor means the provider dropped steps
        without a ``clear_steps`` call; nothing is returned and the cursor
        stays where it is so no step is delivered twice.
        """
        total = len(all_steps)
        if total <= self.delivered_count:
            return []
        new_steps = list(all_steps[self.delivered_count:])
        self.delivered_count = total
        return new_steps

    def reset(self) -> None:
        self.delivered_count = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"delivered_count": self.delivered_count}
