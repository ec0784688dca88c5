"""In-memory capture provider.

Implements ``CaptureProviderProtocol`` over a plain list so the recording
engine can run without a native accessibility recorder. Steps are pushed
by the caller (tests, the ``replay`` command) instead of being captured
from the operating system.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from flowrecorder.domains.recording.entities import RawStep

logger = logging.getLogger(__name__)


class InMemoryCaptureProvider:
    """List-backed provider with switchable failure modes.

    Attributes:
        refuse_start: When True, ``start_recording`` returns False, mimicking
            a missing accessibility permission.
        fail_reads: Number of upcoming ``get_recorded_steps`` calls that
            raise ``RuntimeError``.
    """

    def __init__(
        self,
        steps: Optional[Iterable[RawStep]] = None,
        *,
        refuse_start: bool = False,
        fail_reads: int = 0,
    ) -> None:
        self._steps: List[RawStep] = list(steps or ())
        self._recording = False
        self._session_id: Optional[str] = None
        self.refuse_start = refuse_start
        self.fail_reads = fail_reads
        self.calls: List[str] = []

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    def push(self, *steps: RawStep) -> None:
        """Append captured steps to the buffer."""
        self._steps.extend(steps)

    def start_recording(self, session_id: str) -> bool:
        self.calls.append("start_recording")
        if self.refuse_start:
            logger.debug("In-memory provider refusing session %s", session_id)
            return False
        self._recording = True
        self._session_id = session_id
        return True

    def stop_recording(self) -> bool:
        self.calls.append("stop_recording")
        was_recording = self._recording
        self._recording = False
        return was_recording

    def is_recording(self) -> bool:
        return self._recording

    def get_recorded_steps(self) -> Sequence[RawStep]:
        self.calls.append("get_recorded_steps")
        if self.fail_reads > 0:
            self.fail_reads -= 1
            raise RuntimeError("simulated capture read failure")
        return list(self._steps)

    def clear_steps(self) -> bool:
        self.calls.append("clear_steps")
        self._steps.clear()
        return True
