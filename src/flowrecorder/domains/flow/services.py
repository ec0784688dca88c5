"""Services for the flow bounded context.

The FlowSynthesizer turns an ordered sequence of RawSteps into a Flow in a
single left-to-right pass. It keeps no state between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from flowrecorder.domains.recording.entities import RawStep
from flowrecorder.domains.recording.value_objects import ActionKind, TargetDescriptor

from .selectors import derive_selector
from .value_objects import FLOW_FORMAT_VERSION, Flow, FlowStep

logger = logging.getLogger(__name__)

DEFAULT_FLOW_NAME = "Recorded Flow"


@dataclass
class _PendingText:
    """Text typed into one target that has not been emitted yet."""

    text: str = ""
    target: Optional[str] = None

    def flush_into(self, steps: List[FlowStep]) -> None:
        if self.text and self.target:
            steps.append(FlowStep.type_text(self.target, self.text))
        self.text = ""
        self.target = None


class FlowSynthesizer:
    """Converts raw recorded steps into a Flow document.

    Rules:
    1. Consecutive ``type`` steps on the same selector merge into one step
       whose text is the ordered concatenation.
    2. Any non-``type`` step flushes pending text before it is handled.
    3. ``click`` steps become ``click`` FlowSteps.
    4. ``drag`` steps are dropped.
    5. Variables are never inferred; the variable set is always empty.
    """

    def __init__(
        self,
        selector_factory: Callable[[TargetDescriptor], str] = derive_selector,
    ) -> None:
        self._derive_selector = selector_factory

    def convert(
        self, steps: Sequence[RawStep], flow_name: str = DEFAULT_FLOW_NAME
    ) -> Flow:
        flow_steps: List[FlowStep] = []
        pending = _PendingText()
        dropped = 0

        for step in steps:
            selector = self._derive_selector(step.target_descriptor)

            if step.action == ActionKind.TYPE:
                if pending.target == selector:
                    pending.text += step.text or ""
                else:
                    pending.flush_into(flow_steps)
                    pending.text = step.text or ""
                    pending.target = selector
                continue

            pending.flush_into(flow_steps)
            if step.action == ActionKind.CLICK:
                flow_steps.append(FlowStep.click(selector))
            else:
                dropped += 1

        pending.flush_into(flow_steps)

        if dropped:
            logger.debug("Dropped %d step(s) with no flow equivalent", dropped)
        logger.info(
            "Synthesized flow '%s': %d raw step(s) -> %d flow step(s)",
            flow_name,
            len(steps),
            len(flow_steps),
        )
        return Flow(
            version=FLOW_FORMAT_VERSION,
            name=flow_name,
            variables=(),
            steps=tuple(flow_steps),
        )
