from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Protocol, Sequence

if TYPE_CHECKING:
    from .session import Session

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single provisioning step."""

    step_id: str

    def run(self, session: "Session") -> bool:
        """Return False when the step had nothing to do."""
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    skipped_steps: List[str]


def run_pipeline(*, session: "Session", steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order; the first failure aborts the run."""

    ran: List[str] = []
    skipped: List[str] = []

    for step in steps:
        logger.debug("Running step %s", step.step_id)
        if step.run(session):
            ran.append(step.step_id)
        else:
            logger.debug("Step %s had nothing to do", step.step_id)
            skipped.append(step.step_id)

    return PipelineResult(ran_steps=ran, skipped_steps=skipped)
