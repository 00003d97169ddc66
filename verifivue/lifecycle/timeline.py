"""Timeline builder for the four-stage request timeline.

Maintains the ordered stage records of a request. All operations return a
new list of steps and never touch their input.

Ordering invariant:
- at most one step is CURRENT (the active stage)
- every step before the active stage is COMPLETED or ERROR
- every step after it is UPCOMING

Once the Final step is COMPLETED the timeline is closed and advance() refuses
further changes; mark_terminal() on a closed timeline is a no-op.

Usage:
    from verifivue.lifecycle.timeline import TimelineBuilder

    builder = TimelineBuilder()
    timeline = builder.initialize()
    timeline = builder.advance(timeline, Stage.ANALYSIS, StepStatus.COMPLETED)
"""

from datetime import datetime, timezone
from typing import Optional

from verifivue.data_management.schemas import (
    STAGE_ORDER,
    Stage,
    StepStatus,
    TimelineStep,
)
from verifivue.lifecycle.errors import TimelineError

STAGE_LABELS: dict[Stage, str] = {
    Stage.SUBMISSION: "Request Submitted",
    Stage.ANALYSIS: "Document Analysis",
    Stage.OUTREACH: "Institution Outreach",
    Stage.FINAL: "Final Verification",
}

_SETTLED = (StepStatus.COMPLETED, StepStatus.ERROR)


class TimelineBuilder:
    """Creates and advances request timelines."""

    def initialize(self, now: Optional[datetime] = None) -> list[TimelineStep]:
        """Return the four canonical stages for a fresh submission.

        Submission is completed, Analysis is current, Outreach and Final are
        upcoming.
        """
        now = now or datetime.now(timezone.utc)
        return [
            TimelineStep(
                id="1",
                stage=Stage.SUBMISSION,
                label=STAGE_LABELS[Stage.SUBMISSION],
                description="Request received and logged in the system.",
                status=StepStatus.COMPLETED,
                date=now,
            ),
            TimelineStep(
                id="2",
                stage=Stage.ANALYSIS,
                label=STAGE_LABELS[Stage.ANALYSIS],
                description="AI-powered initial document verification.",
                status=StepStatus.CURRENT,
                date=now,
            ),
            TimelineStep(
                id="3",
                stage=Stage.OUTREACH,
                label=STAGE_LABELS[Stage.OUTREACH],
                description="Contacting the issuing institution for confirmation.",
                status=StepStatus.UPCOMING,
            ),
            TimelineStep(
                id="4",
                stage=Stage.FINAL,
                label=STAGE_LABELS[Stage.FINAL],
                description="Final status update and report generation.",
                status=StepStatus.UPCOMING,
            ),
        ]

    def advance(
        self,
        timeline: list[TimelineStep],
        stage: Stage,
        new_status: StepStatus,
        description: Optional[str] = None,
        date: Optional[datetime] = None,
    ) -> list[TimelineStep]:
        """Replace the status (and optionally description/date) of one step.

        Args:
            timeline: Current four-step timeline.
            stage: Stage to update.
            new_status: New status for that stage.
            description: New description; kept unchanged if None.
            date: Date to record; defaults to now for any non-upcoming status.

        Returns:
            New timeline with exactly one step replaced.

        Raises:
            TimelineError: Timeline is closed, or marking ``stage`` current
                would break the ordering invariant.
        """
        if self.is_terminal(timeline):
            raise TimelineError(f"Timeline is closed, cannot advance {stage.value}")

        index = STAGE_ORDER.index(stage)
        if new_status == StepStatus.CURRENT:
            earlier = timeline[:index]
            later = timeline[index + 1:]
            unsettled = [s.stage.value for s in earlier if s.status not in _SETTLED]
            if unsettled:
                raise TimelineError(
                    f"Cannot make {stage.value} current while {unsettled} not settled"
                )
            started = [s.stage.value for s in later if s.status != StepStatus.UPCOMING]
            if started:
                raise TimelineError(
                    f"Cannot make {stage.value} current after {started} started"
                )

        if new_status == StepStatus.UPCOMING:
            date = None
        elif date is None:
            date = datetime.now(timezone.utc)

        updated = list(timeline)
        updated[index] = timeline[index].model_copy(
            update={
                "status": new_status,
                "description": (
                    timeline[index].description if description is None else description
                ),
                "date": date,
            }
        )
        return updated

    def mark_terminal(
        self,
        timeline: list[TimelineStep],
        description: str,
        now: Optional[datetime] = None,
    ) -> list[TimelineStep]:
        """Complete the Final step, closing the timeline.

        Idempotent: a closed timeline is returned unchanged.
        """
        if self.is_terminal(timeline):
            return list(timeline)
        final_index = STAGE_ORDER.index(Stage.FINAL)
        updated = list(timeline)
        updated[final_index] = timeline[final_index].model_copy(
            update={
                "status": StepStatus.COMPLETED,
                "description": description,
                "date": now or datetime.now(timezone.utc),
            }
        )
        return updated

    @staticmethod
    def is_terminal(timeline: list[TimelineStep]) -> bool:
        return timeline[STAGE_ORDER.index(Stage.FINAL)].status == StepStatus.COMPLETED

    def active_stage(self, timeline: list[TimelineStep]) -> Optional[Stage]:
        """Stage the request is currently sitting in.

        That is the first step not yet completed: the CURRENT step, or an
        ERROR step awaiting a human decision. None once the timeline is
        closed.
        """
        if self.is_terminal(timeline):
            return None
        for step in timeline:
            if step.status != StepStatus.COMPLETED:
                return step.stage
        return None

    @staticmethod
    def holds_invariant(timeline: list[TimelineStep]) -> bool:
        """Check the single-active-stage ordering invariant."""
        current = [i for i, s in enumerate(timeline) if s.status == StepStatus.CURRENT]
        if len(current) > 1:
            return False
        if not current:
            return True
        index = current[0]
        before_ok = all(s.status in _SETTLED for s in timeline[:index])
        after_ok = all(s.status == StepStatus.UPCOMING for s in timeline[index + 1:])
        return before_ok and after_ok
