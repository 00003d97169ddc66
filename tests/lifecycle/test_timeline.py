"""Tests for TimelineBuilder.

Tests cover:
- Canonical initialization
- advance() replacing exactly one step and enforcing ordering
- mark_terminal() closing the timeline idempotently
- Active stage lookup and invariant check
"""

from datetime import datetime, timezone

import pytest

from verifivue.data_management.schemas import STAGE_ORDER, Stage, StepStatus
from verifivue.lifecycle.errors import TimelineError
from verifivue.lifecycle.timeline import STAGE_LABELS, TimelineBuilder

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)
LATER = datetime(2024, 5, 21, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def builder() -> TimelineBuilder:
    return TimelineBuilder()


@pytest.fixture
def fresh(builder):
    return builder.initialize(NOW)


# ── Initialize ────────────────────────────────────────────────────────────


class TestInitialize:
    def test_four_canonical_stages(self, fresh):
        assert [s.stage for s in fresh] == list(STAGE_ORDER)
        assert [s.id for s in fresh] == ["1", "2", "3", "4"]
        assert [s.label for s in fresh] == [STAGE_LABELS[s] for s in STAGE_ORDER]

    def test_initial_statuses(self, fresh):
        assert [s.status for s in fresh] == [
            StepStatus.COMPLETED,
            StepStatus.CURRENT,
            StepStatus.UPCOMING,
            StepStatus.UPCOMING,
        ]

    def test_dates_set_only_on_started_steps(self, fresh):
        assert fresh[0].date == NOW
        assert fresh[1].date == NOW
        assert fresh[2].date is None
        assert fresh[3].date is None

    def test_initial_invariant(self, builder, fresh):
        assert builder.holds_invariant(fresh)
        assert builder.active_stage(fresh) == Stage.ANALYSIS


# ── Advance ───────────────────────────────────────────────────────────────


class TestAdvance:
    def test_replaces_exactly_one_step(self, builder, fresh):
        updated = builder.advance(fresh, Stage.ANALYSIS, StepStatus.COMPLETED, "Approved.", LATER)
        assert updated[1].status == StepStatus.COMPLETED
        assert updated[1].description == "Approved."
        assert updated[1].date == LATER
        for index in (0, 2, 3):
            assert updated[index] == fresh[index]

    def test_input_untouched(self, builder, fresh):
        builder.advance(fresh, Stage.ANALYSIS, StepStatus.ERROR, "Blurry.", LATER)
        assert fresh[1].status == StepStatus.CURRENT
        assert fresh[1].description == "AI-powered initial document verification."

    def test_description_kept_when_none(self, builder, fresh):
        updated = builder.advance(fresh, Stage.ANALYSIS, StepStatus.COMPLETED, date=LATER)
        assert updated[1].description == fresh[1].description

    def test_upcoming_clears_date(self, builder, fresh):
        updated = builder.advance(fresh, Stage.OUTREACH, StepStatus.UPCOMING, "On hold.", LATER)
        assert updated[2].date is None
        assert updated[2].description == "On hold."

    def test_current_refused_while_earlier_unsettled(self, builder, fresh):
        with pytest.raises(TimelineError):
            builder.advance(fresh, Stage.OUTREACH, StepStatus.CURRENT)

    def test_current_allowed_after_error(self, builder, fresh):
        errored = builder.advance(fresh, Stage.ANALYSIS, StepStatus.ERROR, "Override.", NOW)
        updated = builder.advance(errored, Stage.OUTREACH, StepStatus.CURRENT, date=LATER)
        assert updated[2].status == StepStatus.CURRENT
        assert builder.holds_invariant(updated)

    def test_current_refused_when_later_step_started(self, builder, fresh):
        timeline = builder.advance(fresh, Stage.ANALYSIS, StepStatus.COMPLETED, date=NOW)
        timeline = builder.advance(timeline, Stage.OUTREACH, StepStatus.COMPLETED, date=NOW)
        timeline = builder.advance(timeline, Stage.FINAL, StepStatus.CURRENT, date=NOW)
        with pytest.raises(TimelineError):
            builder.advance(timeline, Stage.OUTREACH, StepStatus.CURRENT)

    def test_refused_after_terminal(self, builder, fresh):
        closed = builder.mark_terminal(fresh, "Done.", NOW)
        with pytest.raises(TimelineError):
            builder.advance(closed, Stage.ANALYSIS, StepStatus.COMPLETED)


# ── Terminal ──────────────────────────────────────────────────────────────


class TestMarkTerminal:
    def test_completes_final_step(self, builder, fresh):
        closed = builder.mark_terminal(fresh, "Verified successfully.", LATER)
        assert closed[3].status == StepStatus.COMPLETED
        assert closed[3].description == "Verified successfully."
        assert closed[3].date == LATER
        assert builder.is_terminal(closed)
        assert builder.active_stage(closed) is None

    def test_idempotent(self, builder, fresh):
        closed = builder.mark_terminal(fresh, "First.", NOW)
        again = builder.mark_terminal(closed, "Second.", LATER)
        assert again == closed
        assert again[3].description == "First."


class TestActiveStage:
    def test_error_step_is_active(self, builder, fresh):
        errored = builder.advance(fresh, Stage.ANALYSIS, StepStatus.ERROR, "Low.", NOW)
        assert builder.active_stage(errored) == Stage.ANALYSIS

    def test_final_stage_active(self, builder, fresh):
        timeline = builder.advance(fresh, Stage.ANALYSIS, StepStatus.COMPLETED, date=NOW)
        timeline = builder.advance(timeline, Stage.OUTREACH, StepStatus.COMPLETED, date=NOW)
        timeline = builder.advance(timeline, Stage.FINAL, StepStatus.CURRENT, date=NOW)
        assert builder.active_stage(timeline) == Stage.FINAL


class TestInvariant:
    def test_two_current_steps_detected(self, fresh):
        broken = list(fresh)
        broken[2] = broken[2].model_copy(update={"status": StepStatus.CURRENT})
        assert not TimelineBuilder.holds_invariant(broken)

    def test_started_step_after_current_detected(self, fresh):
        broken = list(fresh)
        broken[3] = broken[3].model_copy(update={"status": StepStatus.COMPLETED})
        assert not TimelineBuilder.holds_invariant(broken)
