"""Unit tests for stage transition rules and progress math."""

import pytest

from src.kernel.models.application import TOTAL_STAGES, progress_for
from src.kernel.models.submission import SubmissionStatus
from src.orchestration.errors import InvalidVerdict
from src.orchestration.state_machine import next_transition


class TestProgressFor:
    @pytest.mark.parametrize(
        "stage,expected",
        [(1, 13), (2, 25), (3, 38), (4, 50), (5, 63), (6, 75), (7, 88), (8, 100)],
    )
    def test_rounds_half_up(self, stage, expected):
        assert progress_for(stage) == expected

    def test_completed_is_always_100(self):
        assert progress_for(5, completed=True) == 100

    @pytest.mark.parametrize("stage", [0, 9, -1])
    def test_out_of_range(self, stage):
        with pytest.raises(ValueError):
            progress_for(stage)


class TestNextTransition:
    def test_accepted_below_last_stage_advances(self):
        t = next_transition(3, False, SubmissionStatus.ACCEPTED)
        assert t.advanced and not t.completes
        assert t.to_stage == 4
        assert t.counts_task

    def test_accepted_at_last_stage_completes(self):
        t = next_transition(TOTAL_STAGES, False, SubmissionStatus.ACCEPTED)
        assert t.completes
        assert t.to_stage == TOTAL_STAGES
        assert t.counts_task

    @pytest.mark.parametrize(
        "verdict",
        [SubmissionStatus.NEEDS_REVISION, SubmissionStatus.REJECTED, SubmissionStatus.PENDING],
    )
    def test_other_verdicts_do_not_move(self, verdict):
        t = next_transition(5, False, verdict)
        assert not t.changed
        assert not t.counts_task
        assert t.to_stage == 5

    def test_completed_application_never_moves(self):
        t = next_transition(TOTAL_STAGES, True, SubmissionStatus.ACCEPTED)
        assert not t.changed
        assert not t.counts_task

    def test_accepts_raw_status_strings(self):
        assert next_transition(1, False, "Accepted").advanced

    def test_stage_out_of_range(self):
        with pytest.raises(InvalidVerdict):
            next_transition(9, False, SubmissionStatus.ACCEPTED)
