"""Tests for the FSRS session scheduler."""

from datetime import UTC, datetime

import pytest
from fsrs import State

from hashdeck.core.models import CardHash
from hashdeck.core.scheduler import (
    AnswerControls,
    CardState,
    Grade,
    RequeueAt,
    Retired,
    ReviewResult,
    SessionScheduler,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
HASH_A = CardHash("a" * 64)
HASH_B = CardHash("b" * 64)


@pytest.fixture
def scheduler():
    """Create a SessionScheduler with a fixed clock."""
    return SessionScheduler(clock=lambda: NOW)


class TestGrade:
    """Tests for Grade enum."""

    def test_grade_values(self):
        """Grades line up with FSRS ratings."""
        assert Grade.FORGOT == 1
        assert Grade.HARD == 2
        assert Grade.GOOD == 3
        assert Grade.EASY == 4

    def test_labels(self):
        assert Grade.FORGOT.label == "Forgot"
        assert Grade.from_label("Easy") == Grade.EASY

    def test_unknown_label(self):
        with pytest.raises(ValueError, match="Unknown grade"):
            Grade.from_label("Again")


class TestAnswerControls:
    """Tests for AnswerControls."""

    def test_full(self):
        assert AnswerControls.FULL.grades == (Grade.FORGOT, Grade.HARD, Grade.GOOD, Grade.EASY)

    def test_binary(self):
        assert AnswerControls.BINARY.grades == (Grade.FORGOT, Grade.GOOD)

    def test_from_string(self):
        assert AnswerControls("binary") is AnswerControls.BINARY


class TestCardState:
    """Tests for CardState StrEnum."""

    def test_from_fsrs(self):
        assert CardState.from_fsrs(State.Learning) == CardState.LEARNING
        assert CardState.from_fsrs(State.Review) == CardState.REVIEW
        assert CardState.from_fsrs(State.Relearning) == CardState.RELEARNING


class TestSessionScheduler:
    """Tests for SessionScheduler."""

    @pytest.mark.parametrize("grade", [Grade.FORGOT, Grade.HARD])
    def test_requeue_grades(self, scheduler, grade):
        assert scheduler.on_grade(HASH_A, grade) == RequeueAt()

    @pytest.mark.parametrize("grade", [Grade.GOOD, Grade.EASY])
    def test_retire_grades(self, scheduler, grade):
        assert scheduler.on_grade(HASH_A, grade) == Retired()

    def test_custom_requeue_grades(self):
        scheduler = SessionScheduler(requeue_grades=(Grade.FORGOT,), clock=lambda: NOW)
        assert scheduler.on_grade(HASH_A, Grade.HARD) == Retired()

    def test_result_is_pending(self, scheduler):
        scheduler.on_grade(HASH_A, Grade.GOOD)
        (result,) = scheduler.pending
        assert isinstance(result, ReviewResult)
        assert result.card_hash == HASH_A
        assert result.grade == Grade.GOOD
        assert result.reviewed_at == NOW
        assert result.due_next > NOW
        assert result.stability > 0

    def test_retract_latest_for_hash(self, scheduler):
        scheduler.on_grade(HASH_A, Grade.FORGOT)
        scheduler.on_grade(HASH_B, Grade.GOOD)
        scheduler.on_grade(HASH_A, Grade.GOOD)

        retracted = scheduler.retract(HASH_A)
        assert retracted.grade == Grade.GOOD
        assert [(r.card_hash, r.grade) for r in scheduler.pending] == [
            (HASH_A, Grade.FORGOT),
            (HASH_B, Grade.GOOD),
        ]

    def test_retract_restores_memory_state(self, scheduler):
        scheduler.on_grade(HASH_A, Grade.GOOD)
        first = scheduler.pending[-1]
        scheduler.retract(HASH_A)
        scheduler.on_grade(HASH_A, Grade.GOOD)
        again = scheduler.pending[-1]
        assert again.stability == first.stability
        assert again.difficulty == first.difficulty

    def test_retract_unknown(self, scheduler):
        assert scheduler.retract(HASH_A) is None

    def test_commit(self, scheduler):
        scheduler.on_grade(HASH_A, Grade.GOOD)
        scheduler.on_grade(HASH_B, Grade.EASY)
        committed = scheduler.commit()
        assert [r.card_hash for r in committed] == [HASH_A, HASH_B]
        assert scheduler.pending == []
        assert scheduler.commit() == []
