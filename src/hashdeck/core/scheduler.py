"""FSRS scheduler wrapper for hashdeck review sessions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum, StrEnum

from fsrs import Card as FSRSCard
from fsrs import Rating, State
from fsrs import Scheduler as FSRSScheduler

from hashdeck.core.models import CardHash, utcnow

logger = logging.getLogger(__name__)


class Grade(IntEnum):
    """Self-assessed recall, numbered like FSRS ratings."""

    FORGOT = 1  # Could not recall
    HARD = 2  # Recalled with significant difficulty
    GOOD = 3  # Recalled with some effort
    EASY = 4  # Recalled effortlessly

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_label(cls, label: str) -> Grade:
        """Parse a button label such as ``"Good"``."""
        try:
            return cls[label.upper()]
        except KeyError:
            raise ValueError(f"Unknown grade: {label}") from None


class AnswerControls(StrEnum):
    """Which grade buttons are offered after revealing a card."""

    FULL = "full"
    BINARY = "binary"

    @property
    def grades(self) -> tuple[Grade, ...]:
        if self is AnswerControls.BINARY:
            return (Grade.FORGOT, Grade.GOOD)
        return (Grade.FORGOT, Grade.HARD, Grade.GOOD, Grade.EASY)


class CardState(StrEnum):
    """Card review state - a StrEnum wrapper around FSRS State."""

    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"

    @classmethod
    def from_fsrs(cls, state: State) -> CardState:
        """Convert from FSRS State enum."""
        mapping = {
            State.Learning: cls.LEARNING,
            State.Review: cls.REVIEW,
            State.Relearning: cls.RELEARNING,
        }
        return mapping.get(state, cls.LEARNING)


@dataclass(frozen=True)
class Retired:
    """The card is done for this session."""


@dataclass(frozen=True)
class RequeueAt:
    """The card goes back into the queue; `position` None means the back."""

    position: int | None = None


Placement = Retired | RequeueAt


@dataclass
class ReviewResult:
    """Result of grading a card."""

    card_hash: CardHash
    grade: Grade
    reviewed_at: datetime
    due_next: datetime
    interval_days: float
    stability: float
    difficulty: float
    state: CardState


class SessionScheduler:
    """Wraps py-fsrs for one review session.

    Results are kept pending in memory so that an undone grade can be
    retracted; `commit` hands them over once the session finishes.
    """

    def __init__(
        self,
        desired_retention: float = 0.9,
        requeue_grades: tuple[Grade, ...] = (Grade.FORGOT, Grade.HARD),
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize scheduler.

        Args:
            desired_retention: Target probability of recall (default 0.9 = 90%)
            requeue_grades: Grades that send a card to the back of the queue
            clock: Source of review timestamps
        """
        self.fsrs = FSRSScheduler(desired_retention=desired_retention)
        self.requeue_grades = requeue_grades
        self.clock = clock
        self._cards: dict[CardHash, FSRSCard] = {}
        self._pending: list[tuple[ReviewResult, FSRSCard | None]] = []

    @property
    def pending(self) -> list[ReviewResult]:
        return [result for result, _ in self._pending]

    def on_grade(self, card_hash: CardHash, grade: Grade) -> Placement:
        """Record a grade and decide where the card goes next."""
        now = self.clock()
        previous = self._cards.get(card_hash)
        reviewed, _review_log = self.fsrs.review_card(
            previous if previous is not None else FSRSCard(), Rating(grade.value), now
        )
        self._cards[card_hash] = reviewed

        interval_days = 0.0
        if reviewed.due and reviewed.last_review:
            interval_days = (reviewed.due - reviewed.last_review).total_seconds() / 86400

        result = ReviewResult(
            card_hash=card_hash,
            grade=grade,
            reviewed_at=now,
            due_next=reviewed.due,
            interval_days=interval_days,
            stability=reviewed.stability or 0.0,
            difficulty=reviewed.difficulty or 0.0,
            state=CardState.from_fsrs(reviewed.state),
        )
        self._pending.append((result, previous))
        logger.debug("Graded %s as %s, due %s", card_hash[:8], grade.label, reviewed.due)

        if grade in self.requeue_grades:
            return RequeueAt()
        return Retired()

    def retract(self, card_hash: CardHash) -> ReviewResult | None:
        """Undo the most recent pending result for `card_hash`."""
        for index in range(len(self._pending) - 1, -1, -1):
            result, previous = self._pending[index]
            if result.card_hash != card_hash:
                continue
            del self._pending[index]
            if previous is None:
                self._cards.pop(card_hash, None)
            else:
                self._cards[card_hash] = previous
            logger.debug("Retracted %s grade for %s", result.grade.label, card_hash[:8])
            return result
        return None

    def commit(self) -> list[ReviewResult]:
        """Hand over and clear all pending results."""
        results = self.pending
        self._pending.clear()
        logger.info("Committed %d review result(s)", len(results))
        return results
