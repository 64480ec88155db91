"""Review session state machine."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from hashdeck.core.models import Card, CardHash, utcnow
from hashdeck.core.parser import parse_card
from hashdeck.core.scheduler import (
    AnswerControls,
    Grade,
    RequeueAt,
    Retired,
    ReviewResult,
    SessionScheduler,
)

logger = logging.getLogger(__name__)


class SessionPhase(StrEnum):
    """Review session states."""

    REVIEWING = "reviewing"
    FINISHED = "finished"


class InvalidAction(Exception):
    """Raised when an action is not valid in the session's current state."""


@dataclass(frozen=True)
class Reveal:
    """Show the answer of the current card."""


@dataclass(frozen=True)
class Rate:
    """Grade the current (revealed) card."""

    grade: Grade


@dataclass(frozen=True)
class Undo:
    """Revert the most recent grade."""


@dataclass(frozen=True)
class Edit:
    """Replace the current card with one parsed from new source text."""

    source_text: str


@dataclass(frozen=True)
class End:
    """Finish the session early."""


@dataclass(frozen=True)
class Shutdown:
    """Stop the reviewer once the session is finished."""


Action = Reveal | Rate | Undo | Edit | End | Shutdown


@dataclass(frozen=True)
class ReviewEvent:
    """A grading action, with the queue as it was before, for undo.

    `card` follows later edits; `graded_hash` stays the identity the scheduler
    recorded the grade under.
    """

    card: Card
    grade: Grade
    queue_before: tuple[Card, ...]
    reviewed_at: datetime
    graded_hash: CardHash


def reparse(card: Card, source_text: str) -> Card:
    """Default editor: parse the new text in place of `card`, without touching files."""
    return parse_card(source_text, card.deck_name, card.file_path, start_line=card.range[0])


class ReviewSession:
    """Mutable state of one review session.

    The front of `cards` is the card being shown. Each grade is logged in
    `reviews` together with a snapshot of the whole queue, which is what undo
    restores; memory grows with session length.
    """

    def __init__(
        self,
        cards: list[Card],
        scheduler: SessionScheduler | None = None,
        *,
        answer_controls: AnswerControls = AnswerControls.FULL,
        editor: Callable[[Card, str], Card] = reparse,
        on_shutdown: Callable[[], None] | None = None,
        auto_finish: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Start a session.

        Args:
            cards: Initial queue, front first
            scheduler: Decides whether graded cards are retired or requeued
            answer_controls: Which grades are accepted
            editor: Turns the current card and new source text into a new card
            on_shutdown: Called when a finished session receives Shutdown
            auto_finish: Finish as soon as the queue runs empty
            clock: Source of timestamps
        """
        self.clock = clock
        self.scheduler = scheduler or SessionScheduler(clock=clock)
        self.answer_controls = answer_controls
        self.editor = editor
        self.on_shutdown = on_shutdown
        self.auto_finish = auto_finish

        self.cards: list[Card] = list(cards)
        self.total_cards = len(self.cards)
        self.reveal = False
        self.reviews: list[ReviewEvent] = []
        self.session_started_at = clock()
        self.finished_at: datetime | None = None
        self.committed: list[ReviewResult] = []

        if not self.cards and self.auto_finish:
            self.finish()

    @property
    def phase(self) -> SessionPhase:
        if self.finished_at is not None:
            return SessionPhase.FINISHED
        return SessionPhase.REVIEWING

    @property
    def current_card(self) -> Card | None:
        if self.phase is SessionPhase.FINISHED or not self.cards:
            return None
        return self.cards[0]

    @property
    def retired_count(self) -> int:
        return self.total_cards - len(self.cards)

    def apply(self, action: Action) -> None:
        """Apply one action; raises InvalidAction without changing state if not allowed."""
        if isinstance(action, Reveal):
            self.reveal_answer()
        elif isinstance(action, Rate):
            self.rate(action.grade)
        elif isinstance(action, Undo):
            self.undo()
        elif isinstance(action, Edit):
            self.edit(action.source_text)
        elif isinstance(action, End):
            self.end()
        elif isinstance(action, Shutdown):
            self.shutdown()
        else:
            raise InvalidAction(f"Unknown action: {action!r}")

    def _require_reviewing(self, action: str) -> None:
        if self.phase is not SessionPhase.REVIEWING:
            raise InvalidAction(f"Cannot {action}: the session is finished")

    def reveal_answer(self) -> None:
        self._require_reviewing("reveal")
        if not self.cards:
            raise InvalidAction("Cannot reveal: no cards left")
        if self.reveal:
            raise InvalidAction("Cannot reveal: the answer is already shown")
        self.reveal = True

    def rate(self, grade: Grade) -> None:
        self._require_reviewing("grade")
        if not self.reveal:
            raise InvalidAction("Cannot grade a card before revealing it")
        if grade not in self.answer_controls.grades:
            raise InvalidAction(
                f"Grade {grade.label} is not available with {self.answer_controls} controls"
            )

        card = self.cards[0]
        placement = self.scheduler.on_grade(card.hash, grade)
        queue_before = tuple(self.cards)

        self.cards.pop(0)
        if isinstance(placement, RequeueAt):
            position = len(self.cards) if placement.position is None else placement.position
            self.cards.insert(max(0, min(position, len(self.cards))), card)
        elif not isinstance(placement, Retired):
            raise TypeError(f"Unknown placement: {placement!r}")

        self.reviews.append(
            ReviewEvent(
                card=card,
                grade=grade,
                queue_before=queue_before,
                reviewed_at=self.clock(),
                graded_hash=card.hash,
            )
        )
        self.reveal = False
        logger.debug("Graded %s as %s, %d card(s) left", card.hash[:8], grade.label, len(self.cards))

        if not self.cards and self.auto_finish:
            self.finish()

    def undo(self) -> None:
        self._require_reviewing("undo")
        if not self.reviews:
            raise InvalidAction("Nothing to undo")
        event = self.reviews.pop()
        self.cards = list(event.queue_before)
        self.reveal = False
        self.scheduler.retract(event.graded_hash)
        logger.debug("Undid %s grade for %s", event.grade.label, event.card.hash[:8])

    def edit(self, source_text: str) -> Card:
        """Replace the current card; returns the new card.

        The new card has a new identity, so its review history starts over.
        Raises ParseError (from the editor) with the session unchanged.
        """
        self._require_reviewing("edit")
        if not self.cards:
            raise InvalidAction("Cannot edit: no cards left")
        old = self.cards[0]
        new = self.editor(old, source_text)
        self._replace_card(old, new)
        self.reveal = False
        logger.info("Edited card %s -> %s", old.hash[:8], new.hash[:8])
        return new

    def _replace_card(self, old: Card, new: Card) -> None:
        """Swap `old` for `new` everywhere, including undo snapshots.

        Cloze siblings share the edited lines and take the new range; cards
        later in the same file move by the change in line count.
        """
        delta = (new.range[1] - new.range[0]) - (old.range[1] - old.range[0])

        def relocate(card: Card) -> Card:
            if card == old:
                return new
            if card.file_path != old.file_path:
                return card
            if card.range[0] == old.range[0]:
                return card.with_range(new.range)
            if delta and card.range[0] > old.range[1]:
                return card.with_range((card.range[0] + delta, card.range[1] + delta))
            return card

        self.cards = [relocate(card) for card in self.cards]
        self.reviews = [
            dataclasses.replace(
                event,
                card=relocate(event.card),
                queue_before=tuple(relocate(card) for card in event.queue_before),
            )
            for event in self.reviews
        ]

    def end(self) -> None:
        self._require_reviewing("end")
        self.finish()

    def finish(self) -> None:
        """Enter the terminal state and commit the scheduler's pending results."""
        if self.finished_at is not None:
            return
        self.finished_at = self.clock()
        self.reveal = False
        self.committed = self.scheduler.commit()
        logger.info(
            "Session finished: %d of %d card(s) done",
            self.retired_count,
            self.total_cards,
        )

    def shutdown(self) -> None:
        if self.phase is not SessionPhase.FINISHED:
            raise InvalidAction("Cannot shut down before the session is finished")
        if self.on_shutdown is not None:
            self.on_shutdown()
