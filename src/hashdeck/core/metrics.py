"""Progress and session statistics derived from review session state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from hashdeck.core.models import Card

if TYPE_CHECKING:
    from hashdeck.core.session import ReviewSession, SessionPhase


def cards_done(total_cards: int, remaining: int) -> int:
    return total_cards - remaining


def percent_done(total_cards: int, remaining: int) -> int:
    """Whole-number percentage of the session completed.

    An empty session counts as complete.
    """
    if total_cards == 0:
        return 100
    return (cards_done(total_cards, remaining) * 100) // total_cards


def duration_seconds(started_at: datetime, finished_at: datetime) -> int:
    return int((finished_at - started_at).total_seconds())


def pace(duration_s: int, done: int) -> float:
    """Average seconds per card; 0.0 when no card was done."""
    if done == 0:
        return 0.0
    return duration_s / done


@dataclass(frozen=True)
class ReviewingView:
    """What the reviewer sees while the session is running."""

    phase: SessionPhase
    card: Card | None
    reveal: bool
    percent_done: int
    undo_available: bool


@dataclass(frozen=True)
class FinishedView:
    """Summary shown once the session is over."""

    phase: SessionPhase
    total_cards: int
    cards_reviewed: int
    started_at: datetime
    finished_at: datetime
    duration_seconds: int
    pace: float


def session_view(session: ReviewSession) -> ReviewingView | FinishedView:
    """Read view of a session, recomputed on every call."""
    remaining = len(session.cards)
    if session.finished_at is None:
        return ReviewingView(
            phase=session.phase,
            card=session.current_card,
            reveal=session.reveal,
            percent_done=percent_done(session.total_cards, remaining),
            undo_available=bool(session.reviews),
        )

    done = cards_done(session.total_cards, remaining)
    duration = duration_seconds(session.session_started_at, session.finished_at)
    return FinishedView(
        phase=session.phase,
        total_cards=session.total_cards,
        cards_reviewed=done,
        started_at=session.session_started_at,
        finished_at=session.finished_at,
        duration_seconds=duration,
        pace=pace(duration, done),
    )
