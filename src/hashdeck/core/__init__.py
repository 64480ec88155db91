"""Core library for hashdeck."""

from hashdeck.core.markdown import MarkdownRenderConfig, RenderError
from hashdeck.core.media import MediaError, MediaResolver
from hashdeck.core.metrics import FinishedView, ReviewingView, percent_done, session_view
from hashdeck.core.models import (
    BasicContent,
    Card,
    CardHash,
    CardType,
    ClozeContent,
    PathError,
    content_hash,
    family_hash,
    to_source_text,
)
from hashdeck.core.parser import ParseError, parse_card, parse_deck
from hashdeck.core.queue import QueueBuilder
from hashdeck.core.render import CardFragments, render_card
from hashdeck.core.scheduler import AnswerControls, Grade, SessionScheduler
from hashdeck.core.session import (
    Edit,
    End,
    InvalidAction,
    Rate,
    Reveal,
    ReviewSession,
    SessionPhase,
    Shutdown,
    Undo,
)
from hashdeck.core.storage import CollectionStorage

__all__ = [
    # Models
    "BasicContent",
    "Card",
    "CardHash",
    "CardType",
    "ClozeContent",
    "PathError",
    "content_hash",
    "family_hash",
    "to_source_text",
    # Parsing and storage
    "CollectionStorage",
    "ParseError",
    "parse_card",
    "parse_deck",
    # Rendering
    "CardFragments",
    "MarkdownRenderConfig",
    "MediaError",
    "MediaResolver",
    "RenderError",
    "render_card",
    # Scheduling and sessions
    "AnswerControls",
    "Grade",
    "QueueBuilder",
    "SessionScheduler",
    "Edit",
    "End",
    "InvalidAction",
    "Rate",
    "Reveal",
    "ReviewSession",
    "SessionPhase",
    "Shutdown",
    "Undo",
    # Metrics
    "FinishedView",
    "ReviewingView",
    "percent_done",
    "session_view",
]
