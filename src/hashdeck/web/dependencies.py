"""Dependency injection for FastAPI routes."""

import threading
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from hashdeck.core.session import ReviewSession


@dataclass
class ServerState:
    """Everything the routes share for one review session.

    `lock` must be held for the whole of any read-and-render or
    apply-and-respond step.
    """

    session: ReviewSession
    collection_root: Path
    lock: threading.Lock = field(default_factory=threading.Lock)


def get_state(request: Request) -> ServerState:
    """Get the server state installed by create_app."""
    return request.app.state.hashdeck


@lru_cache
def get_templates() -> Jinja2Templates:
    """Get the Jinja2 templates instance."""
    templates_dir = Path(__file__).parent / "templates"
    return Jinja2Templates(directory=str(templates_dir))
