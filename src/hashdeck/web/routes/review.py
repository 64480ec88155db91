"""Review session routes: one page, one form."""

import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from hashdeck.core.markdown import MarkdownRenderConfig, RenderError
from hashdeck.core.media import MediaResolver
from hashdeck.core.metrics import FinishedView, ReviewingView, session_view
from hashdeck.core.models import CardType, PathError
from hashdeck.core.parser import ParseError
from hashdeck.core.render import render_card
from hashdeck.core.scheduler import Grade
from hashdeck.core.session import Action, Edit, End, InvalidAction, Rate, Reveal, Shutdown, Undo
from hashdeck.web.dependencies import ServerState, get_state, get_templates

logger = logging.getLogger(__name__)

router = APIRouter()

TS_FORMAT = "%Y-%m-%d %H:%M:%S"


def _session_context(state: ServerState, view: ReviewingView) -> dict:
    """Template context for a running session. Raises RenderError or PathError."""
    card = view.card
    if card is None:
        return {"card": None, "percent_done": view.percent_done}

    deck_path = card.relative_file_path(state.collection_root)
    config = MarkdownRenderConfig(resolver=MediaResolver(state.collection_root, deck_path))
    fragments = render_card(card, view.reveal, config)
    return {
        "card": card,
        "is_cloze": card.card_type == CardType.CLOZE,
        "fragments": fragments,
        "reveal": view.reveal,
        "percent_done": view.percent_done,
        "undo_disabled": not view.undo_available,
        "grades": [grade.label for grade in state.session.answer_controls.grades],
        "source_text": card.to_source_text(),
        "source_file": deck_path.as_posix(),
        "source_lines": (card.range[0] + 1, card.range[1] + 1),
    }


def _finished_context(view: FinishedView) -> dict:
    return {
        "total_cards": view.total_cards,
        "cards_reviewed": view.cards_reviewed,
        "started_at": view.started_at.strftime(TS_FORMAT),
        "finished_at": view.finished_at.strftime(TS_FORMAT),
        "duration_seconds": view.duration_seconds,
        "pace": f"{view.pace:.2f}",
    }


def _error_page(request: Request, message: str, status_code: int) -> HTMLResponse:
    return get_templates().TemplateResponse(
        request, "error.html", {"message": message}, status_code=status_code
    )


def parse_action(action: str, edit_content: str) -> Action:
    """Map a submitted button value to a session action."""
    if action == "Reveal":
        return Reveal()
    if action == "Undo":
        return Undo()
    if action == "Save":
        return Edit(source_text=edit_content)
    if action == "End":
        return End()
    if action == "Shutdown":
        return Shutdown()
    try:
        return Rate(grade=Grade.from_label(action))
    except ValueError:
        raise InvalidAction(f"Unknown action: {action}") from None


@router.get("/", response_class=HTMLResponse)
async def session_page(request: Request, state: ServerState = Depends(get_state)):
    """Show the current card, or the summary once the session is finished."""
    templates = get_templates()
    with state.lock:
        view = session_view(state.session)
        if isinstance(view, FinishedView):
            return templates.TemplateResponse(request, "finished.html", _finished_context(view))
        try:
            context = _session_context(state, view)
        except (RenderError, PathError) as e:
            logger.warning("Failed to render card: %s", e)
            return _error_page(request, str(e), status_code=500)
        return templates.TemplateResponse(request, "review.html", context)


@router.post("/")
async def submit_action(
    request: Request,
    action: str = Form(...),
    edit_content: str = Form(default=""),
    state: ServerState = Depends(get_state),
):
    """Apply one action to the session and go back to the session page."""
    with state.lock:
        try:
            state.session.apply(parse_action(action, edit_content))
        except (InvalidAction, ParseError) as e:
            logger.info("Rejected %s: %s", action, e)
            return _error_page(request, str(e), status_code=400)
    return RedirectResponse(url="/", status_code=303)
