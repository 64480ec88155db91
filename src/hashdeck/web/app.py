"""FastAPI application for the hashdeck reviewer."""

from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from hashdeck import __version__
from hashdeck.web.dependencies import ServerState
from hashdeck.web.routes import files_router, review_router


def create_app(state: ServerState) -> FastAPI:
    """Create and configure the FastAPI application for one session."""
    app = FastAPI(
        title="hashdeck",
        description="Spaced repetition drills over markdown flashcards",
        version=__version__,
    )
    app.state.hashdeck = state

    # Static files
    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    # Routes
    app.include_router(review_router, tags=["review"])
    app.include_router(files_router, prefix="/file", tags=["files"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok"}

    return app
