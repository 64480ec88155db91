"""Web routes for hashdeck."""

from hashdeck.web.routes.files import router as files_router
from hashdeck.web.routes.review import router as review_router

__all__ = ["files_router", "review_router"]
