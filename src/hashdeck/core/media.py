"""Resolution of media references (images) in card markdown."""

from pathlib import Path
from urllib.parse import quote, unquote, urlsplit

from hashdeck.core.markdown import RenderError

# URL prefix under which the web server exposes collection files
FILE_ROUTE = "/file/"


class MediaError(RenderError):
    """Raised when a media reference cannot be resolved."""


def collection_file(collection_root: Path, relative: str) -> Path:
    """Map a collection-relative path to an existing file inside the root.

    Raises MediaError if the path escapes the root or the file does not exist.
    """
    root = collection_root.resolve()
    candidate = (root / relative).resolve()
    try:
        candidate.relative_to(root)
    except ValueError as e:
        raise MediaError(f"Path is outside the collection: {relative}") from e
    if not candidate.is_file():
        raise MediaError(f"Media file not found: {relative}")
    return candidate


class MediaResolver:
    """Resolves media references for the cards of one deck file.

    - URLs with a scheme (``https://...``) are left as they are.
    - ``@/path`` is relative to the collection root.
    - Anything else is relative to the directory of the deck file.
    """

    def __init__(self, collection_root: Path, deck_path: Path):
        """
        Args:
            collection_root: Root directory of the collection
            deck_path: Path of the deck file, relative to the collection root
        """
        self.collection_root = collection_root
        self.deck_path = deck_path

    def resolve(self, reference: str) -> str:
        """Return the URL the browser should load for `reference`."""
        if not reference:
            raise MediaError("Empty media reference")
        if urlsplit(reference).scheme:
            return reference

        path = unquote(reference)
        if path.startswith("@/"):
            relative = path[2:]
        elif path.startswith("/"):
            raise MediaError(f"Absolute media paths are not allowed: {reference}")
        else:
            relative = (self.deck_path.parent / path).as_posix()

        resolved = collection_file(self.collection_root, relative)
        served = resolved.relative_to(self.collection_root.resolve())
        return FILE_ROUTE + quote(served.as_posix())
