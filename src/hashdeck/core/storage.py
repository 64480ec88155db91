"""Storage layer for cards: markdown deck files under a collection directory."""

import logging
from pathlib import Path

from hashdeck.core.models import Card
from hashdeck.core.parser import parse_card, parse_deck

logger = logging.getLogger(__name__)

DECK_SUFFIX = ".md"


class CollectionStorage:
    """Reads cards from, and writes edited cards back to, a collection of deck files."""

    def __init__(self, root: Path):
        self.root = root.resolve()

    def deck_files(self) -> list[Path]:
        """All deck files in the collection, skipping hidden directories."""
        paths = []
        for path in self.root.rglob(f"*{DECK_SUFFIX}"):
            relative = path.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if path.is_file():
                paths.append(path)
        return sorted(paths)

    def deck_name(self, path: Path) -> str:
        """Deck name for a file: its collection-relative path without suffix."""
        return path.relative_to(self.root).with_suffix("").as_posix()

    def load_deck(self, path: Path) -> list[Card]:
        """Parse every card in one deck file."""
        text = path.read_text(encoding="utf-8")
        return parse_deck(text, self.deck_name(path), path)

    def load_cards(self) -> list[Card]:
        """Load every card in the collection, dropping duplicates by hash.

        Raises:
            ParseError: If any deck file is malformed
        """
        cards: list[Card] = []
        seen: set[str] = set()
        for path in self.deck_files():
            for card in self.load_deck(path):
                if card.hash in seen:
                    logger.debug("Skipping duplicate card %s in %s", card.hash[:8], path)
                    continue
                seen.add(card.hash)
                cards.append(card)
        logger.info("Loaded %d cards from %s", len(cards), self.root)
        return cards

    def replace_card(self, card: Card, source_text: str) -> Card:
        """Replace a card's lines in its deck file with new source text.

        The text is parsed before the file is touched, so a ParseError leaves
        the file unchanged. Returns the card parsed from the new text, located
        at its new line range.
        """
        start, end = card.range
        source_text = source_text.strip("\r\n")
        new_card = parse_card(source_text, card.deck_name, card.file_path, start_line=start)

        text = card.file_path.read_text(encoding="utf-8")
        lines = text.splitlines()
        new_lines = source_text.splitlines()
        lines[start : end + 1] = new_lines
        trailing = "\n" if text.endswith("\n") else ""
        card.file_path.write_text("\n".join(lines) + trailing, encoding="utf-8")

        logger.info(
            "Rewrote %s lines %d-%d (card %s -> %s)",
            card.file_path,
            start + 1,
            end + 1,
            card.hash[:8],
            new_card.hash[:8],
        )
        return new_card
