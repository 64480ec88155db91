"""Parser for markdown deck files.

A deck file is markdown with cards introduced by line prefixes::

    Q: What is the capital of France?
    A: Paris.

    C: The capital of [France] is [Paris].

A card runs from its ``Q:`` or ``C:`` line up to the next card (trailing blank
lines excluded). Each bracketed span of a cloze card is one deletion and yields
one card; image syntax (``![alt](src)``) is not a deletion. Text before the
first card is ignored.
"""

from pathlib import Path

from pydantic import ValidationError

from hashdeck.core.models import BasicContent, Card, ClozeContent

QUESTION_PREFIX = "Q:"
ANSWER_PREFIX = "A:"
CLOZE_PREFIX = "C:"


class ParseError(Exception):
    """Raised when deck text is not well-formed."""

    def __init__(self, message: str, file_path: Path | None = None, line: int | None = None):
        self.message = message
        self.file_path = file_path
        self.line = line
        location = ""
        if file_path is not None:
            location = f"{file_path}:"
            if line is not None:
                location += f"{line + 1}:"
            location += " "
        super().__init__(f"{location}{message}")


def _split_blocks(lines: list[str], file_path: Path) -> list[tuple[int, list[str]]]:
    """Group lines into (first line number, lines) card blocks."""
    blocks: list[tuple[int, list[str]]] = []
    for number, line in enumerate(lines):
        if line.startswith(QUESTION_PREFIX) or line.startswith(CLOZE_PREFIX):
            blocks.append((number, [line]))
        elif blocks:
            blocks[-1][1].append(line)
        elif line.startswith(ANSWER_PREFIX):
            raise ParseError("Found answer without a question", file_path, number)

    trimmed = []
    for first, block in blocks:
        while block and not block[-1].strip():
            block.pop()
        trimmed.append((first, block))
    return trimmed


def _parse_basic(block: list[str], file_path: Path, first: int) -> BasicContent:
    answer_at = next(
        (i for i, line in enumerate(block) if i > 0 and line.startswith(ANSWER_PREFIX)),
        None,
    )
    if answer_at is None:
        raise ParseError("Question without an answer", file_path, first)
    question = "\n".join([block[0][len(QUESTION_PREFIX) :], *block[1:answer_at]])
    answer = "\n".join([block[answer_at][len(ANSWER_PREFIX) :], *block[answer_at + 1 :]])
    if not question.strip():
        raise ParseError("Empty question", file_path, first)
    if not answer.strip():
        raise ParseError("Empty answer", file_path, first + answer_at)
    return BasicContent(question=question, answer=answer)


def parse_cloze_text(
    text: str, file_path: Path | None = None, line: int | None = None
) -> tuple[str, list[tuple[int, int]]]:
    """Strip deletion brackets from `text`.

    Returns the clean text and the inclusive byte ranges of every deletion.
    """
    clean = bytearray()
    deletions: list[tuple[int, int]] = []
    start: int | None = None
    i = 0
    while i < len(text):
        if text.startswith("![", i):
            close = text.find("]", i + 2)
            if close == -1:
                raise ParseError("Unclosed image reference", file_path, line)
            clean += text[i : close + 1].encode("utf-8")
            i = close + 1
            continue
        char = text[i]
        if char == "[":
            if start is not None:
                raise ParseError("Nested cloze deletion", file_path, line)
            start = len(clean)
        elif char == "]":
            if start is None:
                raise ParseError("Closing bracket without an opening bracket", file_path, line)
            if len(clean) == start:
                raise ParseError("Empty cloze deletion", file_path, line)
            deletions.append((start, len(clean) - 1))
            start = None
        else:
            clean += char.encode("utf-8")
        i += 1

    if start is not None:
        raise ParseError("Unclosed cloze deletion", file_path, line)
    if not deletions:
        raise ParseError("Cloze card without any deletion", file_path, line)
    return clean.decode("utf-8"), deletions


def _parse_cloze(block: list[str], file_path: Path, first: int) -> list[ClozeContent]:
    raw = "\n".join([block[0][len(CLOZE_PREFIX) :], *block[1:]]).strip()
    text, deletions = parse_cloze_text(raw, file_path, first)
    return [ClozeContent(text=text, start=start, end=end) for start, end in deletions]


def parse_deck(
    text: str,
    deck_name: str,
    file_path: Path,
    line_offset: int = 0,
) -> list[Card]:
    """Parse every card in a deck file's text.

    Args:
        text: Contents of the deck file
        deck_name: Name recorded on every card
        file_path: Absolute path of the deck file
        line_offset: Line number of the first line of `text` within the file

    Raises:
        ParseError: If the text is not well-formed
    """
    cards: list[Card] = []
    for first, block in _split_blocks(text.splitlines(), file_path):
        line_range = (first + line_offset, first + line_offset + len(block) - 1)
        try:
            if block[0].startswith(QUESTION_PREFIX):
                contents = [_parse_basic(block, file_path, first + line_offset)]
            else:
                contents = _parse_cloze(block, file_path, first + line_offset)
        except ValidationError as e:
            raise ParseError(str(e), file_path, first + line_offset) from e
        cards.extend(
            Card(deck_name=deck_name, file_path=file_path, range=line_range, content=content)
            for content in contents
        )
    return cards


def parse_card(source_text: str, deck_name: str, file_path: Path, start_line: int = 0) -> Card:
    """Parse text that must contain exactly one card (e.g. an edited card)."""
    cards = parse_deck(source_text, deck_name, file_path, line_offset=start_line)
    if len(cards) != 1:
        raise ParseError(f"Expected exactly one card, found {len(cards)}", file_path, start_line)
    return cards[0]
