"""Pydantic models for hashdeck cards and their content-addressed identity."""

import hashlib
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Literal, NewType, assert_never

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

CardHash = NewType("CardHash", str)


def utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class PathError(Exception):
    """Raised when a card's file cannot be located relative to the collection root."""


class CardType(StrEnum):
    """Types of cards supported by hashdeck."""

    BASIC = "basic"
    CLOZE = "cloze"


class _Hasher:
    """Order-stable digest builder.

    Strings are length-prefixed and integers are fixed-width little-endian so
    that field boundaries can never shift between two encodings.
    """

    def __init__(self, tag: bytes):
        self._digest = hashlib.blake2b(digest_size=32)
        self._digest.update(tag)

    def update_str(self, value: str) -> None:
        data = value.encode("utf-8")
        self.update_int(len(data))
        self._digest.update(data)

    def update_int(self, value: int) -> None:
        self._digest.update(value.to_bytes(8, "little"))

    def finalize(self) -> CardHash:
        return CardHash(self._digest.hexdigest())


def _is_char_boundary(data: bytes, index: int) -> bool:
    """True if `index` does not fall inside a multi-byte UTF-8 sequence."""
    if index == len(data):
        return True
    return (data[index] & 0xC0) != 0x80


class BasicContent(BaseModel):
    """A question/answer pair."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["basic"] = "basic"
    question: str
    answer: str

    @field_validator("question", "answer")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class ClozeContent(BaseModel):
    """A passage of text with one deleted span.

    `start` and `end` are inclusive byte offsets into the UTF-8 encoding of
    `text`, so `text.encode()[start : end + 1]` is the deleted span.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["cloze"] = "cloze"
    text: str
    start: int
    end: int

    @model_validator(mode="after")
    def _check_offsets(self) -> "ClozeContent":
        data = self.text.encode("utf-8")
        if not 0 <= self.start <= self.end < len(data):
            raise ValueError(
                f"Cloze deletion {self.start}..={self.end} out of bounds for {len(data)} bytes"
            )
        if not (_is_char_boundary(data, self.start) and _is_char_boundary(data, self.end + 1)):
            raise ValueError("Cloze deletion splits a multi-byte character")
        return self

    @property
    def deleted_text(self) -> str:
        return self.text.encode("utf-8")[self.start : self.end + 1].decode("utf-8")


CardContent = Annotated[BasicContent | ClozeContent, Field(discriminator="kind")]


def content_hash(content: BasicContent | ClozeContent) -> CardHash:
    """Compute the content-addressed identity of a card's content."""
    if isinstance(content, BasicContent):
        hasher = _Hasher(b"Basic")
        hasher.update_str(content.question)
        hasher.update_str(content.answer)
    elif isinstance(content, ClozeContent):
        hasher = _Hasher(b"Cloze")
        hasher.update_str(content.text)
        hasher.update_int(content.start)
        hasher.update_int(content.end)
    else:
        assert_never(content)
    return hasher.finalize()


def family_hash(content: BasicContent | ClozeContent) -> CardHash | None:
    """All cloze cards derived from the same text share a family hash.

    Basic cards have no family.
    """
    if isinstance(content, BasicContent):
        return None
    elif isinstance(content, ClozeContent):
        hasher = _Hasher(b"Cloze")
        hasher.update_str(content.text)
        return hasher.finalize()
    else:
        assert_never(content)


def to_source_text(content: BasicContent | ClozeContent) -> str:
    """Reconstruct the markdown source a card was parsed from.

    Basic cards become `Q: {question}\\nA: {answer}`, cloze cards become
    `C: {text}` with the deletion wrapped in brackets.
    """
    if isinstance(content, BasicContent):
        return f"Q: {content.question}\nA: {content.answer}"
    elif isinstance(content, ClozeContent):
        data = bytearray(content.text.encode("utf-8"))
        # Higher offset first so `start` still points at the same byte.
        data.insert(content.end + 1, ord("]"))
        data.insert(content.start, ord("["))
        return f"C: {data.decode('utf-8')}"
    else:
        assert_never(content)


class Card(BaseModel):
    """One reviewable unit, located in a deck file."""

    model_config = ConfigDict(frozen=True)

    deck_name: str
    file_path: Path
    range: tuple[int, int]
    content: CardContent

    _hash: CardHash = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._hash = content_hash(self.content)

    @property
    def hash(self) -> CardHash:
        return self._hash

    @property
    def family_hash(self) -> CardHash | None:
        return family_hash(self.content)

    @property
    def card_type(self) -> CardType:
        if isinstance(self.content, BasicContent):
            return CardType.BASIC
        elif isinstance(self.content, ClozeContent):
            return CardType.CLOZE
        else:
            assert_never(self.content)

    def to_source_text(self) -> str:
        return to_source_text(self.content)

    def with_range(self, range: tuple[int, int]) -> "Card":
        """Return the same card located at a different line range."""
        return Card(
            deck_name=self.deck_name,
            file_path=self.file_path,
            range=range,
            content=self.content,
        )

    def relative_file_path(self, collection_root: Path) -> Path:
        """Return the card's file path relative to the collection root.

        e.g. with root `/foo/bar/` and file `/foo/bar/baz/deck.md` this is
        `baz/deck.md`.
        """
        try:
            canon_root = collection_root.resolve(strict=True)
            canon_file = self.file_path.resolve(strict=True)
        except OSError as e:
            raise PathError(f"Cannot resolve path: {e}") from e
        try:
            return canon_file.relative_to(canon_root)
        except ValueError as e:
            raise PathError(f"{canon_file} is outside the collection root {canon_root}") from e
