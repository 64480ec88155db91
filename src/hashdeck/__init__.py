"""Spaced repetition drills over markdown flashcard collections."""

__version__ = "0.1.0"
