"""Markdown to HTML rendering for card content."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import TYPE_CHECKING

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.dollarmath import dollarmath_plugin

from hashdeck.core.katex import render_math

if TYPE_CHECKING:
    from hashdeck.core.media import MediaResolver


class RenderError(Exception):
    """Raised when card markdown cannot be rendered."""


@dataclass(frozen=True)
class MarkdownRenderConfig:
    """Per-card rendering settings."""

    resolver: MediaResolver


@functools.cache
def _parser() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"html": False}).enable(["table", "strikethrough"])
    md.use(dollarmath_plugin, renderer=render_math, double_inline=True)
    return md


def _resolve_media(tokens: list[Token], config: MarkdownRenderConfig) -> None:
    """Rewrite image sources in place to URLs the server can serve."""
    for token in tokens:
        if token.children:
            _resolve_media(token.children, config)
        if token.type == "image":
            src = token.attrGet("src")
            token.attrSet("src", config.resolver.resolve(str(src or "")))


def _render(tokens: list[Token], config: MarkdownRenderConfig, env: dict) -> str:
    md = _parser()
    _resolve_media(tokens, config)
    return md.renderer.render(tokens, md.options, env)


def markdown_to_html(config: MarkdownRenderConfig, text: str) -> str:
    """Render a markdown document to HTML."""
    env: dict = {}
    try:
        tokens = _parser().parse(text, env)
    except Exception as e:
        raise RenderError(f"Failed to parse markdown: {e}") from e
    return _render(tokens, config, env)


def markdown_to_html_inline(config: MarkdownRenderConfig, text: str) -> str:
    """Render markdown as inline content only (no paragraphs, lists or headings)."""
    env: dict = {}
    try:
        tokens = _parser().parseInline(text, env)
    except Exception as e:
        raise RenderError(f"Failed to parse markdown: {e}") from e
    return _render(tokens, config, env)
