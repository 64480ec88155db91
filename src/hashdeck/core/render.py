"""Card-level HTML rendering on top of the markdown renderer."""

from dataclasses import dataclass
from typing import assert_never

from hashdeck.core.markdown import (
    MarkdownRenderConfig,
    RenderError,
    markdown_to_html,
    markdown_to_html_inline,
)
from hashdeck.core.models import BasicContent, Card, ClozeContent

# Stands in for the deleted span while the surrounding text is rendered, so
# markdown spanning the deletion (emphasis, links) keeps its structure.
CLOZE_SENTINEL = "CLOZEDELETION"
CLOZE_BLANK = "<span class='cloze'>.............</span>"


@dataclass(frozen=True)
class CardFragments:
    """HTML for the visible parts of a card.

    Cloze cards only ever have a front fragment; when revealed it contains the
    deleted text in place.
    """

    front: str
    back: str = ""


def _render_with_sentinel(content: ClozeContent, config: MarkdownRenderConfig) -> str:
    data = content.text.encode("utf-8")
    masked = data[: content.start] + CLOZE_SENTINEL.encode("ascii") + data[content.end + 1 :]
    html = markdown_to_html(config, masked.decode("utf-8"))
    if html.count(CLOZE_SENTINEL) != 1:
        raise RenderError("Cloze deletion marker did not survive markdown rendering")
    return html


def html_front(content: BasicContent | ClozeContent, config: MarkdownRenderConfig) -> str:
    if isinstance(content, BasicContent):
        return markdown_to_html(config, content.question)
    elif isinstance(content, ClozeContent):
        return _render_with_sentinel(content, config).replace(CLOZE_SENTINEL, CLOZE_BLANK)
    else:
        assert_never(content)


def html_back(content: BasicContent | ClozeContent, config: MarkdownRenderConfig) -> str:
    if isinstance(content, BasicContent):
        return markdown_to_html(config, content.answer)
    elif isinstance(content, ClozeContent):
        deleted = markdown_to_html_inline(config, content.deleted_text)
        html = _render_with_sentinel(content, config)
        return html.replace(CLOZE_SENTINEL, f"<span class='cloze-reveal'>{deleted}</span>")
    else:
        assert_never(content)


def render_card(card: Card, reveal: bool, config: MarkdownRenderConfig) -> CardFragments:
    """Render the fragments of `card` that are visible in the given reveal state.

    Raises RenderError if any fragment fails; nothing is returned partially.
    """
    content = card.content
    if isinstance(content, BasicContent):
        front = html_front(content, config)
        back = html_back(content, config) if reveal else ""
        return CardFragments(front=front, back=back)
    elif isinstance(content, ClozeContent):
        if reveal:
            return CardFragments(front=html_back(content, config))
        return CardFragments(front=html_front(content, config))
    else:
        assert_never(content)
