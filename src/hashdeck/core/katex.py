"""KaTeX server-side rendering utilities.

Math in card markdown is rendered with the KaTeX CLI when it is installed.
Without it, the LaTeX source is emitted in a placeholder span that the review
page renders client-side with KaTeX.
"""

import functools
import html
import logging
import subprocess

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1000)
def render_latex(latex: str, display_mode: bool = False) -> str:
    """Render one formula to HTML with the KaTeX CLI.

    Falls back to `math_placeholder` when the CLI is missing, too slow or
    rejects the input.
    """
    cmd = ["katex", "--display-mode"] if display_mode else ["katex"]
    try:
        result = subprocess.run(cmd, input=latex, capture_output=True, text=True, timeout=5)
    except FileNotFoundError:
        return math_placeholder(latex, display_mode)
    except subprocess.TimeoutExpired:
        logger.warning("katex timed out rendering %r", latex)
        return math_placeholder(latex, display_mode)

    if result.returncode != 0:
        logger.debug("katex failed on %r: %s", latex, result.stderr[:100])
        return math_placeholder(latex, display_mode)
    return result.stdout.strip()


def math_placeholder(latex: str, display_mode: bool = False) -> str:
    """Span picked up by the client-side KaTeX script."""
    escaped = html.escape(latex)
    if display_mode:
        return f'<span class="math-display">{escaped}</span>'
    return f'<span class="math-inline">{escaped}</span>'


def render_math(latex: str, options: dict) -> str:
    """Math renderer hook for the markdown-it dollarmath plugin."""
    return render_latex(latex, display_mode=bool(options.get("display_mode")))
