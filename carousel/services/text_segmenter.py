"""
Text Segmenter - splits raw carousel text into one content unit per slide.

Paragraphs are separated by blank lines. Inside a paragraph the first
``**...**`` pair marks the highlight that is rendered in the badge; every
other ``**`` marker is stripped and the text between them stays in the body.
Nothing here raises: unbalanced markers simply mean "no highlight".
"""

import re
from typing import List, Optional, Tuple

from carousel.models.slide import SlideContent
from carousel.setup_logging_optimized import get_logger

logger = get_logger(__name__)

MARKER = "**"

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_HIGHLIGHT = re.compile(r"\*\*(.+?)\*\*", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


def _normalize_whitespace(text: str) -> str:
    # Body lines are word-wrapped later, so inner line breaks become spaces
    return _WHITESPACE.sub(" ", text).strip()


def extract_highlight(paragraph: str) -> Tuple[str, Optional[str]]:
    """Split one paragraph into ``(body_text, highlight)``.

    The first complete marker pair wins. A pair that encloses only
    whitespace is not a highlight.
    """
    highlight = None
    body = paragraph

    match = _HIGHLIGHT.search(paragraph)
    if match:
        # Edge asterisks would fuse with the markers when composed again
        candidate = _normalize_whitespace(match.group(1).replace(MARKER, "")).strip("* ")
        if candidate:
            highlight = candidate
            body = paragraph[:match.start()] + " " + paragraph[match.end():]

    body = _normalize_whitespace(body.replace(MARKER, ""))
    return body, highlight


def segment(raw: str) -> List[SlideContent]:
    """Split raw text into ordered slide content units.

    Empty or whitespace-only input yields an empty list. The number of
    units is not limited here.
    """
    if not raw or not raw.strip():
        return []

    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    units: List[SlideContent] = []

    for paragraph in _PARAGRAPH_BREAK.split(text):
        paragraph = paragraph.strip()
        if not paragraph:
            continue

        body, highlight = extract_highlight(paragraph)
        if not body and not highlight:
            # Markers only, nothing left to draw
            logger.debug(f"[SEGMENTER] Dropping marker-only paragraph: {paragraph[:40]!r}")
            continue

        units.append(SlideContent(body_text=body, highlight=highlight))

    logger.debug(f"[SEGMENTER] {len(units)} content unit(s), "
                 f"{sum(1 for u in units if u.highlight)} with highlight")
    return units


def compose(units: List[SlideContent]) -> str:
    """Inverse of :func:`segment`, up to marker placement and whitespace.

    Highlights are re-inserted at the start of their paragraph.
    """
    paragraphs = []
    for unit in units:
        if unit.highlight:
            head = f"{MARKER}{unit.highlight}{MARKER}"
            paragraphs.append(f"{head} {unit.body_text}" if unit.body_text else head)
        else:
            paragraphs.append(unit.body_text)
    return "\n\n".join(paragraphs)
