"""
Document segmentation

Splits extracted document text into ordered chunks, the unit of script and
video generation. Two tiers:

1. Heading-based: short heading-like lines start a new chunk titled by the
   heading.
2. Paragraph-based: used when no heading-delimited chunk comes out of tier 1.
   Blank-line paragraphs are packed into chunks of at most 1000 characters.
"""

import re
from typing import List, Optional

from docreel.config import (
    HEADING_MAX_CHARS,
    PARAGRAPH_CHUNK_MAX_CHARS,
    TITLE_SENTENCE_MAX_CHARS,
    TITLE_PREFIX_CHARS,
)
from docreel.core import get_logger
from docreel.models import Chunk

logger = get_logger(__name__, component="segmenter")

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")

# Capitalised line that does not end with a period
_CAPITALISED_HEADING = re.compile(r"[A-Z][^.]*[^.]")
_NUMBERED_HEADING = re.compile(r"\d+\.")
_ALL_CAPS_HEADING = re.compile(r"[A-Z\s]+")


def is_heading(line: str) -> bool:
    """Return True when a trimmed line looks like a section heading."""
    if len(line) >= HEADING_MAX_CHARS:
        return False
    return bool(
        _CAPITALISED_HEADING.fullmatch(line)
        or _NUMBERED_HEADING.match(line)
        or _ALL_CAPS_HEADING.fullmatch(line)
    )


def extract_title(text: str) -> str:
    """
    Derive a title from chunk content.

    First sentence when it is at most 60 characters, otherwise the first 50
    characters followed by an ellipsis.
    """
    first_sentence = _SENTENCE_SPLIT.split(text, maxsplit=1)[0].strip()
    if first_sentence and len(first_sentence) <= TITLE_SENTENCE_MAX_CHARS:
        return first_sentence

    prefix = text[:TITLE_PREFIX_CHARS].strip()
    return prefix + ("..." if len(text) > TITLE_PREFIX_CHARS else "")


def segment_by_paragraphs(text: str) -> List[Chunk]:
    """Pack blank-line delimited paragraphs into chunks capped at 1000 characters."""
    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]

    chunks: List[Chunk] = []
    current = ""

    for paragraph in paragraphs:
        if current and len(current) + len(paragraph) > PARAGRAPH_CHUNK_MAX_CHARS:
            chunks.append(Chunk(title=extract_title(current), content=current.strip()))
            current = paragraph
        else:
            current = f"{current}\n\n{paragraph}" if current else paragraph

    if current.strip():
        chunks.append(Chunk(title=extract_title(current), content=current.strip()))

    return chunks


def segment_by_headings(text: str) -> List[Chunk]:
    """
    Split on heading-like lines.

    Content seen before the first heading is titled from its own first
    sentence. Consecutive headings with no content between them keep only the
    last one.
    """
    lines = [line.strip() for line in text.split("\n")]

    chunks: List[Chunk] = []
    current = ""
    current_title: Optional[str] = None

    def flush() -> None:
        if current.strip():
            chunks.append(Chunk(
                title=current_title or extract_title(current),
                content=current.strip(),
            ))

    for line in lines:
        if not line:
            continue
        if is_heading(line):
            flush()
            current_title = line
            current = ""
        else:
            current = f"{current}\n{line}" if current else line

    flush()
    return chunks


def _normalize_order(chunks: List[Chunk]) -> List[Chunk]:
    for index, chunk in enumerate(chunks):
        chunk.order = index
    return chunks


def segment(text: str) -> List[Chunk]:
    """
    Split document text into ordered, pending chunks.

    Returns at least one chunk for any text with non-whitespace content and
    an empty list otherwise. ``order`` is 0..N-1 in emission order.
    """
    if not text or not text.strip():
        return []

    chunks = segment_by_headings(text)
    strategy = "headings"
    if not chunks:
        chunks = segment_by_paragraphs(text)
        strategy = "paragraphs"

    logger.info("Document segmented", extra={
        "strategy": strategy,
        "chunk_count": len(chunks),
        "text_length": len(text),
    })
    return _normalize_order(chunks)
