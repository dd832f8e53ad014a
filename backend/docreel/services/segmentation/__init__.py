"""Document segmentation into ordered chunks."""

from .segmenter import (
    segment,
    segment_by_headings,
    segment_by_paragraphs,
    extract_title,
    is_heading,
)

__all__ = [
    "segment",
    "segment_by_headings",
    "segment_by_paragraphs",
    "extract_title",
    "is_heading",
]
