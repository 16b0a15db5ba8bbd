"""
Segmenter -- splits script text into lines and sentences.

Lines are kept verbatim (for evidence); sentences are trimmed and numbered
among the non-empty ones. Empty input yields empty sequences.
"""

import re

from .models import Sentence

LINE_BREAK_PATTERN = re.compile(r"\r?\n")
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+|[^.!?]+\Z")
PARAGRAPH_BREAK_PATTERN = re.compile(r"\n\s*\n")


def split_lines(text: str) -> tuple[str, ...]:
    if not text:
        return ()
    return tuple(LINE_BREAK_PATTERN.split(text))


def split_sentences(text: str) -> tuple[Sentence, ...]:
    chunks = (chunk.strip() for chunk in SENTENCE_PATTERN.findall(text))
    return tuple(
        Sentence(index=i, text=chunk)
        for i, chunk in enumerate(c for c in chunks if c)
    )


def last_paragraph(text: str) -> str:
    """Final non-empty paragraph, paragraphs being separated by blank lines."""
    for paragraph in reversed(PARAGRAPH_BREAK_PATTERN.split(text)):
        if paragraph.strip():
            return paragraph
    return ""


def last_non_blank_line(lines: tuple[str, ...]) -> str:
    for line in reversed(lines):
        if line.strip():
            return line
    return ""


def line_index_at(text: str, position: int) -> int:
    """0-based index of the line holding character `position`."""
    return text.count("\n", 0, position)
