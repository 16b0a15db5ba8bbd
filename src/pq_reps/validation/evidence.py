"""Evidence formatting -- short snippets pointing a reader at the offending text."""

from collections.abc import Callable, Sequence

from .models import Sentence

EMPTY_SCRIPT_EVIDENCE = "Line 1: <empty>"


def line_evidence(lines: Sequence[str], matcher: Callable[[str], bool]) -> str:
    """First line satisfying `matcher`, 1-based, trimmed."""
    for i, line in enumerate(lines):
        if matcher(line):
            return line_at(lines, i)
    return "Line ?"


def line_at(lines: Sequence[str], index: int) -> str:
    line = lines[index] if 0 <= index < len(lines) else ""
    return f"Line {index + 1}: {line.strip()}"


def sentence_evidence(sentences: Sequence[Sentence], index: int) -> str:
    if not sentences or not -len(sentences) <= index < len(sentences):
        return "Sentence ?"
    sentence = sentences[index]
    return f"Sentence {sentence.index + 1}: {sentence.text}"


def count_evidence(count: int) -> str:
    return f"Count: {count}"


def token_list_evidence(tokens: Sequence[str]) -> str:
    return ", ".join(tokens)
