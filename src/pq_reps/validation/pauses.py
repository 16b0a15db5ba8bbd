"""
Pause token extraction -- finds `[pause:<value>]` markers in document order.

Malformed values (anything that is not a finite decimal number) are kept as
invalid tokens so the format rule can report them. The word "pause" matches
case-insensitively; other bracketed content is ignored.
"""

import re

from .models import PauseToken

PAUSE_TOKEN_PATTERN = re.compile(r"\[pause:([^\]]+)\]", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_seconds(value: str) -> float | None:
    candidate = value.strip()
    if not NUMBER_PATTERN.fullmatch(candidate):
        return None
    return float(candidate)


def extract_pause_tokens(text: str) -> tuple[PauseToken, ...]:
    return tuple(
        PauseToken(
            raw=match.group(0),
            value_text=match.group(1),
            seconds=parse_seconds(match.group(1)),
            position=match.start(),
        )
        for match in PAUSE_TOKEN_PATTERN.finditer(text)
    )


def format_seconds(seconds: float) -> str:
    """Render 10.0 as "10" and 2.5 as "2.5" for evidence snippets."""
    return f"{seconds:g}"
