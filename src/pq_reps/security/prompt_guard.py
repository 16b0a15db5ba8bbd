"""
Prompt guard for the script generator.

The only free text a listener can send is the custom scenario line, which is
quoted into the user prompt. Lines that try to re-instruct the generator are
rejected at the boundary (see validators.validate_custom_scenario_line); every
prompt part is also length-capped before it leaves the process.
"""

import logging
import re

logger = logging.getLogger(__name__)

# name -> pattern; names are what gets logged, never the matched text.
INJECTION_PATTERNS: dict[str, re.Pattern] = {
    name: re.compile(pattern, re.IGNORECASE)
    for name, pattern in {
        "ignore_instructions": r"\b(ignore|disregard|forget)\s+(all\s+)?(the\s+)?(previous|prior|above|your)\b",
        "role_override": r"\byou\s+are\s+now\b",
        "act_as": r"\b(act|pretend)\s+(as|to\s+be)\b",
        "system_prompt": r"\bsystem\s*(prompt|message|:)",
        "chat_markup": r"<\|[a-z_]+\|>|\[/?inst\]",
        "rule_override": r"\boverride\s+(safety|the\s+rules|instructions)\b",
        "jailbreak": r"\bjailbreak|\bdan\s+mode\b",
        "format_override": r"\b(respond|reply|answer)\s+(only\s+)?(in|with)\s+(json|markdown|code)\b",
    }.items()
}


def detect_injection_attempt(text: str) -> list[str]:
    """Names of the injection patterns found in `text` (empty when clean)."""
    if not text:
        return []
    found = [name for name, pattern in INJECTION_PATTERNS.items() if pattern.search(text)]
    if found:
        logger.warning(f"[PromptGuard] Rejected input matching {', '.join(found)} ({len(text)} chars)")
    return found


def sanitize_for_prompt(content: str, max_length: int = 100_000) -> str:
    """Drop NUL characters and cap `content` at `max_length`, marking the cut."""
    if not content:
        return ""
    content = content.replace("\x00", "")
    if len(content) <= max_length:
        return content
    logger.info(f"[PromptGuard] Prompt part cut from {len(content)} to {max_length} chars")
    return f"{content[:max_length]}\n[TRUNCATED]"
