"""
Rule groups -- independent checks run against one segmented script.

Each group is a pure function of a ScriptContext and returns its findings in
the order it found them. Groups never skip each other; a group may stop
scanning after its own first violation. Groups that depend on the session
return nothing when no SessionConfig was supplied.

Order (affects only which evidence is collected first):
  format -> content safety -> opening -> sense integrity -> lexical density
  -> normalization -> pause/silence -> movement safety -> eyes -> closing
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .evidence import (
    count_evidence,
    line_at,
    line_evidence,
    sentence_evidence,
    token_list_evidence,
)
from .models import PauseToken, Sentence, ValidationFailure, fail, warn
from .pauses import format_seconds
from .rule_config import RuleConfig
from .segmenter import last_non_blank_line, last_paragraph, line_index_at, split_sentences
from .session import (
    BodyState,
    EyeState,
    NormalizationFrequency,
    PrimarySense,
    SessionConfig,
    SilenceProfile,
)

PREAMBLE_WINDOW_CHARS = 80
NOTICE_TOKEN = "notice"
SHORT_SESSION_MINUTES = 5
SHORT_SESSION_NOTICE_LIMIT = 2
NOTICE_WINDOW_SENTENCES = 6
NOTICE_WINDOW_LIMIT = 3
OPENING_WINDOW_SENTENCES = 2
EYES_WINDOW_SENTENCES = 3
NORMALIZATION_RETURN_WINDOW = 2

ONE_MINUTE_MAX_PAUSES = 1
ONE_MINUTE_PAUSE_RANGE = (3.0, 10.0)
MEDIUM_SESSION_MAX_PAUSES = 2
LONG_SESSION_MINUTES = 12
LONG_SESSION_MIN_LONGEST_PAUSE = 15.0
LONG_SESSION_MAX_PAUSE = 30.0

MOVEMENT_SAFETY_LINE = (
    "Follow this guidance only to the extent that it is safe in your physical environment."
)

STRUCTURED_START_PATTERN = re.compile(r"^\s*[\[{]")
STRUCTURED_CHAR_PATTERN = re.compile(r"[\[{]")
CODE_FENCE = "```"
HEADING_PATTERN = re.compile(r"^#+\s", re.MULTILINE)
LINE_MARKDOWN_PATTERN = re.compile(r"```|^#+\s")
DURATION_FRAMING_PATTERN = re.compile(r"\b\d+\s*minutes?\b", re.IGNORECASE)
BREATH_PATTERN = re.compile(r"\bbreath(e|ing)?\b", re.IGNORECASE)
WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class ScriptContext:
    """Shared, read-only view of one script handed to every rule group."""

    script: str
    lines: tuple[str, ...]
    sentences: tuple[Sentence, ...]
    pauses: tuple[PauseToken, ...]
    session: SessionConfig | None
    rules: RuleConfig

    @property
    def intentional_pauses(self) -> tuple[PauseToken, ...]:
        return tuple(p for p in self.pauses if p.is_intentional)

    def joined(self, sentences: Iterable[Sentence]) -> str:
        return " ".join(s.text for s in sentences)


RuleGroup = Callable[[ScriptContext], list[ValidationFailure]]


# =============================================================================
# MATCHING HELPERS
# =============================================================================


def includes_any(text: str, phrases: Iterable[str]) -> bool:
    """Case-insensitive substring match against any non-empty phrase."""
    lower = text.lower()
    return any(phrase.lower() in lower for phrase in phrases if phrase.strip())


def count_occurrences(text: str, token: str) -> int:
    if not token:
        return 0
    return len(re.findall(re.escape(token), text, re.IGNORECASE))


def normalize_final_line(line: str) -> str:
    return WHITESPACE_RUN.sub(" ", line.strip()).lower()


# =============================================================================
# UNCONDITIONAL GROUPS
# =============================================================================


def check_format(ctx: ScriptContext) -> list[ValidationFailure]:
    """Plain prose only: no structured data, markdown, or chatty preamble."""
    failures = []
    rules = ctx.rules

    if STRUCTURED_START_PATTERN.search(ctx.script):
        failures.append(fail(
            "OUTPUT_NOT_PLAINTEXT",
            "Output appears to be JSON or structured data.",
            line_evidence(ctx.lines, lambda line: bool(STRUCTURED_CHAR_PATTERN.search(line))),
        ))

    if CODE_FENCE in ctx.script or HEADING_PATTERN.search(ctx.script):
        failures.append(fail(
            "OUTPUT_MARKDOWN",
            "Output contains markdown formatting.",
            line_evidence(ctx.lines, lambda line: bool(LINE_MARKDOWN_PATTERN.search(line))),
        ))

    opening = ctx.script.strip()[:PREAMBLE_WINDOW_CHARS]
    if includes_any(opening, rules.disallowed_preambles):
        failures.append(fail(
            "OUTPUT_PREAMBLE",
            "Output includes a preamble outside the script.",
            line_evidence(ctx.lines, lambda line: includes_any(line, rules.disallowed_preambles)),
        ))

    return failures


def check_content_safety(ctx: ScriptContext) -> list[ValidationFailure]:
    """Trademarks and every disallowed-keyword category, one finding per category."""
    failures = []
    rules = ctx.rules

    if includes_any(ctx.script, rules.trademarks):
        failures.append(fail(
            "TRADEMARK_MENTION",
            "Output includes trademarked terms.",
            line_evidence(ctx.lines, lambda line: includes_any(line, rules.trademarks)),
        ))

    for category, keywords in rules.disallowed_keywords.items():
        if includes_any(ctx.script, keywords):
            failures.append(fail(
                f"DISALLOWED_{category.upper()}",
                f"Output includes disallowed {category} language.",
                line_evidence(ctx.lines, lambda line, kw=keywords: includes_any(line, kw)),
            ))

    return failures


def check_opening(ctx: ScriptContext) -> list[ValidationFailure]:
    """No duration framing up front; with a session, start in the primary sense."""
    if not ctx.sentences:
        return []

    failures = []
    rules = ctx.rules
    first = ctx.sentences[0].text

    if includes_any(first, rules.opening_duration_phrases) or DURATION_FRAMING_PATTERN.search(first):
        failures.append(fail(
            "OPENING_NO_DURATION",
            "Opening includes duration framing.",
            sentence_evidence(ctx.sentences, 0),
        ))

    if ctx.session is not None:
        window = ctx.joined(ctx.sentences[:OPENING_WINDOW_SENTENCES])
        has_verb = includes_any(window, rules.opening_verbs)
        has_sense = includes_any(window, rules.keywords_for_sense(ctx.session.primary_sense))
        if not (has_verb and has_sense):
            failures.append(fail(
                "OPENING_PHYSICAL_INSTRUCTION",
                "Opening does not place attention in the primary sense.",
                sentence_evidence(ctx.sentences, 0),
            ))

    return failures


def check_pause_format(ctx: ScriptContext) -> list[ValidationFailure]:
    invalid = [p.raw for p in ctx.pauses if not p.is_valid]
    if not invalid:
        return []
    return [fail(
        "PAUSE_FORMAT",
        "Pause markers must be numeric tokens like [pause:3].",
        token_list_evidence(invalid),
    )]


# =============================================================================
# SESSION-DEPENDENT GROUPS
# =============================================================================


def check_sense_integrity(ctx: ScriptContext) -> list[ValidationFailure]:
    if ctx.session is None:
        return []

    failures = []
    sense = ctx.session.primary_sense
    disallowed = ctx.rules.disallowed_for_sense(sense)

    if includes_any(ctx.script, disallowed):
        failures.append(fail(
            "SENSE_INTEGRITY",
            f"Script references senses outside {sense.value}.",
            line_evidence(ctx.lines, lambda line: includes_any(line, disallowed)),
        ))

    if sense is not PrimarySense.BREATH and BREATH_PATTERN.search(ctx.script):
        failures.append(fail(
            "SENSE_BREATH_EXCLUSION",
            "Script mentions breath outside breath-focused sessions.",
            line_evidence(ctx.lines, lambda line: bool(BREATH_PATTERN.search(line))),
        ))

    return failures


def check_lexical_density(ctx: ScriptContext) -> list[ValidationFailure]:
    """Keep the word notice from dominating the script or bunching up."""
    if ctx.session is None:
        return []

    failures = []
    notice_count = count_occurrences(ctx.script, NOTICE_TOKEN)

    if (
        ctx.session.duration_minutes < SHORT_SESSION_MINUTES
        and notice_count > SHORT_SESSION_NOTICE_LIMIT
    ):
        failures.append(fail(
            "NOTICE_LIMIT",
            "Notice appears too frequently for short sessions.",
            count_evidence(notice_count),
        ))

    per_sentence = [count_occurrences(s.text, NOTICE_TOKEN) for s in ctx.sentences]
    for start in range(len(per_sentence)):
        if sum(per_sentence[start:start + NOTICE_WINDOW_SENTENCES]) >= NOTICE_WINDOW_LIMIT:
            failures.append(fail(
                "NOTICE_CLUSTER",
                "Notice repeats too often in a short span.",
                sentence_evidence(ctx.sentences, start),
            ))
            break

    verb_count = sum(count_occurrences(ctx.script, verb) for verb in ctx.rules.verb_list)
    if verb_count > 0:
        ratio = notice_count / verb_count
        if ratio > ctx.rules.notice_dominance_threshold:
            failures.append(warn(
                "NOTICE_DOMINANCE",
                "Notice is the dominant verb in the script.",
                f"Notice ratio: {ratio:.2f}",
            ))

    return failures


def check_normalization(ctx: ScriptContext) -> list[ValidationFailure]:
    """With frequency "once": exactly one drift-normalizing sentence, then a return."""
    if ctx.session is None or ctx.session.normalization_frequency is not NormalizationFrequency.ONCE:
        return []

    rules = ctx.rules
    matches = [
        s for s in ctx.sentences
        if includes_any(s.text, rules.normalization_keywords)
        and includes_any(s.text, rules.drift_keywords)
    ]

    if len(matches) != 1:
        return [fail(
            "NORMALIZATION_COUNT",
            "Normalization should appear exactly once.",
            count_evidence(len(matches)),
        )]

    index = matches[0].index
    following = ctx.joined(ctx.sentences[index + 1:index + 1 + NORMALIZATION_RETURN_WINDOW])
    if not includes_any(following, rules.return_keywords):
        return [fail(
            "NORMALIZATION_RETURN",
            "Normalization must be followed by a return-to-sensation instruction.",
            sentence_evidence(ctx.sentences, index),
        )]
    return []


def check_silence_policy(ctx: ScriptContext) -> list[ValidationFailure]:
    """Silence profile, cue/re-entry framing, and duration-bucketed limits."""
    if ctx.session is None:
        return []

    failures = []
    rules = ctx.rules
    intentional = ctx.intentional_pauses

    if ctx.session.silence_profile is SilenceProfile.NONE and intentional:
        failures.append(fail(
            "SILENCE_FORBIDDEN",
            "Intentional silences are not allowed for silence profile none.",
            f"Found {len(intentional)} intentional pauses.",
        ))

    for pause in intentional:
        line_index = line_index_at(ctx.script, pause.position)
        previous = ctx.lines[line_index - 1] if line_index > 0 else ""
        following = next(
            (line for line in ctx.lines[line_index + 1:] if line.strip()), ""
        )
        if not includes_any(previous, rules.silence_cue_phrases):
            failures.append(fail(
                "SILENCE_CUE_REQUIRED",
                "Intentional silence must be preceded by a silence cue sentence.",
                line_at(ctx.lines, line_index),
            ))
        if not (
            includes_any(following, rules.reentry_phrases)
            or includes_any(following, rules.return_keywords)
        ):
            failures.append(fail(
                "SILENCE_REENTRY_REQUIRED",
                "Intentional silence must be followed by a re-entry instruction.",
                line_at(ctx.lines, line_index),
            ))

    failures.extend(_duration_limits(ctx.session.duration_minutes, intentional))
    return failures


def _duration_limits(minutes: int, intentional: tuple[PauseToken, ...]) -> list[ValidationFailure]:
    failures = []
    values = [p.seconds for p in intentional]

    if minutes <= 1:
        if len(values) > ONE_MINUTE_MAX_PAUSES:
            failures.append(fail(
                "SILENCE_LIMIT_SHORT",
                "1-minute sessions may include at most one intentional silence.",
                count_evidence(len(values)),
            ))
        low, high = ONE_MINUTE_PAUSE_RANGE
        for value in values:
            if not low <= value <= high:
                failures.append(fail(
                    "SILENCE_DURATION_SHORT",
                    "1-minute session silence must be between 3 and 10 seconds.",
                    f"Pause: {format_seconds(value)}",
                ))
    elif 2 <= minutes <= 5:
        if len(values) > MEDIUM_SESSION_MAX_PAUSES:
            failures.append(fail(
                "SILENCE_LIMIT_MEDIUM",
                "2-5 minute sessions may include at most two intentional silences.",
                count_evidence(len(values)),
            ))
    elif minutes >= LONG_SESSION_MINUTES:
        if not any(value >= LONG_SESSION_MIN_LONGEST_PAUSE for value in values):
            listed = ", ".join(format_seconds(v) for v in values) or "none"
            failures.append(fail(
                "SILENCE_MIN_LONG",
                "12-minute sessions require at least one intentional silence >= 15s.",
                f"Pauses: {listed}",
            ))
        for value in values:
            if value > LONG_SESSION_MAX_PAUSE:
                failures.append(fail(
                    "SILENCE_MAX_LONG",
                    "12-minute sessions should not exceed 30s silence.",
                    f"Pause: {format_seconds(value)}",
                ))

    return failures


def check_movement_safety(ctx: ScriptContext) -> list[ValidationFailure]:
    if ctx.session is None or ctx.session.body_state is not BodyState.MOVING:
        return []
    if MOVEMENT_SAFETY_LINE in ctx.script:
        return []
    return [fail(
        "MOVEMENT_SAFETY_REQUIRED",
        "Movement sessions must include the safety guidance line.",
        MOVEMENT_SAFETY_LINE,
    )]


def check_eye_state(ctx: ScriptContext) -> list[ValidationFailure]:
    if ctx.session is None:
        return []

    failures = []
    rules = ctx.rules
    last_index = len(ctx.sentences) - 1
    ending = ctx.joined(ctx.sentences[-EYES_WINDOW_SENTENCES:])

    if ctx.session.eye_state is EyeState.CLOSED:
        opening = ctx.joined(ctx.sentences[:EYES_WINDOW_SENTENCES])
        if not includes_any(opening, rules.close_eyes_phrases):
            failures.append(fail(
                "EYES_CLOSED_OPENING",
                "Closed-eye sessions must instruct closing eyes early.",
                sentence_evidence(ctx.sentences, 0),
            ))
        if not includes_any(ending, rules.open_eyes_phrases):
            failures.append(fail(
                "EYES_CLOSED_REOPEN",
                "Closed-eye sessions must invite reopening eyes before the end.",
                sentence_evidence(ctx.sentences, last_index),
            ))
    elif ctx.session.eye_state is EyeState.OPEN:
        if includes_any(ending, rules.open_eyes_phrases):
            failures.append(fail(
                "EYES_OPEN_NO_REOPEN",
                "Open-eye sessions must not instruct opening eyes at the end.",
                sentence_evidence(ctx.sentences, last_index),
            ))

    return failures


def check_closing(ctx: ScriptContext) -> list[ValidationFailure]:
    """Short final paragraph, no disallowed phrasing, approved last line."""
    if ctx.session is None:
        return []

    failures = []
    rules = ctx.rules

    closing_sentences = len(split_sentences(last_paragraph(ctx.script)))
    if closing_sentences > rules.closing_max_sentences:
        failures.append(fail(
            "CLOSING_TOO_LONG",
            "Closing paragraph is longer than expected.",
            f"Closing sentences: {closing_sentences}",
        ))

    if includes_any(ctx.script, rules.closing_disallowed_phrases):
        failures.append(fail(
            "CLOSING_DISALLOWED_PHRASE",
            "Closing includes disallowed phrasing.",
            line_evidence(ctx.lines, lambda line: includes_any(line, rules.closing_disallowed_phrases)),
        ))

    last_line = normalize_final_line(last_non_blank_line(ctx.lines))
    approved = {normalize_final_line(line) for line in rules.acceptable_final_lines}
    if last_line not in approved:
        failures.append(fail(
            "CLOSING_FINAL_LINE",
            "Script must end with an approved final line.",
            f"Last line: {WHITESPACE_RUN.sub(' ', last_non_blank_line(ctx.lines).strip())}",
        ))

    return failures


RULE_GROUPS: tuple[RuleGroup, ...] = (
    check_format,
    check_content_safety,
    check_opening,
    check_sense_integrity,
    check_lexical_density,
    check_normalization,
    check_pause_format,
    check_silence_policy,
    check_movement_safety,
    check_eye_state,
    check_closing,
)
