"""
Script validator -- runs every rule group over one generated script.

Usage:
    from pq_reps.validation import validate_script, load_rule_config

    rules = load_rule_config("rules/default_rules.json")
    result = validate_script(script_text, session=session_config, rules=rules)
    if not result.passed:
        for failure in result.failures:
            print(failure.rule_id, failure.evidence)

Validation is deterministic and side-effect free: identical inputs always
produce identical failures in identical order. Findings are aggregated, never
short-circuited, except for an empty script which yields OUTPUT_EMPTY alone.
"""

import logging

from .evidence import EMPTY_SCRIPT_EVIDENCE
from .models import ValidationResult, fail
from .pauses import extract_pause_tokens
from .rule_config import RuleConfig
from .rules import RULE_GROUPS, ScriptContext
from .segmenter import split_lines, split_sentences
from .session import SessionConfig

logger = logging.getLogger(__name__)


def build_context(
    script: str,
    session: SessionConfig | None = None,
    rules: RuleConfig | None = None,
) -> ScriptContext:
    trimmed = script.strip()
    return ScriptContext(
        script=script,
        lines=split_lines(script),
        sentences=split_sentences(trimmed),
        pauses=extract_pause_tokens(script),
        session=session,
        rules=rules if rules is not None else RuleConfig(),
    )


def validate_script(
    script: str,
    session: SessionConfig | None = None,
    rules: RuleConfig | None = None,
) -> ValidationResult:
    """
    Validate a script against the rule configuration.

    Args:
        script: Raw script text as returned by the generator.
        session: Session parameters; when omitted only format, content-safety,
            opening-duration and pause-format checks run.
        rules: Keyword lists and thresholds; defaults to an empty RuleConfig.

    Returns:
        ValidationResult with every finding in rule-group order.
    """
    if not script.strip():
        logger.debug("[Validator] Empty script")
        return ValidationResult(
            failures=(fail("OUTPUT_EMPTY", "Output is empty.", EMPTY_SCRIPT_EVIDENCE),)
        )

    ctx = build_context(script, session, rules)
    failures = []
    for group in RULE_GROUPS:
        failures.extend(group(ctx))

    result = ValidationResult(failures=tuple(failures))
    logger.debug(
        f"[Validator] {len(ctx.sentences)} sentences, {len(ctx.pauses)} pauses: "
        f"{'PASS' if result.passed else 'FAIL'} "
        f"({result.fail_count} failures, {result.warn_count} warnings)"
    )
    return result
