"""
RuleConfig -- versionable keyword lists and thresholds for the validator.

Loaded once per harness run (or app start) from a JSON or YAML document with
camelCase keys, then shared read-only across validations.

Missing or null lists resolve to empty lists so that one absent entry never
blocks unrelated checks. Per-sense mappings always contain every PrimarySense.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .session import PrimarySense

logger = logging.getLogger(__name__)

DEFAULT_NOTICE_DOMINANCE_THRESHOLD = 0.5
DEFAULT_CLOSING_MAX_SENTENCES = 3


class RuleConfigError(ValueError):
    """Raised when a rule configuration file cannot be read or parsed."""

    pass


def _empty_sense_map() -> dict[PrimarySense, list[str]]:
    return {sense: [] for sense in PrimarySense}


class RuleConfig(BaseModel):
    """Typed rule configuration. Every field has an explicit empty default."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    # Format / content safety
    disallowed_preambles: list[str] = Field(default_factory=list)
    trademarks: list[str] = Field(default_factory=list)
    disallowed_keywords: dict[str, list[str]] = Field(default_factory=dict)

    # Opening and senses
    opening_duration_phrases: list[str] = Field(default_factory=list)
    opening_verbs: list[str] = Field(default_factory=list)
    sense_keywords: dict[PrimarySense, list[str]] = Field(default_factory=_empty_sense_map)
    disallowed_sense_keywords: dict[PrimarySense, list[str]] = Field(
        default_factory=_empty_sense_map
    )

    # Normalization and silence
    normalization_keywords: list[str] = Field(default_factory=list)
    drift_keywords: list[str] = Field(default_factory=list)
    return_keywords: list[str] = Field(default_factory=list)
    silence_cue_phrases: list[str] = Field(default_factory=list)
    reentry_phrases: list[str] = Field(default_factory=list)

    # Eyes and closing
    close_eyes_phrases: list[str] = Field(default_factory=list)
    open_eyes_phrases: list[str] = Field(default_factory=list)
    closing_disallowed_phrases: list[str] = Field(default_factory=list)
    acceptable_final_lines: list[str] = Field(default_factory=list)

    # Lexical density
    verb_list: list[str] = Field(default_factory=list)
    notice_dominance_threshold: float = DEFAULT_NOTICE_DOMINANCE_THRESHOLD
    closing_max_sentences: int = DEFAULT_CLOSING_MAX_SENTENCES

    @field_validator(
        "disallowed_preambles",
        "trademarks",
        "opening_duration_phrases",
        "opening_verbs",
        "normalization_keywords",
        "drift_keywords",
        "return_keywords",
        "silence_cue_phrases",
        "reentry_phrases",
        "close_eyes_phrases",
        "open_eyes_phrases",
        "closing_disallowed_phrases",
        "acceptable_final_lines",
        "verb_list",
        mode="before",
    )
    @classmethod
    def _none_as_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("disallowed_keywords", mode="before")
    @classmethod
    def _clean_categories(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {k: (v if v is not None else []) for k, v in value.items()}
        return value

    @field_validator("sense_keywords", "disallowed_sense_keywords", mode="before")
    @classmethod
    def _fill_every_sense(cls, value: Any) -> Any:
        if value is None:
            return _empty_sense_map()
        if not isinstance(value, dict):
            return value
        known = {sense.value for sense in PrimarySense}
        filled: dict[str, Any] = {sense: [] for sense in known}
        for key, keywords in value.items():
            name = key.value if isinstance(key, PrimarySense) else str(key)
            if name not in known:
                logger.debug(f"[RuleConfig] Ignoring keywords for unknown sense '{name}'")
                continue
            filled[name] = keywords if keywords is not None else []
        return filled

    def keywords_for_sense(self, sense: PrimarySense) -> list[str]:
        return self.sense_keywords.get(sense, [])

    def disallowed_for_sense(self, sense: PrimarySense) -> list[str]:
        return self.disallowed_sense_keywords.get(sense, [])


def parse_rule_config(data: Any) -> RuleConfig:
    """Build a RuleConfig from an already-parsed document."""
    if data is None:
        return RuleConfig()
    if not isinstance(data, dict):
        raise RuleConfigError(
            f"Rule configuration must be a mapping (got {type(data).__name__})"
        )
    try:
        return RuleConfig.model_validate(data)
    except ValidationError as e:
        raise RuleConfigError(f"Invalid rule configuration: {e}") from e


def load_rule_config(path: str | Path) -> RuleConfig:
    """Load a RuleConfig from a .json, .yaml or .yml file."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RuleConfigError(f"Cannot read rule configuration {path}: {e}") from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RuleConfigError(f"Cannot parse rule configuration {path}: {e}") from e

    config = parse_rule_config(data)
    logger.info(
        f"[RuleConfig] Loaded {path.name} "
        f"({len(config.disallowed_keywords)} keyword categories, "
        f"{len(config.acceptable_final_lines)} final lines)"
    )
    return config
