"""
Case file loading.

A case file is JSON or YAML (by extension) shaped as {"cases": [...]}; each
case needs an `id` and a full `inputs` session mapping (camelCase keys).
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..validation import SessionConfig
from .models import HarnessCase, HarnessError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def _read_document(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise HarnessError(f"Cannot read cases file {path}: {e}") from e
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(raw)
        return json.loads(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise HarnessError(f"Cases file {path} is not valid: {e}") from e


def parse_case(data: Any) -> HarnessCase:
    if not isinstance(data, dict) or not isinstance(data.get("id"), str) or not data["id"].strip():
        raise HarnessError("Every case needs a non-empty string id.")
    case_id = data["id"]

    if data.get("inputs") is None:
        raise HarnessError(f"Case {case_id} is missing inputs.")
    try:
        inputs = SessionConfig.model_validate(data["inputs"])
    except PydanticValidationError as e:
        raise HarnessError(f"Case {case_id} has invalid inputs: {e.error_count()} error(s)") from e

    temperature = data.get("temperature")
    if temperature is not None and (isinstance(temperature, bool) or not isinstance(temperature, (int, float))):
        raise HarnessError(f"Case {case_id} temperature must be a number.")

    return HarnessCase(
        id=case_id,
        inputs=inputs,
        description=data.get("description"),
        prompt=data.get("prompt"),
        model=data.get("model"),
        temperature=float(temperature) if temperature is not None else None,
        metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
    )


def load_cases(path: str | Path) -> list[HarnessCase]:
    path = Path(path)
    document = _read_document(path)
    if not isinstance(document, dict) or not isinstance(document.get("cases"), list):
        raise HarnessError(f"Cases file {path} must contain a 'cases' list.")

    cases = [parse_case(item) for item in document["cases"]]
    logger.info(f"[Harness] Loaded {len(cases)} cases from {path.name}")
    return cases
