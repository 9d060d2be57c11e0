"""Tolerant extraction and validation of oracle replies.

Models often wrap their JSON in prose or markdown fences. ``parse_json_block``
returns the first JSON object found in the text; ``decision_from_payload``
checks it against ``DECISION_SCHEMA`` and builds a ``Decision``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from jsonschema import Draft202012Validator

from models.decision import Decision, DecisionSource, TradeAction

logger = logging.getLogger(__name__)

DECISION_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["action"],
    "properties": {
        "action": {"type": "string", "enum": [a.value for a in TradeAction]},
        "size_pct": {"type": "number"},
        "reason": {"type": "string"},
    },
}

_validator = Draft202012Validator(DECISION_SCHEMA)
_decoder = json.JSONDecoder()
_OBJECT_START = re.compile(r"\{")


def parse_json_block(raw_text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the first JSON object in *raw_text*, or ``None`` if there is none."""
    if not raw_text:
        return None

    text = raw_text.strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed

    for match in _OBJECT_START.finditer(text):
        try:
            candidate, _ = _decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            return candidate
    return None


def decision_from_payload(payload: Optional[Dict[str, Any]]) -> Optional[Decision]:
    """Validate a parsed reply and convert it to an oracle ``Decision``.

    ``action`` is matched case-insensitively. Returns ``None`` when the payload
    does not satisfy ``DECISION_SCHEMA``.
    """
    if payload is None:
        return None

    instance = dict(payload)
    if isinstance(instance.get("action"), str):
        instance["action"] = instance["action"].strip().upper()

    errors = sorted(_validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        for error in errors:
            path = ".".join(str(p) for p in error.path)
            logger.debug("Oracle reply rejected at %s: %s", path or "(root)", error.message)
        return None

    return Decision(
        action=TradeAction(instance["action"]),
        size_pct=float(instance.get("size_pct", 0.0)),
        reason=instance.get("reason") or "No reason supplied",
        source=DecisionSource.ORACLE,
    )
