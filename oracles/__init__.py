"""Decision oracles: rule table, LLM-backed oracle, reply parsing and registry."""

from oracles.base import DecisionOracle
from oracles.parsing import DECISION_SCHEMA, decision_from_payload, parse_json_block
from oracles.registry import available_providers, create_oracle, register
from oracles.rules import RuleBasedOracle, fallback_decision

__all__ = [
    "DecisionOracle",
    "DECISION_SCHEMA",
    "decision_from_payload",
    "parse_json_block",
    "available_providers",
    "create_oracle",
    "register",
    "RuleBasedOracle",
    "fallback_decision",
]
