"""LLM-backed decision oracle.

One chat model receives the snapshot in its prompt and answers with a JSON
decision. Any failure (timeout, transport error, unparseable or invalid reply)
degrades to the deterministic rule table, tagged ``DecisionSource.HEURISTIC``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import jinja2
from langchain_core.messages import HumanMessage, SystemMessage

from models.config import OracleConfig
from models.decision import Decision
from models.snapshot import Snapshot
from oracles.base import DecisionOracle
from oracles.parsing import decision_from_payload, parse_json_block
from oracles.registry import register
from oracles.rules import fallback_decision

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"

_jinja_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(_PROMPTS_DIR)),
    undefined=jinja2.StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_prompts(
    snapshot: Snapshot,
    portfolio_value: float,
    max_position_pct: float,
) -> tuple[str, str]:
    """Return the (system, user) prompt pair for one decision."""
    system = _jinja_env.get_template("decision_system.jinja").render(
        max_position_pct=max_position_pct,
    )
    user = _jinja_env.get_template("decision_user.jinja").render(
        symbol=snapshot.symbol,
        price=snapshot.price,
        volume=snapshot.volume,
        rsi=snapshot.rsi,
        portfolio_value=portfolio_value,
        max_position_pct=max_position_pct,
        synthetic=snapshot.is_synthetic,
    )
    return system, user


def _create_llm(config: OracleConfig):
    """Instantiate the appropriate LangChain chat model from config."""
    provider = config.provider.lower()

    if provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=config.model,
            base_url=config.url,
            temperature=config.temperature,
        )
    elif provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.model,
            base_url=config.url or None,
            temperature=config.temperature,
            timeout=config.timeout_seconds,
            max_retries=0,
        )
    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=config.model,
            temperature=config.temperature,
            timeout=config.timeout_seconds,
            max_retries=0,
        )
    else:
        raise ValueError(
            f"Unsupported LLM provider '{provider}'. "
            f"Supported: 'ollama', 'openai', 'anthropic'."
        )


@register("ollama")
@register("openai")
@register("anthropic")
class LLMOracle(DecisionOracle):
    """Asks a chat model for a decision, falling back to the rule table."""

    def __init__(
        self,
        config: OracleConfig,
        max_position_pct: float,
        llm: Optional[Any] = None,
    ) -> None:
        super().__init__(config, max_position_pct)
        self._llm = llm if llm is not None else _create_llm(config)

    async def decide(self, snapshot: Snapshot, portfolio_value: float) -> Decision:
        system_prompt, user_prompt = render_prompts(
            snapshot, portfolio_value, self.max_position_pct
        )
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]

        try:
            response = await asyncio.wait_for(
                self._llm.ainvoke(messages),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Oracle timed out after %.1fs for %s; using rule fallback.",
                self.config.timeout_seconds,
                snapshot.symbol,
            )
            return fallback_decision(snapshot)
        except Exception as exc:
            logger.warning(
                "Oracle error for %s: %s; using rule fallback.",
                snapshot.symbol,
                exc,
            )
            return fallback_decision(snapshot)

        raw_text = _message_text(response)
        decision = decision_from_payload(parse_json_block(raw_text))
        if decision is None:
            logger.warning(
                "Oracle reply for %s was not a valid decision; using rule fallback.",
                snapshot.symbol,
            )
            logger.debug("Rejected oracle reply: %r", raw_text)
            return fallback_decision(snapshot)

        logger.info(
            "Oracle decision for %s: %s %.4f (%s)",
            snapshot.symbol,
            decision.action.value,
            decision.size_pct,
            decision.reason,
        )
        return decision


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _message_text(message: Any) -> str:
    """Flatten a chat model reply into plain text.

    ``content`` is a string for most providers but may be a list of content
    blocks (Anthropic).
    """
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content or "")
