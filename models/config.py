"""Engine configuration models, loaded from YAML and the environment.

These live in ``models/`` because they are shared data contracts used by the
trading engine, the snapshot provider and the decision oracles.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class OracleConfig(BaseModel):
    """Configuration for the decision oracle."""

    provider: str = Field(
        default="mock",
        description="Registered oracle name, e.g. 'mock', 'rules', 'ollama', 'openai'.",
    )
    model: str = Field(
        default="llama3.1:8b",
        description="Model name passed to the chat model, e.g. 'llama3.1:8b', 'gpt-4o-mini'.",
    )
    url: str | None = Field(
        default=None,
        description="Base URL of the model server; None uses the provider default "
        "(Ollama: http://localhost:11434).",
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for the LLM.",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound on a single oracle call before falling back to the rules.",
    )


class MarketDataConfig(BaseModel):
    """Configuration for the Yahoo Finance chart client."""

    base_url: str = Field(
        default="https://query1.finance.yahoo.com/v8/finance/chart",
        description="Chart endpoint; the symbol is appended as a path segment.",
    )
    range: str = Field(default="1d", description="History range requested per snapshot.")
    interval: str = Field(default="5m", description="Bar interval requested per snapshot.")
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Total timeout for one history request.",
    )


class EngineConfig(BaseModel):
    """Top-level configuration for a trading engine run.

    Immutable for the lifetime of the engine; the engine embeds it verbatim in
    every persisted state document.
    """

    symbols: list[str] = Field(
        default_factory=lambda: ["AAPL"],
        min_length=1,
        description="Tracked ticker symbols, processed in this order every tick.",
    )
    poll_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between scheduled ticks.",
    )
    capital: float = Field(
        default=10_000.0,
        gt=0,
        description="Starting cash balance for the portfolio.",
    )
    max_position_pct: float = Field(
        default=0.1,
        gt=0,
        le=1,
        description="Largest fraction of portfolio value a single trade may commit.",
    )
    rsi_period: int = Field(default=14, ge=1, description="RSI lookback period.")
    history_points: int = Field(
        default=80,
        ge=2,
        description="Trailing closes fed to the RSI calculation.",
    )
    output_path: str = Field(
        default="./results.json",
        description="File overwritten with the full engine state after every tick.",
    )
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    market_data: MarketDataConfig = Field(default_factory=MarketDataConfig)

    model_config = {"frozen": True}

    @field_validator("symbols")
    @classmethod
    def _normalise_symbols(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for raw in value:
            symbol = raw.strip().upper()
            if not symbol:
                raise ValueError("Symbols must be non-empty strings.")
            if symbol not in cleaned:
                cleaned.append(symbol)
        return cleaned

    @model_validator(mode="after")
    def _check_history_depth(self) -> EngineConfig:
        if self.history_points < self.rsi_period + 1:
            raise ValueError(
                f"history_points ({self.history_points}) must be at least "
                f"rsi_period + 1 ({self.rsi_period + 1})."
            )
        return self

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        """Load and validate an ``EngineConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        return cls(**_read_yaml_mapping(Path(path)))

    @classmethod
    def load(
        cls,
        path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> EngineConfig:
        """Build the config from an optional YAML file overlaid by ``TRADING_*`` variables.

        Values absent from both sources fall back to the field defaults.
        """
        raw: dict[str, Any] = _read_yaml_mapping(Path(path)) if path is not None else {}
        return cls(**_apply_env_overrides(raw, os.environ if environ is None else environ))


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

# Environment variable -> (section or None, field name)
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "TRADING_SYMBOLS": (None, "symbols"),
    "TRADING_POLL_INTERVAL_SECONDS": (None, "poll_interval_seconds"),
    "TRADING_CAPITAL": (None, "capital"),
    "TRADING_MAX_POSITION_PCT": (None, "max_position_pct"),
    "TRADING_RSI_PERIOD": (None, "rsi_period"),
    "TRADING_HISTORY_POINTS": (None, "history_points"),
    "TRADING_OUTPUT_PATH": (None, "output_path"),
    "TRADING_LLM_PROVIDER": ("oracle", "provider"),
    "TRADING_LLM_MODEL": ("oracle", "model"),
    "TRADING_LLM_URL": ("oracle", "url"),
}


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open(encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
        )
    return raw


def _apply_env_overrides(raw: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of *raw* with any ``TRADING_*`` variables applied on top."""
    merged = dict(raw)
    for var, (section, field_name) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        parsed: Any = value
        if field_name == "symbols":
            parsed = [part for part in value.split(",") if part.strip()]
        if section is None:
            merged[field_name] = parsed
        else:
            nested = dict(merged.get(section) or {})
            nested[field_name] = parsed
            merged[section] = nested
    return merged
