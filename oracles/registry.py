"""Oracle registry: maps provider strings to DecisionOracle subclasses.

Usage::

    from oracles.registry import create_oracle

    oracle = create_oracle(config.oracle, config.max_position_pct)
"""

from __future__ import annotations

from typing import Type

from models.config import OracleConfig
from oracles.base import DecisionOracle

# ---------------------------------------------------------------------------
# Registry mapping
# ---------------------------------------------------------------------------
_REGISTRY: dict[str, Type[DecisionOracle]] = {}


def register(provider: str):
    """Class decorator binding an oracle class to a ``OracleConfig.provider`` string.

    Provider strings are matched case-insensitively, so the name is stored in
    lower case. One class may serve several providers (stack the decorator);
    binding a provider that already maps to a different class is an error.
    """
    key = provider.strip().lower()
    if not key:
        raise ValueError("Oracle provider name must be a non-empty string.")

    def _decorator(cls: Type[DecisionOracle]) -> Type[DecisionOracle]:
        if not (isinstance(cls, type) and issubclass(cls, DecisionOracle)):
            raise TypeError(f"Provider '{key}' must be bound to a DecisionOracle subclass, got {cls!r}.")
        bound = _REGISTRY.get(key)
        if bound is not None and bound is not cls:
            raise ValueError(
                f"Oracle provider '{key}' is already served by {bound.__name__}; "
                f"cannot rebind it to {cls.__name__}."
            )
        _REGISTRY[key] = cls
        return cls

    return _decorator


def create_oracle(config: OracleConfig, max_position_pct: float) -> DecisionOracle:
    """Instantiate the oracle named by ``config.provider``.

    Raises ``KeyError`` if the provider is not registered.
    """
    _ensure_builtins_loaded()

    key = config.provider.strip().lower()
    if key not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY)) or "(none)"
        raise KeyError(f"Unknown oracle provider '{config.provider}'. Available: {available}.")
    return _REGISTRY[key](config, max_position_pct)


def available_providers() -> list[str]:
    _ensure_builtins_loaded()
    return sorted(_REGISTRY)


def _ensure_builtins_loaded() -> None:
    """Import built-in oracle modules so their ``@register`` calls execute."""
    import oracles.llm  # noqa: F401
    import oracles.rules  # noqa: F401
