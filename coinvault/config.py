"""
coinvault.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for platform identity and the few product knobs the
coin economy needs.  Secrets (``DATABASE_URL``, ``JWT_SECRET``) never live
here; they come from the environment / ``.env``.

Usage::

    from coinvault.config import load_config

    cfg = load_config()                    # reads ./config.yaml by default
    print(cfg.direct_participation_types)  # ('fisico',)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_DIRECT_PARTICIPATION_TYPES: tuple[str, ...] = ("fisico",)
DEFAULT_WALLET_HISTORY_LIMIT = 50


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CoinvaultConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    platform_name: str

    # API
    api_port: int = 8000

    # Challenge types whose participations are submitted directly with proof.
    # Every other type is reviewed through flows outside the coin economy.
    direct_participation_types: tuple[str, ...] = DEFAULT_DIRECT_PARTICIPATION_TYPES

    # Wallet
    wallet_history_limit: int = DEFAULT_WALLET_HISTORY_LIMIT


def default_config() -> CoinvaultConfig:
    """Config used when no YAML file is present (tests, one-off scripts)."""
    return CoinvaultConfig(platform_name="Coinvault")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> CoinvaultConfig:
    """Read *path* and return a :class:`CoinvaultConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    types = raw.get("direct_participation_types") or DEFAULT_DIRECT_PARTICIPATION_TYPES
    return CoinvaultConfig(
        platform_name=raw["platform_name"],
        api_port=int(raw.get("api_port", 8000)),
        direct_participation_types=tuple(str(t) for t in types),
        wallet_history_limit=int(
            raw.get("wallet_history_limit", DEFAULT_WALLET_HISTORY_LIMIT)
        ),
    )
