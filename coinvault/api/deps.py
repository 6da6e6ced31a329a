"""
coinvault.api.deps — FastAPI dependency injection
==================================================
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Header
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from coinvault.config import CoinvaultConfig, default_config, load_config
from coinvault.database.engine import create_db_engine
from coinvault.services.auth_gate import Identity

logger = logging.getLogger(__name__)

_WEAK_SECRETS = frozenset({
    "coinvault-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError if the secret is missing, blank, too short
    (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> CoinvaultConfig:
    try:
        return load_config()
    except FileNotFoundError:
        logger.warning("config.yaml not found; using built-in defaults")
        return default_config()


def get_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity | None:
    """Resolve the Bearer token into an :class:`Identity`.

    A missing or invalid token yields ``None``; the service layer decides
    whether the operation needs a caller and answers 401 itself.
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        logger.info("Rejected invalid bearer token")
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    return Identity(user_id=str(user_id), email=payload.get("email"))
