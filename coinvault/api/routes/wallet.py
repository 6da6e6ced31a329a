"""
coinvault.api.routes.wallet — Caller's wallet
==============================================
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import Engine

from coinvault.api.deps import get_config, get_engine, get_identity
from coinvault.api.results import to_response
from coinvault.config import CoinvaultConfig
from coinvault.services import wallet_service
from coinvault.services.auth_gate import Identity

router = APIRouter(tags=["wallet"])


@router.get("/wallet")
def get_wallet(
    engine: Annotated[Engine, Depends(get_engine)],
    identity: Annotated[Identity | None, Depends(get_identity)],
    cfg: Annotated[CoinvaultConfig, Depends(get_config)],
):
    result = wallet_service.get_wallet_summary(
        engine, identity, history_limit=cfg.wallet_history_limit,
    )
    return to_response(result, asdict)
