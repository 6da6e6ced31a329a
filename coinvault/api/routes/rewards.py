"""
coinvault.api.routes.rewards — Claim endpoints
===============================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import Engine

from coinvault.api.deps import get_engine, get_identity
from coinvault.api.results import to_response
from coinvault.services import claim_service
from coinvault.services.audit import row_to_dict
from coinvault.services.auth_gate import Identity

router = APIRouter(tags=["rewards"])

EngineDep = Annotated[Engine, Depends(get_engine)]
IdentityDep = Annotated[Identity | None, Depends(get_identity)]


class ClaimBody(BaseModel):
    idempotency_key: str | None = None


@router.post("/rewards/{reward_id}/claim")
def claim_reward(
    reward_id: str,
    engine: EngineDep,
    identity: IdentityDep,
    body: ClaimBody | None = None,
):
    result = claim_service.claim_reward(
        engine, identity, reward_id,
        idempotency_key=body.idempotency_key if body else None,
    )
    return to_response(result, row_to_dict, success_status=201)


@router.get("/rewards/{reward_id}/eligibility")
def claim_eligibility(reward_id: str, engine: EngineDep, identity: IdentityDep):
    result = claim_service.can_claim_reward(engine, identity, reward_id)
    return to_response(result, lambda allowed: {"can_claim": allowed})


@router.post("/claims/{claim_id}/cancel")
def cancel_claim(claim_id: str, engine: EngineDep, identity: IdentityDep):
    return to_response(claim_service.cancel_claim(engine, identity, claim_id), row_to_dict)


@router.post("/claims/{claim_id}/approve")
def approve_claim(claim_id: str, engine: EngineDep, identity: IdentityDep):
    return to_response(claim_service.approve_claim(engine, identity, claim_id), row_to_dict)


@router.post("/claims/{claim_id}/ship")
def mark_claim_shipped(claim_id: str, engine: EngineDep, identity: IdentityDep):
    return to_response(
        claim_service.mark_claim_shipped(engine, identity, claim_id), row_to_dict,
    )


@router.post("/claims/{claim_id}/deliver")
def mark_claim_delivered(claim_id: str, engine: EngineDep, identity: IdentityDep):
    return to_response(
        claim_service.mark_claim_delivered(engine, identity, claim_id), row_to_dict,
    )
