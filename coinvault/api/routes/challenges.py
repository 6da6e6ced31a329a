"""
coinvault.api.routes.challenges — Participation endpoints
==========================================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import Engine

from coinvault.api.deps import get_config, get_engine, get_identity
from coinvault.api.results import to_response
from coinvault.config import CoinvaultConfig
from coinvault.database.models import ChallengeParticipation
from coinvault.services import challenge_service
from coinvault.services.audit import row_to_dict
from coinvault.services.auth_gate import Identity

router = APIRouter(tags=["challenges"])

EngineDep = Annotated[Engine, Depends(get_engine)]
IdentityDep = Annotated[Identity | None, Depends(get_identity)]


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class ParticipateBody(BaseModel):
    result_value: int | None = None
    video_proof_url: str | None = None
    social_media_url: str | None = None
    instagram_proof_url: str | None = None


class ApproveBody(BaseModel):
    override_coins: int | None = None


class RejectBody(BaseModel):
    reason: str | None = None


class ActiveBody(BaseModel):
    is_active: bool


def _participation_dict(p: ChallengeParticipation) -> dict:
    data = row_to_dict(p)
    data["proof_urls"] = p.proof_urls
    return data


# ---------------------------------------------------------------------------
# Participant
# ---------------------------------------------------------------------------
@router.post("/challenges/{challenge_id}/participate")
def participate(
    challenge_id: str,
    body: ParticipateBody,
    engine: EngineDep,
    identity: IdentityDep,
    cfg: Annotated[CoinvaultConfig, Depends(get_config)],
):
    result = challenge_service.participate(
        engine,
        identity,
        challenge_id=challenge_id,
        result_value=body.result_value,
        video_proof_url=body.video_proof_url,
        social_media_url=body.social_media_url,
        instagram_proof_url=body.instagram_proof_url,
        direct_types=cfg.direct_participation_types,
    )
    return to_response(result, _participation_dict, success_status=201)


# ---------------------------------------------------------------------------
# Reviewer
# ---------------------------------------------------------------------------
@router.post("/participations/{participation_id}/approve")
def approve_participation(
    participation_id: str,
    engine: EngineDep,
    identity: IdentityDep,
    body: ApproveBody | None = None,
):
    result = challenge_service.approve_participation(
        engine, identity, participation_id,
        override_coins=body.override_coins if body else None,
    )
    return to_response(result, _participation_dict)


@router.post("/participations/{participation_id}/reject")
def reject_participation(
    participation_id: str,
    engine: EngineDep,
    identity: IdentityDep,
    body: RejectBody | None = None,
):
    result = challenge_service.reject_participation(
        engine, identity, participation_id, reason=body.reason if body else None,
    )
    return to_response(result, _participation_dict)


@router.post("/participations/{participation_id}/revert")
def revert_approval(participation_id: str, engine: EngineDep, identity: IdentityDep):
    result = challenge_service.revert_approval(engine, identity, participation_id)
    return to_response(result, _participation_dict)


@router.post("/challenges/{challenge_id}/approve-all")
def approve_all_pending(challenge_id: str, engine: EngineDep, identity: IdentityDep):
    result = challenge_service.approve_all_pending(engine, identity, challenge_id)
    return to_response(result, lambda count: {"approved": count})


@router.post("/challenges/{challenge_id}/close")
def close_challenge(challenge_id: str, engine: EngineDep, identity: IdentityDep):
    result = challenge_service.close_challenge(engine, identity, challenge_id)
    return to_response(result, row_to_dict)


@router.patch("/challenges/{challenge_id}/active")
def toggle_challenge_active(
    challenge_id: str, body: ActiveBody, engine: EngineDep, identity: IdentityDep,
):
    result = challenge_service.toggle_challenge_active(
        engine, identity, challenge_id, body.is_active,
    )
    return to_response(result, row_to_dict)
