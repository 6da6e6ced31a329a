"""
coinvault.api.routes.admin — Grant, challenge & reward catalog endpoints
=========================================================================

Authorization is decided by the services; these handlers only translate
request bodies.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import Engine

from coinvault.api.deps import get_engine, get_identity
from coinvault.api.results import to_response
from coinvault.database.models import ChallengeType, RewardType
from coinvault.services import catalog_service, challenge_service, grant_service
from coinvault.services.audit import row_to_dict
from coinvault.services.auth_gate import Identity

router = APIRouter(prefix="/admin", tags=["admin"])

EngineDep = Annotated[Engine, Depends(get_engine)]
IdentityDep = Annotated[Identity | None, Depends(get_identity)]


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class GrantBody(BaseModel):
    user_id: str
    amount: int
    description: str = ""


class RewardCreate(BaseModel):
    name: str
    coins_required: int
    quantity_available: int = 0
    type: str = RewardType.PHYSICAL.value
    description: str | None = None
    image_url: str | None = None


class RewardUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    image_url: str | None = None
    type: str | None = None
    coins_required: int | None = None
    quantity_available: int | None = None
    is_active: bool | None = None


class ChallengeCreate(BaseModel):
    title: str
    coins_reward: int = 0
    type: str = ChallengeType.FISICO.value
    description: str | None = None


class ChallengeUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    type: str | None = None
    coins_reward: int | None = None


class ActiveBody(BaseModel):
    is_active: bool


# ---------------------------------------------------------------------------
# Grants
# ---------------------------------------------------------------------------
@router.post("/grants")
def grant_coins(body: GrantBody, engine: EngineDep, identity: IdentityDep):
    result = grant_service.grant_coins(
        engine, identity, body.user_id, body.amount, body.description,
    )
    return to_response(result, row_to_dict, success_status=201)


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------
@router.post("/challenges")
def create_challenge(body: ChallengeCreate, engine: EngineDep, identity: IdentityDep):
    result = challenge_service.create_challenge(engine, identity, **body.model_dump())
    return to_response(result, row_to_dict, success_status=201)


@router.patch("/challenges/{challenge_id}")
def update_challenge(
    challenge_id: str, body: ChallengeUpdate, engine: EngineDep, identity: IdentityDep,
):
    changes = body.model_dump(exclude_unset=True)
    result = challenge_service.update_challenge(engine, identity, challenge_id, **changes)
    return to_response(result, row_to_dict)


# ---------------------------------------------------------------------------
# Reward catalog
# ---------------------------------------------------------------------------
@router.post("/rewards")
def create_reward(body: RewardCreate, engine: EngineDep, identity: IdentityDep):
    result = catalog_service.create_reward(engine, identity, **body.model_dump())
    return to_response(result, row_to_dict, success_status=201)


@router.patch("/rewards/{reward_id}")
def update_reward(
    reward_id: str, body: RewardUpdate, engine: EngineDep, identity: IdentityDep,
):
    changes = body.model_dump(exclude_unset=True)
    result = catalog_service.update_reward(engine, identity, reward_id, **changes)
    return to_response(result, row_to_dict)


@router.delete("/rewards/{reward_id}")
def delete_reward(reward_id: str, engine: EngineDep, identity: IdentityDep):
    result = catalog_service.delete_reward(engine, identity, reward_id)
    return to_response(result, lambda deleted: {"deleted": deleted})


@router.patch("/rewards/{reward_id}/active")
def toggle_reward_active(
    reward_id: str, body: ActiveBody, engine: EngineDep, identity: IdentityDep,
):
    result = catalog_service.toggle_reward_active(
        engine, identity, reward_id, body.is_active,
    )
    return to_response(result, row_to_dict)
