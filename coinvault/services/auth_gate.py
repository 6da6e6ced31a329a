"""
coinvault.services.auth_gate — Authentication & Reviewer Authorization
=======================================================================

The transport layer resolves the caller into an :class:`Identity` (or
``None``) and hands it to the service.  Every mutating operation calls
:func:`authenticate` first; reviewer-only operations then call
:func:`authorize_admin_or_creator` before touching any domain row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from coinvault.constants import MSG_NOT_AUTHENTICATED, MSG_NOT_AUTHORIZED
from coinvault.database.models import User, UserRole
from coinvault.errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller, as vouched for by the auth collaborator."""

    user_id: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class RoleProfile:
    role: str
    is_creator: bool

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def authenticate(identity: Identity | None) -> Identity:
    """Return *identity* or raise :class:`AuthenticationError`."""
    if identity is None or not identity.user_id:
        raise AuthenticationError(MSG_NOT_AUTHENTICATED)
    return identity


def load_role_profile(session: Session, user_id: str) -> RoleProfile | None:
    row = session.execute(
        select(User.role, User.is_creator).where(User.id == user_id)
    ).first()
    if row is None:
        return None
    return RoleProfile(role=row.role, is_creator=bool(row.is_creator))


def authorize_admin_or_creator(session: Session, identity: Identity) -> RoleProfile:
    """Allow admins and creators; refuse everyone else (including unknown ids)."""
    profile = load_role_profile(session, identity.user_id)
    if profile is None or not (profile.is_admin or profile.is_creator):
        logger.warning("Reviewer access refused for user %s", identity.user_id)
        raise AuthorizationError(MSG_NOT_AUTHORIZED)
    return profile


def authorize_admin(session: Session, identity: Identity) -> RoleProfile:
    """Admin-only variant; creators are refused."""
    profile = load_role_profile(session, identity.user_id)
    if profile is None or not profile.is_admin:
        logger.warning("Admin access refused for user %s", identity.user_id)
        raise AuthorizationError(MSG_NOT_AUTHORIZED)
    return profile


def require_reviewer(session: Session, identity: Identity | None) -> Identity:
    """Authenticate, then authorize as admin or creator, in that order."""
    caller = authenticate(identity)
    authorize_admin_or_creator(session, caller)
    return caller
