"""
tests/test_auth_gate.py — Authentication & Reviewer Authorization
==================================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from conftest import make_user
from coinvault.errors import AuthenticationError, AuthorizationError
from coinvault.services.auth_gate import (
    Identity,
    authenticate,
    authorize_admin,
    authorize_admin_or_creator,
    require_reviewer,
)


class TestAuthenticate:
    def test_none_is_unauthenticated(self):
        with pytest.raises(AuthenticationError, match="Usuário não autenticado"):
            authenticate(None)

    def test_blank_user_id_is_unauthenticated(self):
        with pytest.raises(AuthenticationError):
            authenticate(Identity(user_id=""))

    def test_identity_passes_through(self):
        ident = Identity(user_id="u1")
        assert authenticate(ident) is ident


class TestAuthorize:
    def test_admin_allowed(self, db_engine, admin):
        with Session(db_engine) as session:
            assert authorize_admin_or_creator(session, admin).is_admin

    def test_creator_allowed(self, db_engine, creator):
        with Session(db_engine) as session:
            profile = authorize_admin_or_creator(session, creator)
        assert profile.is_creator and not profile.is_admin

    def test_regular_user_refused(self, db_engine, fan):
        with Session(db_engine) as session:
            with pytest.raises(AuthorizationError, match="Acesso não autorizado"):
                authorize_admin_or_creator(session, fan)

    def test_unknown_profile_refused(self, db_engine):
        with Session(db_engine) as session:
            with pytest.raises(AuthorizationError):
                authorize_admin_or_creator(session, Identity(user_id="ghost"))

    def test_admin_only_refuses_creator(self, db_engine, creator):
        with Session(db_engine) as session:
            with pytest.raises(AuthorizationError):
                authorize_admin(session, creator)


def test_require_reviewer_checks_authentication_first(db_engine):
    make_user(db_engine, user_id="fan")
    with Session(db_engine) as session:
        with pytest.raises(AuthenticationError):
            require_reviewer(session, None)
