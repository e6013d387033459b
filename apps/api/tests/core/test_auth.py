"""
Unit tests for bearer token authentication.
"""

from datetime import timedelta
from uuid import UUID

import pytest
from fastapi import HTTPException

from app.core.auth import Actor, Role, get_current_reviewer, resolve_actor
from app.core.security import create_access_token

USER_ID = UUID("00000000-0000-0000-0000-0000000000aa")


class TestResolveActor:
    """Tests for resolve_actor with signed tokens."""

    def test_valid_token(self):
        token = create_access_token(str(USER_ID), Role.PROGRAM_ADMIN.value, email="pa@example.com")

        actor = resolve_actor(token)

        assert actor.id == USER_ID
        assert actor.role == Role.PROGRAM_ADMIN
        assert actor.email == "pa@example.com"
        assert actor.is_reviewer
        assert not actor.is_admin

    def test_expired_token(self):
        token = create_access_token(
            str(USER_ID), Role.STUDENT.value, expires_delta=timedelta(seconds=-10)
        )

        with pytest.raises(HTTPException) as exc_info:
            resolve_actor(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "INVALID_TOKEN"

    def test_garbage_token(self):
        with pytest.raises(HTTPException) as exc_info:
            resolve_actor("not-a-jwt")

        assert exc_info.value.status_code == 401

    def test_unknown_role(self):
        token = create_access_token(str(USER_ID), "superuser")

        with pytest.raises(HTTPException) as exc_info:
            resolve_actor(token)

        assert exc_info.value.detail["error"] == "INVALID_TOKEN_CLAIMS"

    def test_wrong_token_type(self):
        token = create_access_token(str(USER_ID), Role.ADMIN.value, type="refresh")

        with pytest.raises(HTTPException) as exc_info:
            resolve_actor(token)

        assert exc_info.value.detail["error"] == "INVALID_TOKEN_TYPE"


class TestGetCurrentReviewer:
    @pytest.mark.asyncio
    async def test_student_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_reviewer(Actor(id=USER_ID, role=Role.STUDENT))

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_allowed(self):
        actor = Actor(id=USER_ID, role=Role.ADMIN)
        assert await get_current_reviewer(actor) is actor
