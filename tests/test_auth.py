import pytest
from fastapi import HTTPException
from jose import jwt

from lessondesk.auth import decode_access_token, get_current_actor, get_current_instructor_id
from lessondesk.config import JWT_ALGORITHM, SECRET_KEY


class _Credentials:
    def __init__(self, token):
        self.credentials = token


def _token(**claims):
    return jwt.encode(claims, SECRET_KEY, algorithm=JWT_ALGORITHM)


@pytest.mark.anyio
async def test_instructor_token_scopes_to_itself():
    actor = await get_current_actor(_Credentials(_token(sub="instructor-9", role="instructor")))
    assert actor.instructor_id == "instructor-9"
    assert actor.audit_actor_type == "instructor"
    assert actor.ai_state_actor_type == "human"
    assert await get_current_instructor_id(actor) == "instructor-9"


@pytest.mark.anyio
async def test_admin_without_instructor_scope_is_forbidden_on_bookings():
    actor = await get_current_actor(_Credentials(_token(sub="admin-1", role="admin")))
    assert actor.audit_actor_type == "admin"
    assert actor.ai_state_actor_type == "admin"
    with pytest.raises(HTTPException) as exc_info:
        await get_current_instructor_id(actor)
    assert exc_info.value.status_code == 403


@pytest.mark.anyio
async def test_unknown_role_is_rejected():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_actor(_Credentials(_token(sub="x", role="superuser")))
    assert exc_info.value.status_code == 401


def test_bad_signature_is_rejected():
    token = jwt.encode({"sub": "x"}, "another-key", algorithm=JWT_ALGORITHM)
    with pytest.raises(HTTPException) as exc_info:
        decode_access_token(token)
    assert exc_info.value.status_code == 401


@pytest.fixture
def anyio_backend():
    return "asyncio"
