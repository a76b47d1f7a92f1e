import pytest
from fastapi import HTTPException

from roomix.infra import jwt as jwt_helper
from roomix.infra.auth import get_optional_user, verify_access_jwt
from roomix.settings import settings


def test_verify_access_jwt_reads_subject_and_role():
	token = jwt_helper.encode_access({"sub": "user-1", "role": "admin"})
	user = verify_access_jwt(token)
	assert user.id == "user-1"
	assert user.is_admin


def test_verify_access_jwt_accepts_role_lists():
	token = jwt_helper.encode_access({"sub": "user-1", "roles": ["student", "moderator"]})
	assert verify_access_jwt(token).roles == ("student", "moderator")


def test_token_signed_with_other_key_is_rejected(monkeypatch):
	with monkeypatch.context() as patched:
		patched.setattr(settings, "secret_key", "someone-else")
		token = jwt_helper.encode_access({"sub": "user-1"})
	with pytest.raises(HTTPException) as exc:
		verify_access_jwt(token)
	assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_dev_headers_ignored_outside_dev():
	settings.environment = "production"
	assert await get_optional_user(x_user_id="u1", x_user_roles="admin", credentials=None) is None
	settings.environment = "dev"
	user = await get_optional_user(x_user_id="u1", x_user_roles="admin, student", credentials=None)
	assert user is not None
	assert user.roles == ("admin", "student")
