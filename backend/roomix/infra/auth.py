"""Authentication helpers for FastAPI endpoints.

- Bearer JWT verification (HS256) using settings.secret_key.
- Dev headers (X-User-Id / X-User-Roles) are only respected in development.
- Optional principal resolution for public routes where admins get elevated visibility.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roomix.infra import jwt as jwt_helper
from roomix.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	roles: Tuple[str, ...] = ()
	name: Optional[str] = None

	def has_role(self, role: str) -> bool:
		return role in self.roles

	@property
	def is_admin(self) -> bool:
		return self.has_role(settings.admin_role)


_bearer_scheme = HTTPBearer(auto_error=False)


def _parse_roles(claim: object) -> Tuple[str, ...]:
	if isinstance(claim, (list, tuple)):
		return tuple(str(r).strip() for r in claim if str(r).strip())
	if isinstance(claim, str):
		return tuple(part.strip() for part in claim.split(",") if part.strip())
	return ()


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser.

	`role` (single, as issued by the identity service) and `roles` (list or
	comma-separated string) are both accepted.
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except jwt.PyJWTError:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	roles = _parse_roles(payload.get("roles") or payload.get("role"))
	name = payload.get("name")
	return AuthenticatedUser(id=sub, roles=roles, name=str(name) if name is not None else None)


async def get_optional_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_roles: Optional[str] = Header(default=None, alias="X-User-Roles"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[AuthenticatedUser]:
	"""Resolve the caller if credentials were presented, else None."""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)
	if settings.is_dev() and x_user_id:
		return AuthenticatedUser(id=x_user_id, roles=_parse_roles(x_user_roles))
	return None


async def get_current_user(
	user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> AuthenticatedUser:
	if user is None:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	return user


async def get_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	if user.is_admin:
		return user
	raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")