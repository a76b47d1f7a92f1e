"""FastAPI routes for roommate profiles and matching."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from roomix.domain.roommates import RoommateService, schemas
from roomix.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/roommates", tags=["roommates"])

_service = RoommateService()


@router.post("/profile", response_model=schemas.ProfileOut)
async def submit_profile_endpoint(
	payload: schemas.ProfileSubmission,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ProfileOut:
	profile = await _service.submit_profile(auth_user.id, payload.to_changes())
	return schemas.ProfileOut.from_domain(profile)


@router.get("/profile", response_model=schemas.ProfileOut)
async def my_profile_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.ProfileOut:
	return schemas.ProfileOut.from_domain(await _service.get_profile(auth_user.id))


@router.delete("/profile", status_code=status.HTTP_200_OK)
async def delete_profile_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> dict:
	await _service.delete_profile(auth_user.id)
	return {"ok": True}


@router.get("/profile/{user_id}", response_model=schemas.ProfileOut)
async def profile_endpoint(
	user_id: str,
	_: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ProfileOut:
	return schemas.ProfileOut.from_domain(await _service.get_profile(user_id))


@router.get("/all", response_model=schemas.ProfileListResponse)
async def list_profiles_endpoint(
	_: AuthenticatedUser = Depends(get_current_user),
) -> schemas.ProfileListResponse:
	profiles = await _service.list_profiles()
	return schemas.ProfileListResponse(
		count=len(profiles),
		profiles=[schemas.ProfileOut.from_domain(profile) for profile in profiles],
	)


@router.get("/matches", response_model=schemas.MatchListResponse)
async def matches_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.MatchListResponse:
	ranked = await _service.matches(auth_user.id)
	matches = [
		schemas.MatchOut(**schemas.ProfileOut.from_domain(match.profile).model_dump(), compatibility=match.score)
		for match in ranked
	]
	return schemas.MatchListResponse(count=len(matches), matches=matches)
