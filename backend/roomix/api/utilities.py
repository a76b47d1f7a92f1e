"""FastAPI routes for community-submitted campus utilities."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from roomix.domain.common.exceptions import ValidationFailed
from roomix.domain.common.geo import GeoPoint
from roomix.domain.directory import UtilityService, schemas
from roomix.domain.directory.models import Reject, Verify
from roomix.infra.auth import AuthenticatedUser, get_admin_user, get_current_user, get_optional_user

router = APIRouter(prefix="/utilities", tags=["utilities"])

_service = UtilityService()


def _listing(utilities) -> schemas.UtilityListResponse:
	items = [schemas.UtilityOut.from_domain(utility) for utility in utilities]
	return schemas.UtilityListResponse(count=len(items), utilities=items)


@router.get("", response_model=schemas.UtilityListResponse)
async def list_utilities_endpoint(
	category: Optional[str] = Query(default=None),
	verified: Optional[bool] = Query(default=None),
	latitude: Optional[float] = Query(default=None),
	longitude: Optional[float] = Query(default=None),
	radius_km: Optional[float] = Query(default=None, gt=0),
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> schemas.UtilityListResponse:
	if latitude is None and longitude is None:
		return _listing(await _service.list(category=category, verified=verified, actor=auth_user))
	if latitude is None or longitude is None:
		raise ValidationFailed("latitude_and_longitude_required")
	hits = await _service.nearby(
		GeoPoint(lon=longitude, lat=latitude),
		radius_km,
		category=category,
		verified=verified,
		actor=auth_user,
	)
	items = [schemas.UtilityOut.from_domain(utility, distance_m=distance) for utility, distance in hits]
	return schemas.UtilityListResponse(count=len(items), utilities=items)


@router.post("", response_model=schemas.UtilityOut, status_code=status.HTTP_201_CREATED)
async def submit_utility_endpoint(
	payload: schemas.UtilityCreate,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.UtilityOut:
	utility = await _service.submit(auth_user, payload.to_fields())
	return schemas.UtilityOut.from_domain(utility)


@router.get("/category/{category}", response_model=schemas.UtilityListResponse)
async def category_endpoint(category: str) -> schemas.UtilityListResponse:
	return _listing(await _service.by_category(category))


@router.get("/search/{query}", response_model=schemas.UtilityListResponse)
async def search_endpoint(query: str) -> schemas.UtilityListResponse:
	return _listing(await _service.search(query))


@router.get("/mine", response_model=schemas.UtilityListResponse)
async def mine_endpoint(auth_user: AuthenticatedUser = Depends(get_current_user)) -> schemas.UtilityListResponse:
	return _listing(await _service.mine(auth_user))


@router.get("/admin/all", response_model=schemas.UtilityListResponse)
async def admin_all_endpoint(admin: AuthenticatedUser = Depends(get_admin_user)) -> schemas.UtilityListResponse:
	return _listing(await _service.admin_all(admin))


@router.get("/admin/pending", response_model=schemas.UtilityListResponse)
async def admin_pending_endpoint(admin: AuthenticatedUser = Depends(get_admin_user)) -> schemas.UtilityListResponse:
	return _listing(await _service.pending(admin))


@router.put("/admin/{utility_id}/verify", response_model=schemas.ModerationResponse)
async def verify_endpoint(
	utility_id: str,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> schemas.ModerationResponse:
	utility = await _service.moderate(utility_id, Verify(), admin)
	return schemas.ModerationResponse(message="utility_verified", utility=schemas.UtilityOut.from_domain(utility))


@router.put("/admin/{utility_id}/reject", response_model=schemas.ModerationResponse)
async def reject_endpoint(
	utility_id: str,
	payload: schemas.RejectRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> schemas.ModerationResponse:
	utility = await _service.moderate(utility_id, Reject(payload.reason), admin)
	return schemas.ModerationResponse(message="utility_rejected", utility=schemas.UtilityOut.from_domain(utility))


@router.post("/{utility_id}/review", response_model=schemas.UtilityOut, status_code=status.HTTP_201_CREATED)
async def review_endpoint(
	utility_id: str,
	payload: schemas.ReviewCreate,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.UtilityOut:
	utility = await _service.review(utility_id, auth_user, payload.rating, payload.comment)
	return schemas.UtilityOut.from_domain(utility)


@router.get("/{utility_id}", response_model=schemas.UtilityOut)
async def get_utility_endpoint(
	utility_id: str,
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> schemas.UtilityOut:
	return schemas.UtilityOut.from_domain(await _service.get(utility_id, auth_user))


@router.put("/{utility_id}", response_model=schemas.UtilityOut)
async def update_utility_endpoint(
	utility_id: str,
	payload: schemas.UtilityUpdate,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.UtilityOut:
	utility = await _service.update(utility_id, auth_user, payload.to_changes())
	return schemas.UtilityOut.from_domain(utility)


@router.delete("/{utility_id}", status_code=status.HTTP_200_OK)
async def delete_utility_endpoint(
	utility_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
	await _service.delete(utility_id, auth_user)
	return {"ok": True}
