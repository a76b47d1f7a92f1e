"""FastAPI routes for universities and campus lookups."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from roomix.domain.common.geo import GeoPoint
from roomix.domain.directory import UniversityService, schemas
from roomix.infra.auth import AuthenticatedUser, get_admin_user, get_optional_user

router = APIRouter(prefix="/universities", tags=["universities"])

_service = UniversityService()


def _listing(universities) -> schemas.UniversityListResponse:
	items = [schemas.UniversityOut.from_domain(university) for university in universities]
	return schemas.UniversityListResponse(count=len(items), universities=items)


@router.get("", response_model=schemas.UniversityListResponse)
async def list_universities_endpoint() -> schemas.UniversityListResponse:
	return _listing(await _service.list_active())


@router.get("/search", response_model=schemas.UniversityListResponse)
async def search_endpoint(query: Optional[str] = Query(default=None)) -> schemas.UniversityListResponse:
	return _listing(await _service.search(query))


@router.get("/nearby", response_model=schemas.UniversityListResponse)
async def nearby_endpoint(
	latitude: float = Query(...),
	longitude: float = Query(...),
	radius_km: Optional[float] = Query(default=None, gt=0),
) -> schemas.UniversityListResponse:
	hits = await _service.nearby(GeoPoint(lon=longitude, lat=latitude), radius_km)
	items = [schemas.UniversityOut.from_domain(university, distance_m=distance) for university, distance in hits]
	return schemas.UniversityListResponse(count=len(items), universities=items)


@router.get("/containing", response_model=schemas.UniversityListResponse)
async def containing_endpoint(
	latitude: float = Query(...),
	longitude: float = Query(...),
) -> schemas.UniversityListResponse:
	return _listing(await _service.containing(GeoPoint(lon=longitude, lat=latitude)))


@router.get("/{university_id}", response_model=schemas.UniversityOut)
async def get_university_endpoint(
	university_id: str,
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> schemas.UniversityOut:
	return schemas.UniversityOut.from_domain(await _service.get(university_id, auth_user))


@router.post("", response_model=schemas.UniversityOut, status_code=status.HTTP_201_CREATED)
async def create_university_endpoint(
	payload: schemas.UniversityCreate,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> schemas.UniversityOut:
	return schemas.UniversityOut.from_domain(await _service.create(payload.to_fields(), admin))


@router.put("/{university_id}", response_model=schemas.UniversityOut)
async def update_university_endpoint(
	university_id: str,
	payload: schemas.UniversityUpdate,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> schemas.UniversityOut:
	university = await _service.update(university_id, payload.to_changes(), admin)
	return schemas.UniversityOut.from_domain(university)


@router.delete("/{university_id}", status_code=status.HTTP_200_OK)
async def delete_university_endpoint(
	university_id: str,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> dict:
	await _service.delete(university_id, admin)
	return {"ok": True}
