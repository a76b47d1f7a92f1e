import pytest

from roomix.domain.common.exceptions import Conflict, NotFound, Unauthorized, ValidationFailed
from roomix.domain.common.geo import BoundingBox, GeoPoint
from roomix.domain.directory.service import UniversityService
from roomix.infra.auth import AuthenticatedUser

ADMIN = AuthenticatedUser(id="admin-1", roles=("admin",))
STUDENT = AuthenticatedUser(id="student-1")


def _fields(name: str, *, lon: float = 77.5667, lat: float = 13.0219, city: str = "Bengaluru", state: str = "Karnataka") -> dict:
	return {
		"name": name,
		"location": GeoPoint(lon=lon, lat=lat),
		"campus_bounds": BoundingBox(
			north_east=GeoPoint(lon=lon + 0.005, lat=lat + 0.005),
			south_west=GeoPoint(lon=lon - 0.005, lat=lat - 0.005),
		),
		"address": "CV Raman Road",
		"city": city,
		"state": state,
	}


@pytest.mark.asyncio
async def test_create_requires_admin():
	service = UniversityService()
	with pytest.raises(Unauthorized):
		await service.create(_fields("Indian Institute of Science"), STUDENT)


@pytest.mark.asyncio
async def test_names_are_unique_ignoring_case_and_spacing():
	service = UniversityService()
	await service.create(_fields("Indian Institute of Science"), ADMIN)
	with pytest.raises(Conflict) as exc:
		await service.create(_fields("  indian institute  OF science "), ADMIN)
	assert exc.value.reason == "university_name_taken"
	assert len(await service.list_active()) == 1


@pytest.mark.asyncio
async def test_list_active_sorted_by_name_and_soft_delete_hides():
	service = UniversityService()
	zeta = await service.create(_fields("Zeta College"), ADMIN)
	alpha = await service.create(_fields("alpha University", lon=77.6, lat=12.9), ADMIN)
	assert [u.id for u in await service.list_active()] == [alpha.id, zeta.id]

	deleted = await service.delete(zeta.id, ADMIN)
	assert deleted.is_active is False
	assert [u.id for u in await service.list_active()] == [alpha.id]
	with pytest.raises(NotFound):
		await service.get(zeta.id)
	assert (await service.get(zeta.id, ADMIN)).id == zeta.id


@pytest.mark.asyncio
async def test_search_matches_name_city_or_state():
	service = UniversityService()
	iisc = await service.create(_fields("Indian Institute of Science"), ADMIN)
	iitb = await service.create(_fields("IIT Bombay", lon=72.9133, lat=19.1334, city="Mumbai", state="Maharashtra"), ADMIN)

	assert [u.id for u in await service.search("science")] == [iisc.id]
	assert [u.id for u in await service.search("mumbai")] == [iitb.id]
	assert [u.id for u in await service.search("MAHA")] == [iitb.id]
	with pytest.raises(ValidationFailed):
		await service.search("")


@pytest.mark.asyncio
async def test_nearby_uses_default_radius_and_returns_distance():
	service = UniversityService()
	iisc = await service.create(_fields("Indian Institute of Science"), ADMIN)
	await service.create(_fields("IIT Bombay", lon=72.9133, lat=19.1334, city="Mumbai", state="Maharashtra"), ADMIN)

	hits = await service.nearby(GeoPoint(lon=77.5946, lat=12.9716))
	assert [u.id for u, _ in hits] == [iisc.id]
	assert 0 < hits[0][1] < 50_000
	assert await service.nearby(GeoPoint(lon=77.5946, lat=12.9716), 1) == []


@pytest.mark.asyncio
async def test_containing_uses_campus_bounds():
	service = UniversityService()
	iisc = await service.create(_fields("Indian Institute of Science"), ADMIN)
	assert [u.id for u in await service.containing(GeoPoint(lon=77.5680, lat=13.0225))] == [iisc.id]
	assert await service.containing(GeoPoint(lon=77.60, lat=13.0225)) == []


@pytest.mark.asyncio
async def test_rename_moves_name_reservation():
	service = UniversityService()
	first = await service.create(_fields("Old Name"), ADMIN)
	second = await service.create(_fields("Other", lon=77.6, lat=12.9), ADMIN)

	with pytest.raises(Conflict):
		await service.update(second.id, {"name": "old name"}, ADMIN)

	renamed = await service.update(first.id, {"name": "New Name", "city": "Mysuru"}, ADMIN)
	assert renamed.name == "New Name"
	assert renamed.city == "Mysuru"

	# the old name is free again, the new one is taken
	await service.update(second.id, {"name": "Old Name"}, ADMIN)
	with pytest.raises(Conflict):
		await service.create(_fields("NEW NAME"), ADMIN)


@pytest.mark.asyncio
async def test_update_missing_university_and_permissions():
	service = UniversityService()
	with pytest.raises(NotFound):
		await service.update("missing", {"city": "X"}, ADMIN)
	created = await service.create(_fields("Some College"), ADMIN)
	with pytest.raises(Unauthorized):
		await service.update(created.id, {"city": "X"}, STUDENT)
	with pytest.raises(Unauthorized):
		await service.delete(created.id, STUDENT)
