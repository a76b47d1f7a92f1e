import pytest

from roomix.domain.common.exceptions import ValidationFailed
from roomix.domain.common.geo import BoundingBox, GeoPoint, ensure_indexable, haversine


def test_haversine_zero_and_known_distance():
	assert haversine(12.0, 77.0, 12.0, 77.0) == 0
	# one degree of latitude on a 6371 km sphere
	assert haversine(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_194.93, rel=1e-6)


def test_point_serialises_longitude_first():
	point = GeoPoint(lon=77.59, lat=12.97)
	assert point.coordinates() == [77.59, 12.97]
	assert GeoPoint.from_coordinates([77.59, 12.97]) == point


@pytest.mark.parametrize("lon,lat", [(181, 0), (-181, 0), (0, 91), (0, -91)])
def test_point_rejects_out_of_range(lon, lat):
	with pytest.raises(ValidationFailed):
		GeoPoint(lon=lon, lat=lat)


def test_polar_points_cannot_be_indexed():
	with pytest.raises(ValidationFailed):
		ensure_indexable(GeoPoint(lon=0, lat=89.0))
	assert ensure_indexable(GeoPoint(lon=0, lat=60.0)).lat == 60.0


def test_bounding_box_contains_edges():
	box = BoundingBox(north_east=GeoPoint(lon=77.6, lat=13.0), south_west=GeoPoint(lon=77.5, lat=12.9))
	assert box.contains(GeoPoint(lon=77.55, lat=12.95))
	assert box.contains(GeoPoint(lon=77.6, lat=13.0))
	assert not box.contains(GeoPoint(lon=77.7, lat=12.95))


def test_bounding_box_across_antimeridian():
	box = BoundingBox(north_east=GeoPoint(lon=-179.0, lat=1.0), south_west=GeoPoint(lon=179.0, lat=-1.0))
	assert box.contains(GeoPoint(lon=179.5, lat=0.0))
	assert box.contains(GeoPoint(lon=-179.5, lat=0.0))
	assert not box.contains(GeoPoint(lon=0.0, lat=0.0))


def test_bounding_box_requires_north_above_south():
	with pytest.raises(ValidationFailed):
		BoundingBox(north_east=GeoPoint(lon=1, lat=0), south_west=GeoPoint(lon=0, lat=1))


def test_bounding_box_dict_round_trip():
	data = {"north_east": {"latitude": 13.0, "longitude": 77.6}, "south_west": {"latitude": 12.9, "longitude": 77.5}}
	assert BoundingBox.from_dict(data).to_dict() == data
