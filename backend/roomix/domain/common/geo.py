"""Geographic primitives: WGS84 points, great-circle distance, campus rectangles."""

from __future__ import annotations

import math
from dataclasses import dataclass

from roomix.domain.common.exceptions import ValidationFailed

EARTH_RADIUS_M = 6_371_000


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
	"""Return the great-circle distance between two points in meters."""

	phi1, phi2 = math.radians(lat1), math.radians(lat2)
	dphi = math.radians(lat2 - lat1)
	dlambda = math.radians(lon2 - lon1)
	a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
	return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(slots=True, frozen=True)
class GeoPoint:
	"""A WGS84 point. Serialized longitude first, as in GeoJSON."""

	lon: float
	lat: float

	def __post_init__(self) -> None:
		if not (-180.0 <= self.lon <= 180.0) or not (-90.0 <= self.lat <= 90.0):
			raise ValidationFailed("invalid_coordinates")

	@classmethod
	def from_coordinates(cls, coordinates) -> "GeoPoint":
		lon, lat = coordinates
		return cls(lon=float(lon), lat=float(lat))

	def coordinates(self) -> list[float]:
		return [self.lon, self.lat]

	def distance_m(self, other: "GeoPoint") -> float:
		return haversine(self.lat, self.lon, other.lat, other.lon)


@dataclass(slots=True, frozen=True)
class BoundingBox:
	"""Campus rectangle given by its north-east and south-west corners.

	A box whose west edge lies east of its east edge wraps the antimeridian.
	"""

	north_east: GeoPoint
	south_west: GeoPoint

	def __post_init__(self) -> None:
		if self.north_east.lat < self.south_west.lat:
			raise ValidationFailed("invalid_campus_bounds")

	def contains(self, point: GeoPoint) -> bool:
		if not (self.south_west.lat <= point.lat <= self.north_east.lat):
			return False
		west, east = self.south_west.lon, self.north_east.lon
		if west <= east:
			return west <= point.lon <= east
		return point.lon >= west or point.lon <= east

	def to_dict(self) -> dict:
		return {
			"north_east": {"latitude": self.north_east.lat, "longitude": self.north_east.lon},
			"south_west": {"latitude": self.south_west.lat, "longitude": self.south_west.lon},
		}

	@classmethod
	def from_dict(cls, data: dict) -> "BoundingBox":
		ne = data["north_east"]
		sw = data["south_west"]
		return cls(
			north_east=GeoPoint(lon=float(ne["longitude"]), lat=float(ne["latitude"])),
			south_west=GeoPoint(lon=float(sw["longitude"]), lat=float(sw["latitude"])),
		)


# Redis GEO sets reject latitudes closer to the poles than this
GEO_INDEX_MAX_LAT = 85.05112878


def ensure_indexable(point: GeoPoint) -> GeoPoint:
	if abs(point.lat) > GEO_INDEX_MAX_LAT:
		raise ValidationFailed("latitude_out_of_index_range")
	return point
