"""Pydantic schemas for utility and university endpoints.

Request models convert to keyword arguments for the frozen domain dataclasses;
domain validation (categories, weekdays, coordinates, bounds) happens there so
the same rules apply to every caller of the services.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from roomix.domain.common.exceptions import ValidationFailed
from roomix.domain.common.geo import BoundingBox, GeoPoint
from roomix.domain.directory.models import (
	Contact,
	University,
	Utility,
	UtilityCategory,
	parse_operating_hours,
)


class ContactIn(BaseModel):
	phone: Optional[str] = None
	email: Optional[str] = None
	website: Optional[str] = None

	def to_domain(self) -> Contact:
		return Contact(phone=self.phone, email=self.email, website=self.website)


class HoursIn(BaseModel):
	open: Optional[str] = None
	close: Optional[str] = None


def _point(latitude: Optional[float], longitude: Optional[float]) -> Optional[GeoPoint]:
	if latitude is None and longitude is None:
		return None
	if latitude is None or longitude is None:
		raise ValidationFailed("latitude_and_longitude_required")
	return GeoPoint(lon=longitude, lat=latitude)


def _hours(hours: Dict[str, HoursIn]) -> dict:
	return parse_operating_hours({day: value.model_dump() for day, value in hours.items()})


class UtilityCreate(BaseModel):
	name: str = Field(..., min_length=1, max_length=200)
	category: str
	latitude: float
	longitude: float
	address: Optional[str] = None
	contact: ContactIn = Field(default_factory=ContactIn)
	description: Optional[str] = None
	image: Optional[str] = None
	tags: list[str] = Field(default_factory=list)
	operating_hours: Dict[str, HoursIn] = Field(default_factory=dict)

	def to_fields(self) -> Dict[str, Any]:
		return {
			"name": self.name.strip(),
			"category": UtilityCategory.parse(self.category),
			"location": GeoPoint(lon=self.longitude, lat=self.latitude),
			"address": self.address,
			"contact": self.contact.to_domain(),
			"description": self.description,
			"image": self.image,
			"tags": tuple(tag.strip() for tag in self.tags if tag.strip()),
			"operating_hours": _hours(self.operating_hours),
		}


class UtilityUpdate(BaseModel):
	"""Partial update; omitted fields are left untouched."""

	name: Optional[str] = Field(default=None, min_length=1, max_length=200)
	category: Optional[str] = None
	latitude: Optional[float] = None
	longitude: Optional[float] = None
	address: Optional[str] = None
	contact: Optional[ContactIn] = None
	description: Optional[str] = None
	image: Optional[str] = None
	tags: Optional[list[str]] = None
	operating_hours: Optional[Dict[str, HoursIn]] = None

	def to_changes(self) -> Dict[str, Any]:
		changes: Dict[str, Any] = {}
		if self.name is not None:
			changes["name"] = self.name.strip()
		if self.category is not None:
			changes["category"] = UtilityCategory.parse(self.category)
		location = _point(self.latitude, self.longitude)
		if location is not None:
			changes["location"] = location
		if self.address is not None:
			changes["address"] = self.address
		if self.contact is not None:
			changes["contact"] = self.contact.to_domain()
		if self.description is not None:
			changes["description"] = self.description
		if self.image is not None:
			changes["image"] = self.image
		if self.tags is not None:
			changes["tags"] = tuple(tag.strip() for tag in self.tags if tag.strip())
		if self.operating_hours is not None:
			changes["operating_hours"] = _hours(self.operating_hours)
		return changes


class ReviewCreate(BaseModel):
	# Range is enforced by the domain Review so the 422 carries a stable reason
	rating: int
	comment: Optional[str] = Field(default=None, max_length=1000)


class RejectRequest(BaseModel):
	reason: str = Field(..., min_length=1, max_length=500)


class LocationOut(BaseModel):
	type: str = "Point"
	coordinates: list[float]
	address: Optional[str] = None


class ReviewOut(BaseModel):
	user_id: str
	rating: int
	comment: Optional[str] = None
	created_at: datetime


class UtilityOut(BaseModel):
	id: str
	name: str
	category: str
	location: LocationOut
	contact: ContactIn
	description: Optional[str] = None
	image: Optional[str] = None
	tags: list[str]
	operating_hours: Dict[str, HoursIn]
	reviews: list[ReviewOut]
	rating: float
	verified: bool
	verification_status: str
	rejection_reason: Optional[str] = None
	is_active: bool
	added_by: str
	created_at: datetime
	updated_at: datetime
	distance_m: Optional[float] = None

	@classmethod
	def from_domain(cls, utility: Utility, *, distance_m: Optional[float] = None) -> "UtilityOut":
		return cls(
			id=utility.id,
			name=utility.name,
			category=utility.category.value,
			location=LocationOut(coordinates=utility.location.coordinates(), address=utility.address),
			contact=ContactIn(**utility.contact.to_dict()),
			description=utility.description,
			image=utility.image,
			tags=list(utility.tags),
			operating_hours={
				day: HoursIn(open=hours.open, close=hours.close) for day, hours in utility.operating_hours.items()
			},
			reviews=[
				ReviewOut(
					user_id=review.user_id,
					rating=review.rating,
					comment=review.comment,
					created_at=review.created_at,
				)
				for review in utility.reviews
			],
			rating=utility.rating,
			verified=utility.verified,
			verification_status=utility.verification.status.value,
			rejection_reason=utility.verification.rejection_reason,
			is_active=utility.is_active,
			added_by=utility.added_by,
			created_at=utility.created_at,
			updated_at=utility.updated_at,
			distance_m=round(distance_m, 2) if distance_m is not None else None,
		)


class UtilityListResponse(BaseModel):
	count: int
	utilities: list[UtilityOut]


class ModerationResponse(BaseModel):
	message: str
	utility: UtilityOut


class CornerIn(BaseModel):
	latitude: float
	longitude: float


class CampusBoundsIn(BaseModel):
	north_east: CornerIn
	south_west: CornerIn

	def to_domain(self) -> BoundingBox:
		return BoundingBox(
			north_east=GeoPoint(lon=self.north_east.longitude, lat=self.north_east.latitude),
			south_west=GeoPoint(lon=self.south_west.longitude, lat=self.south_west.latitude),
		)


class UniversityCreate(BaseModel):
	name: str = Field(..., min_length=1, max_length=200)
	latitude: float
	longitude: float
	campus_bounds: CampusBoundsIn
	address: str = Field(..., min_length=1)
	description: str = ""
	city: str = Field(..., min_length=1)
	state: str = Field(..., min_length=1)
	zip_code: Optional[str] = None
	image_url: Optional[str] = None

	def to_fields(self) -> Dict[str, Any]:
		return {
			"name": " ".join(self.name.split()),
			"location": GeoPoint(lon=self.longitude, lat=self.latitude),
			"campus_bounds": self.campus_bounds.to_domain(),
			"address": self.address,
			"description": self.description,
			"city": self.city,
			"state": self.state,
			"zip_code": self.zip_code,
			"image_url": self.image_url,
		}


class UniversityUpdate(BaseModel):
	name: Optional[str] = Field(default=None, min_length=1, max_length=200)
	latitude: Optional[float] = None
	longitude: Optional[float] = None
	campus_bounds: Optional[CampusBoundsIn] = None
	address: Optional[str] = None
	description: Optional[str] = None
	city: Optional[str] = None
	state: Optional[str] = None
	zip_code: Optional[str] = None
	image_url: Optional[str] = None
	is_active: Optional[bool] = None

	def to_changes(self) -> Dict[str, Any]:
		changes: Dict[str, Any] = {}
		if self.name is not None:
			changes["name"] = " ".join(self.name.split())
		location = _point(self.latitude, self.longitude)
		if location is not None:
			changes["location"] = location
		if self.campus_bounds is not None:
			changes["campus_bounds"] = self.campus_bounds.to_domain()
		for name in ("address", "description", "city", "state", "zip_code", "image_url", "is_active"):
			value = getattr(self, name)
			if value is not None:
				changes[name] = value
		return changes


class UniversityOut(BaseModel):
	id: str
	name: str
	location: LocationOut
	campus_bounds: Dict[str, Dict[str, float]]
	address: str
	description: str
	city: str
	state: str
	zip_code: Optional[str] = None
	image_url: Optional[str] = None
	is_active: bool
	created_at: datetime
	updated_at: datetime
	distance_m: Optional[float] = None

	@classmethod
	def from_domain(cls, university: University, *, distance_m: Optional[float] = None) -> "UniversityOut":
		return cls(
			id=university.id,
			name=university.name,
			location=LocationOut(coordinates=university.location.coordinates()),
			campus_bounds=university.campus_bounds.to_dict(),
			address=university.address,
			description=university.description,
			city=university.city,
			state=university.state,
			zip_code=university.zip_code,
			image_url=university.image_url,
			is_active=university.is_active,
			created_at=university.created_at,
			updated_at=university.updated_at,
			distance_m=round(distance_m, 2) if distance_m is not None else None,
		)


class UniversityListResponse(BaseModel):
	count: int
	universities: list[UniversityOut]
