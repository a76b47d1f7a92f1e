"""Domain models for the campus directory (utilities and universities)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple, Union

from roomix.domain.common.exceptions import ValidationFailed
from roomix.domain.common.geo import BoundingBox, GeoPoint

UTILITY = "utility"
UNIVERSITY = "university"

MIN_RATING = 1
MAX_RATING = 5
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


class UtilityCategory(str, Enum):
	MEDICAL = "medical"
	GROCERY = "grocery"
	XEROX = "xerox"
	STATIONARY = "stationary"
	PHARMACY = "pharmacy"
	CAFE = "cafe"
	LAUNDRY = "laundry"
	SALON = "salon"
	BANK = "bank"
	ATM = "atm"
	RESTAURANT = "restaurant"
	OTHER = "other"

	@classmethod
	def parse(cls, value: object) -> "UtilityCategory":
		try:
			return cls(str(value).strip().lower())
		except ValueError:
			raise ValidationFailed(f"unknown_category:{value}") from None


class VerificationStatus(str, Enum):
	PENDING = "pending"
	VERIFIED = "verified"
	REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class Verification:
	"""Pending | Verified | Rejected(reason). A reason exists only when rejected."""

	status: VerificationStatus = VerificationStatus.PENDING
	reason: Optional[str] = None

	def __post_init__(self) -> None:
		if self.status is VerificationStatus.REJECTED:
			if not self.reason or not self.reason.strip():
				raise ValidationFailed("rejection_reason_required")
		elif self.reason is not None:
			raise ValidationFailed("reason_only_for_rejection")

	@classmethod
	def pending(cls) -> "Verification":
		return cls(VerificationStatus.PENDING)

	@classmethod
	def verified(cls) -> "Verification":
		return cls(VerificationStatus.VERIFIED)

	@classmethod
	def rejected(cls, reason: str) -> "Verification":
		return cls(VerificationStatus.REJECTED, reason.strip() if reason else reason)

	@property
	def is_verified(self) -> bool:
		return self.status is VerificationStatus.VERIFIED

	@property
	def rejection_reason(self) -> Optional[str]:
		return self.reason

	def to_dict(self) -> dict:
		return {"status": self.status.value, "reason": self.reason}

	@classmethod
	def from_dict(cls, data: dict) -> "Verification":
		return cls(VerificationStatus(data["status"]), data.get("reason"))


@dataclass(slots=True, frozen=True)
class Verify:
	"""Moderation decision: approve for public visibility."""


@dataclass(slots=True, frozen=True)
class Reject:
	"""Moderation decision: hide with a reason shown to the submitter."""

	reason: str


Decision = Union[Verify, Reject]


def decision_outcome(decision: Decision) -> Verification:
	if isinstance(decision, Verify):
		return Verification.verified()
	if isinstance(decision, Reject):
		return Verification.rejected(decision.reason)
	raise ValidationFailed("unknown_decision")


@dataclass(slots=True, frozen=True)
class Contact:
	phone: Optional[str] = None
	email: Optional[str] = None
	website: Optional[str] = None

	def to_dict(self) -> dict:
		return {"phone": self.phone, "email": self.email, "website": self.website}

	@classmethod
	def from_dict(cls, data: Optional[dict]) -> "Contact":
		data = data or {}
		return cls(phone=data.get("phone"), email=data.get("email"), website=data.get("website"))


@dataclass(slots=True, frozen=True)
class OpeningHours:
	open: Optional[str] = None
	close: Optional[str] = None


def parse_operating_hours(data: Optional[dict]) -> Dict[str, OpeningHours]:
	hours: Dict[str, OpeningHours] = {}
	for day, value in (data or {}).items():
		key = str(day).lower()
		if key not in WEEKDAYS:
			raise ValidationFailed(f"unknown_weekday:{day}")
		value = value or {}
		hours[key] = OpeningHours(open=value.get("open"), close=value.get("close"))
	return hours


@dataclass(slots=True, frozen=True)
class Review:
	user_id: str
	rating: int
	comment: Optional[str] = None
	created_at: datetime = field(default_factory=utcnow)

	def __post_init__(self) -> None:
		if isinstance(self.rating, bool) or not isinstance(self.rating, int):
			raise ValidationFailed("invalid_rating")
		if not (MIN_RATING <= self.rating <= MAX_RATING):
			raise ValidationFailed("rating_out_of_range")

	def to_dict(self) -> dict:
		return {
			"user_id": self.user_id,
			"rating": self.rating,
			"comment": self.comment,
			"created_at": self.created_at.isoformat(),
		}

	@classmethod
	def from_dict(cls, data: dict) -> "Review":
		return cls(
			user_id=str(data["user_id"]),
			rating=int(data["rating"]),
			comment=data.get("comment"),
			created_at=datetime.fromisoformat(data["created_at"]),
		)


def mean_rating(reviews: Sequence[Review]) -> float:
	"""Arithmetic mean of review ratings rounded half-up to one decimal; 0.0 when empty."""
	if not reviews:
		return 0.0
	total = Decimal(sum(review.rating for review in reviews))
	mean = total / Decimal(len(reviews))
	return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass(slots=True, frozen=True)
class Utility:
	id: str
	name: str
	category: UtilityCategory
	location: GeoPoint
	added_by: str
	address: Optional[str] = None
	contact: Contact = field(default_factory=Contact)
	description: Optional[str] = None
	image: Optional[str] = None
	tags: Tuple[str, ...] = ()
	operating_hours: Dict[str, OpeningHours] = field(default_factory=dict)
	reviews: Tuple[Review, ...] = ()
	verification: Verification = field(default_factory=Verification.pending)
	is_active: bool = True
	created_at: datetime = field(default_factory=utcnow)
	updated_at: datetime = field(default_factory=utcnow)

	def __post_init__(self) -> None:
		if not self.name or not self.name.strip():
			raise ValidationFailed("name_required")

	@property
	def rating(self) -> float:
		return mean_rating(self.reviews)

	@property
	def verified(self) -> bool:
		return self.verification.is_verified

	@property
	def is_public(self) -> bool:
		return self.verified and self.is_active

	def with_review(self, review: Review, *, now: Optional[datetime] = None) -> "Utility":
		return replace(self, reviews=self.reviews + (review,), updated_at=now or utcnow())

	def with_verification(self, verification: Verification, *, now: Optional[datetime] = None) -> "Utility":
		return replace(self, verification=verification, updated_at=now or utcnow())

	def to_document(self) -> dict:
		return {
			"id": self.id,
			"name": self.name,
			"category": self.category.value,
			"location": {"type": "Point", "coordinates": self.location.coordinates(), "address": self.address},
			"added_by": self.added_by,
			"contact": self.contact.to_dict(),
			"description": self.description,
			"image": self.image,
			"tags": list(self.tags),
			"operating_hours": {
				day: {"open": hours.open, "close": hours.close} for day, hours in self.operating_hours.items()
			},
			"reviews": [review.to_dict() for review in self.reviews],
			# Denormalised for readers of the raw document; always recomputed on write
			"rating": self.rating,
			"verification": self.verification.to_dict(),
			"is_active": self.is_active,
			"created_at": self.created_at.isoformat(),
			"updated_at": self.updated_at.isoformat(),
		}

	@classmethod
	def from_document(cls, doc: dict) -> "Utility":
		location = doc["location"]
		return cls(
			id=doc["id"],
			name=doc["name"],
			category=UtilityCategory(doc["category"]),
			location=GeoPoint.from_coordinates(location["coordinates"]),
			address=location.get("address"),
			added_by=str(doc["added_by"]),
			contact=Contact.from_dict(doc.get("contact")),
			description=doc.get("description"),
			image=doc.get("image"),
			tags=tuple(doc.get("tags") or ()),
			operating_hours=parse_operating_hours(doc.get("operating_hours")),
			reviews=tuple(Review.from_dict(item) for item in doc.get("reviews") or ()),
			verification=Verification.from_dict(doc["verification"]),
			is_active=bool(doc.get("is_active", True)),
			created_at=datetime.fromisoformat(doc["created_at"]),
			updated_at=datetime.fromisoformat(doc["updated_at"]),
		)


@dataclass(slots=True, frozen=True)
class University:
	id: str
	name: str
	location: GeoPoint
	campus_bounds: BoundingBox
	address: str
	city: str
	state: str
	description: str = ""
	zip_code: Optional[str] = None
	image_url: Optional[str] = None
	is_active: bool = True
	created_at: datetime = field(default_factory=utcnow)
	updated_at: datetime = field(default_factory=utcnow)

	def __post_init__(self) -> None:
		for name in ("name", "address", "city", "state"):
			value = getattr(self, name)
			if not value or not str(value).strip():
				raise ValidationFailed(f"{name}_required")

	@property
	def name_key(self) -> str:
		return normalise_name(self.name)

	def to_document(self) -> dict:
		return {
			"id": self.id,
			"name": self.name,
			"location": {"type": "Point", "coordinates": self.location.coordinates()},
			"campus_bounds": self.campus_bounds.to_dict(),
			"address": self.address,
			"description": self.description,
			"city": self.city,
			"state": self.state,
			"zip_code": self.zip_code,
			"image_url": self.image_url,
			"is_active": self.is_active,
			"created_at": self.created_at.isoformat(),
			"updated_at": self.updated_at.isoformat(),
		}

	@classmethod
	def from_document(cls, doc: dict) -> "University":
		return cls(
			id=doc["id"],
			name=doc["name"],
			location=GeoPoint.from_coordinates(doc["location"]["coordinates"]),
			campus_bounds=BoundingBox.from_dict(doc["campus_bounds"]),
			address=doc["address"],
			description=doc.get("description") or "",
			city=doc["city"],
			state=doc["state"],
			zip_code=doc.get("zip_code"),
			image_url=doc.get("image_url"),
			is_active=bool(doc.get("is_active", True)),
			created_at=datetime.fromisoformat(doc["created_at"]),
			updated_at=datetime.fromisoformat(doc["updated_at"]),
		)


def normalise_name(name: str) -> str:
	return " ".join(name.split()).casefold()


Entity = Union[Utility, University]
