"""Validated roommate profile types.

Profiles are parsed once at the edge into these frozen structures; the scoring
code can then rely on every field being present and in range.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Tuple

from roomix.domain.common.exceptions import ValidationFailed

BIO_MAX_LENGTH = 500
DEFAULT_BUDGET_MIN = 5000.0
DEFAULT_BUDGET_MAX = 50000.0


class Lifestyle(str, Enum):
	"""Fixed lifestyle vocabulary offered by the client."""

	EARLY_RISER = "early_riser"
	NIGHT_OWL = "night_owl"
	QUIET = "quiet"
	SOCIAL = "social"
	CLEAN = "clean"
	RELAXED = "relaxed"


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


def normalise_tags(values: Iterable[object], *, field_name: str) -> Tuple[str, ...]:
	"""Strip, drop blanks and de-duplicate while keeping first-seen order."""
	seen: dict[str, None] = {}
	for value in values:
		if not isinstance(value, str):
			raise ValidationFailed(f"invalid_{field_name}")
		tag = value.strip()
		if tag:
			seen.setdefault(tag, None)
	return tuple(seen)


def parse_lifestyle(values: Iterable[object]) -> Tuple[Lifestyle, ...]:
	tags = normalise_tags(values, field_name="lifestyle")
	parsed: list[Lifestyle] = []
	for tag in tags:
		try:
			parsed.append(Lifestyle(tag))
		except ValueError:
			raise ValidationFailed(f"unknown_lifestyle:{tag}") from None
	return tuple(parsed)


@dataclass(slots=True, frozen=True)
class Budget:
	min: float = DEFAULT_BUDGET_MIN
	max: float = DEFAULT_BUDGET_MAX

	def __post_init__(self) -> None:
		if self.min < 0 or self.max < 0:
			raise ValidationFailed("invalid_budget")
		if self.min > self.max:
			raise ValidationFailed("budget_min_exceeds_max")

	@property
	def midpoint(self) -> float:
		return (self.min + self.max) / 2


@dataclass(slots=True, frozen=True)
class Preferences:
	budget: Budget = field(default_factory=Budget)
	location: Tuple[str, ...] = ()
	lifestyle: Tuple[Lifestyle, ...] = ()

	@classmethod
	def parse(
		cls,
		*,
		budget_min: float = DEFAULT_BUDGET_MIN,
		budget_max: float = DEFAULT_BUDGET_MAX,
		location: Iterable[object] = (),
		lifestyle: Iterable[object] = (),
	) -> "Preferences":
		return cls(
			budget=Budget(min=float(budget_min), max=float(budget_max)),
			location=normalise_tags(location, field_name="location"),
			lifestyle=parse_lifestyle(lifestyle),
		)


@dataclass(slots=True, frozen=True)
class RoommateProfile:
	user_id: str
	bio: str
	interests: Tuple[str, ...] = ()
	preferences: Preferences = field(default_factory=Preferences)
	profile_complete: bool = False
	created_at: datetime = field(default_factory=_utcnow)
	updated_at: datetime = field(default_factory=_utcnow)

	def __post_init__(self) -> None:
		if not self.user_id:
			raise ValidationFailed("user_required")
		if not self.bio or not self.bio.strip():
			raise ValidationFailed("bio_required")
		if len(self.bio) > BIO_MAX_LENGTH:
			raise ValidationFailed("bio_too_long")

	@classmethod
	def from_record(cls, record) -> "RoommateProfile":
		"""Build a profile from a `roommate_profiles` row (JSONB columns may arrive as text)."""

		def _tags(value) -> list:
			if isinstance(value, str):
				value = json.loads(value)
			return list(value or [])

		return cls(
			user_id=str(record["user_id"]),
			bio=record["bio"],
			interests=normalise_tags(_tags(record["interests"]), field_name="interests"),
			preferences=Preferences.parse(
				budget_min=record["budget_min"],
				budget_max=record["budget_max"],
				location=_tags(record["locations"]),
				lifestyle=_tags(record["lifestyle"]),
			),
			profile_complete=bool(record["profile_complete"]),
			created_at=record["created_at"],
			updated_at=record["updated_at"],
		)


@dataclass(slots=True, frozen=True)
class ProfileChanges:
	"""A submission; None means "keep what is stored"."""

	bio: Optional[str] = None
	interests: Optional[Tuple[str, ...]] = None
	preferences: Optional[Preferences] = None


def apply_changes(
	user_id: str,
	existing: Optional[RoommateProfile],
	changes: ProfileChanges,
	*,
	now: Optional[datetime] = None,
) -> RoommateProfile:
	"""Merge a submission into the stored profile (or create one).

	The profile becomes complete once both a bio and preferences have been
	supplied, and stays complete afterwards.
	"""
	now = now or _utcnow()
	if changes.bio is not None and not changes.bio.strip():
		raise ValidationFailed("bio_required")
	bio = changes.bio
	if existing is None:
		return RoommateProfile(
			user_id=user_id,
			bio=bio or "",
			interests=changes.interests or (),
			preferences=changes.preferences or Preferences(),
			profile_complete=changes.preferences is not None,
			created_at=now,
			updated_at=now,
		)
	return RoommateProfile(
		user_id=user_id,
		bio=bio or existing.bio,
		interests=changes.interests if changes.interests is not None else existing.interests,
		preferences=changes.preferences or existing.preferences,
		profile_complete=existing.profile_complete or changes.preferences is not None,
		created_at=existing.created_at,
		updated_at=now,
	)
