"""Pydantic schemas for roommate endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from roomix.domain.roommates.models import (
	DEFAULT_BUDGET_MAX,
	DEFAULT_BUDGET_MIN,
	Preferences,
	ProfileChanges,
	RoommateProfile,
	normalise_tags,
)


class BudgetIn(BaseModel):
	min: float = DEFAULT_BUDGET_MIN
	max: float = DEFAULT_BUDGET_MAX


class PreferencesIn(BaseModel):
	budget: BudgetIn = Field(default_factory=BudgetIn)
	location: list[str] = Field(default_factory=list)
	# Checked against the lifestyle vocabulary when converted to the domain type
	lifestyle: list[str] = Field(default_factory=list)

	def to_domain(self) -> Preferences:
		return Preferences.parse(
			budget_min=self.budget.min,
			budget_max=self.budget.max,
			location=self.location,
			lifestyle=self.lifestyle,
		)


class ProfileSubmission(BaseModel):
	"""Create/update payload. Omitted fields keep their stored values."""

	bio: Optional[str] = None
	interests: Optional[list[str]] = None
	preferences: Optional[PreferencesIn] = None

	def to_changes(self) -> ProfileChanges:
		return ProfileChanges(
			bio=self.bio,
			interests=normalise_tags(self.interests, field_name="interests") if self.interests is not None else None,
			preferences=self.preferences.to_domain() if self.preferences is not None else None,
		)


class BudgetOut(BaseModel):
	min: float
	max: float


class PreferencesOut(BaseModel):
	budget: BudgetOut
	location: list[str]
	lifestyle: list[str]


class ProfileOut(BaseModel):
	user_id: str
	bio: str
	interests: list[str]
	preferences: PreferencesOut
	profile_complete: bool
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_domain(cls, profile: RoommateProfile) -> "ProfileOut":
		prefs = profile.preferences
		return cls(
			user_id=profile.user_id,
			bio=profile.bio,
			interests=list(profile.interests),
			preferences=PreferencesOut(
				budget=BudgetOut(min=prefs.budget.min, max=prefs.budget.max),
				location=list(prefs.location),
				lifestyle=[item.value for item in prefs.lifestyle],
			),
			profile_complete=profile.profile_complete,
			created_at=profile.created_at,
			updated_at=profile.updated_at,
		)


class MatchOut(ProfileOut):
	compatibility: int = Field(..., ge=0, le=100)


class ProfileListResponse(BaseModel):
	count: int
	profiles: list[ProfileOut]


class MatchListResponse(BaseModel):
	count: int
	matches: list[MatchOut]
