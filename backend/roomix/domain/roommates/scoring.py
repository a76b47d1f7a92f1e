"""Roommate compatibility scoring and ranking."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from roomix.domain.roommates.models import RoommateProfile

BUDGET_WEIGHT = 30.0
LIFESTYLE_WEIGHT = 30.0
INTERESTS_WEIGHT = 25.0
LOCATION_WEIGHT = 15.0
MAX_SCORE = 100.0
# Each 1000 currency units between budget midpoints costs one point.
BUDGET_UNIT = 1000.0


@dataclass(slots=True, frozen=True)
class CompatibilityBreakdown:
	budget: float
	lifestyle: float
	interests: float
	location: float

	@property
	def raw_total(self) -> float:
		return self.budget + self.lifestyle + self.interests + self.location

	@property
	def score(self) -> int:
		return round_half_up(min(MAX_SCORE, self.raw_total))


@dataclass(slots=True, frozen=True)
class Match:
	profile: RoommateProfile
	score: int


def round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def overlap_factor(own: Sequence[object], other: Iterable[object], weight: float) -> float:
	"""Share of `own` tags also present in `other`, scaled by weight.

	The denominator is the size of `own` only, so the factor is directional.
	"""
	own_set = set(own)
	matches = len(own_set & set(other))
	return matches / max(1, len(own_set)) * weight


def budget_factor(a: RoommateProfile, b: RoommateProfile) -> float:
	diff = abs(a.preferences.budget.midpoint - b.preferences.budget.midpoint)
	return max(0.0, BUDGET_WEIGHT - diff / BUDGET_UNIT)


def breakdown(a: RoommateProfile, b: RoommateProfile) -> CompatibilityBreakdown:
	"""Score `b` from the point of view of `a`."""
	return CompatibilityBreakdown(
		budget=budget_factor(a, b),
		lifestyle=overlap_factor(a.preferences.lifestyle, b.preferences.lifestyle, LIFESTYLE_WEIGHT),
		interests=overlap_factor(a.interests, b.interests, INTERESTS_WEIGHT),
		location=overlap_factor(a.preferences.location, b.preferences.location, LOCATION_WEIGHT),
	)


def score(a: RoommateProfile, b: RoommateProfile) -> int:
	"""Integer compatibility in [0, 100]; score(a, b) need not equal score(b, a)."""
	return breakdown(a, b).score


def rank(requester: RoommateProfile, candidates: Iterable[RoommateProfile]) -> List[Match]:
	"""Score complete candidates against the requester, best first.

	The requester's own profile is skipped. Ties keep the candidates' input order.
	"""
	matches = [
		Match(profile=candidate, score=score(requester, candidate))
		for candidate in candidates
		if candidate.user_id != requester.user_id and candidate.profile_complete
	]
	# sorted() is stable, also with reverse=True
	return sorted(matches, key=lambda match: match.score, reverse=True)
