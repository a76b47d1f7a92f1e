"""Directory services: utility discovery/moderation/reviews and university lookup."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple, cast
from uuid import uuid4

from roomix.domain.common.exceptions import Conflict, NotFound, Unauthorized, ValidationFailed
from roomix.domain.common.geo import GeoPoint, ensure_indexable
from roomix.domain.directory import policy
from roomix.domain.directory.models import (
	UNIVERSITY,
	UTILITY,
	Decision,
	Review,
	University,
	Utility,
	UtilityCategory,
	decision_outcome,
	normalise_name,
	utcnow,
)
from roomix.domain.directory.store import RedisDirectoryStore, get_directory_store
from roomix.infra.auth import AuthenticatedUser
from roomix.obs import metrics as obs_metrics
from roomix.settings import settings

logger = logging.getLogger(__name__)

UTILITY_SEARCH_FIELDS = ("name", "tags", "description")
UNIVERSITY_SEARCH_FIELDS = ("name", "city", "state")


def _require_admin(actor: Optional[AuthenticatedUser]) -> AuthenticatedUser:
	if not policy.is_privileged(actor):
		raise Unauthorized("admin_required")
	return cast(AuthenticatedUser, actor)


def _radius_m(radius_km: Optional[float], default_km: float) -> float:
	radius_km = default_km if radius_km is None else radius_km
	if radius_km <= 0:
		raise ValidationFailed("invalid_radius")
	return radius_km * 1000


def _search_text(query: Optional[str]) -> str:
	text = (query or "").strip()
	if not text:
		raise ValidationFailed("empty_query")
	return text


class UtilityService:
	"""Community-submitted utilities.

	Anonymous and regular callers only ever see verified, active entries. Admins
	may ask for unverified ones on list/nearby queries; submitters always see
	their own entries through `mine` and `get`.
	"""

	def __init__(self, store: Optional[RedisDirectoryStore] = None) -> None:
		self._store = store

	@property
	def store(self) -> RedisDirectoryStore:
		return self._store or get_directory_store()

	@staticmethod
	def _wanted_verified(actor: Optional[AuthenticatedUser], verified: Optional[bool]) -> bool:
		if verified is not None and policy.is_privileged(actor):
			return verified
		return True

	async def nearby(
		self,
		point: GeoPoint,
		radius_km: Optional[float] = None,
		*,
		category: Optional[str] = None,
		verified: Optional[bool] = None,
		actor: Optional[AuthenticatedUser] = None,
	) -> List[Tuple[Utility, float]]:
		radius_m = _radius_m(radius_km, settings.utility_default_radius_km)
		ensure_indexable(point)
		wanted_category = UtilityCategory.parse(category) if category else None
		wanted_verified = self._wanted_verified(actor, verified)
		hits = await self.store.query_near(UTILITY, point, radius_m, active_only=True, verified_only=wanted_verified)
		obs_metrics.inc_directory_query(UTILITY, "nearby")
		return [
			(utility, distance)
			for utility, distance in hits
			if utility.verified == wanted_verified
			and (wanted_category is None or utility.category is wanted_category)
		]  # type: ignore[misc]

	async def list(
		self,
		*,
		category: Optional[str] = None,
		verified: Optional[bool] = None,
		actor: Optional[AuthenticatedUser] = None,
	) -> List[Utility]:
		wanted_verified = self._wanted_verified(actor, verified)
		if category:
			candidates = await self.store.list_by_category(UtilityCategory.parse(category))
		else:
			candidates = await self.store.list_all(UTILITY)  # type: ignore[assignment]
		obs_metrics.inc_directory_query(UTILITY, "list")
		return [utility for utility in candidates if utility.is_active and utility.verified == wanted_verified]

	async def search(self, query: Optional[str]) -> List[Utility]:
		text = _search_text(query)
		matches = await self.store.query_text(
			UTILITY, text, UTILITY_SEARCH_FIELDS, active_only=True, verified_only=True
		)
		obs_metrics.inc_directory_query(UTILITY, "search")
		return matches  # type: ignore[return-value]

	async def by_category(self, category: str) -> List[Utility]:
		wanted = UtilityCategory.parse(category)
		utilities = await self.store.list_by_category(wanted)
		obs_metrics.inc_directory_query(UTILITY, "category")
		return [utility for utility in utilities if utility.is_public]

	async def get(self, utility_id: str, actor: Optional[AuthenticatedUser] = None) -> Utility:
		utility = await self.store.get(UTILITY, utility_id)
		if utility is None or not policy.can_view(utility, actor):  # type: ignore[arg-type]
			raise NotFound("utility_not_found")
		return utility  # type: ignore[return-value]

	async def submit(self, actor: AuthenticatedUser, fields: Dict[str, Any]) -> Utility:
		ensure_indexable(fields["location"])
		utility = Utility(id=uuid4().hex, added_by=str(actor.id), **fields)
		await self.store.insert(UTILITY, utility)
		obs_metrics.inc_directory_submission(UTILITY)
		logger.info("utility submitted id=%s category=%s by=%s", utility.id, utility.category.value, actor.id)
		return utility

	async def update(self, utility_id: str, actor: AuthenticatedUser, changes: Dict[str, Any]) -> Utility:
		if "location" in changes:
			ensure_indexable(changes["location"])

		def mutate(current: Utility) -> Utility:
			policy.ensure_can_mutate(current, actor)
			if not current.is_active and not actor.is_admin:
				raise NotFound("utility_not_found")
			return replace(current, **changes, updated_at=utcnow())

		updated = await self.store.update(UTILITY, utility_id, mutate)  # type: ignore[arg-type]
		logger.info("utility updated id=%s by=%s fields=%s", utility_id, actor.id, sorted(changes))
		return updated  # type: ignore[return-value]

	async def delete(self, utility_id: str, actor: AuthenticatedUser) -> Utility:
		def mutate(current: Utility) -> Utility:
			policy.ensure_can_mutate(current, actor)
			return replace(current, is_active=False, updated_at=utcnow())

		deleted = await self.store.update(UTILITY, utility_id, mutate)  # type: ignore[arg-type]
		logger.info("utility deactivated id=%s by=%s", utility_id, actor.id)
		return deleted  # type: ignore[return-value]

	async def review(
		self,
		utility_id: str,
		reviewer: AuthenticatedUser,
		rating: int,
		comment: Optional[str] = None,
	) -> Utility:
		review = Review(user_id=str(reviewer.id), rating=rating, comment=comment)

		def mutate(current: Utility) -> Utility:
			if not policy.can_view(current, reviewer):
				raise NotFound("utility_not_found")
			return current.with_review(review)

		updated = await self.store.update(UTILITY, utility_id, mutate)  # type: ignore[arg-type]
		obs_metrics.inc_review()
		logger.info("utility reviewed id=%s by=%s rating=%s", utility_id, reviewer.id, rating)
		return updated  # type: ignore[return-value]

	async def moderate(self, utility_id: str, decision: Decision, actor: Optional[AuthenticatedUser]) -> Utility:
		admin = _require_admin(actor)
		outcome = decision_outcome(decision)
		updated = await self.store.set_verification(utility_id, outcome)
		obs_metrics.inc_moderation(outcome.status.value)
		logger.info("utility moderated id=%s decision=%s by=%s", utility_id, outcome.status.value, admin.id)
		return updated

	async def admin_all(self, actor: Optional[AuthenticatedUser]) -> List[Utility]:
		_require_admin(actor)
		utilities = await self.store.list_all(UTILITY)
		return list(reversed(utilities))  # type: ignore[arg-type]

	async def pending(self, actor: Optional[AuthenticatedUser]) -> List[Utility]:
		_require_admin(actor)
		return await self.store.list_pending()

	async def mine(self, actor: AuthenticatedUser) -> List[Utility]:
		return await self.store.list_by_owner(str(actor.id))


class UniversityService:
	"""Admin-curated universities; names are unique ignoring case and spacing."""

	def __init__(self, store: Optional[RedisDirectoryStore] = None) -> None:
		self._store = store

	@property
	def store(self) -> RedisDirectoryStore:
		return self._store or get_directory_store()

	async def list_active(self) -> List[University]:
		universities = await self.store.list_all(UNIVERSITY)
		obs_metrics.inc_directory_query(UNIVERSITY, "list")
		return sorted(
			(university for university in universities if university.is_active),  # type: ignore[misc]
			key=lambda university: university.name.casefold(),
		)

	async def get(self, university_id: str, actor: Optional[AuthenticatedUser] = None) -> University:
		university = await self.store.get(UNIVERSITY, university_id)
		if university is None or (not university.is_active and not policy.is_privileged(actor)):
			raise NotFound("university_not_found")
		return university  # type: ignore[return-value]

	async def search(self, query: Optional[str]) -> List[University]:
		text = _search_text(query)
		matches = await self.store.query_text(
			UNIVERSITY, text, UNIVERSITY_SEARCH_FIELDS, active_only=True, verified_only=False
		)
		obs_metrics.inc_directory_query(UNIVERSITY, "search")
		return sorted(matches, key=lambda university: university.name.casefold())  # type: ignore[return-value]

	async def nearby(self, point: GeoPoint, radius_km: Optional[float] = None) -> List[Tuple[University, float]]:
		radius_m = _radius_m(radius_km, settings.university_default_radius_km)
		ensure_indexable(point)
		hits = await self.store.query_near(UNIVERSITY, point, radius_m, active_only=True, verified_only=False)
		obs_metrics.inc_directory_query(UNIVERSITY, "nearby")
		return hits  # type: ignore[return-value]

	async def containing(self, point: GeoPoint) -> List[University]:
		universities = await self.list_active()
		obs_metrics.inc_directory_query(UNIVERSITY, "containing")
		return [university for university in universities if university.campus_bounds.contains(point)]

	async def create(self, fields: Dict[str, Any], actor: Optional[AuthenticatedUser]) -> University:
		admin = _require_admin(actor)
		ensure_indexable(fields["location"])
		university = University(id=uuid4().hex, **fields)
		if not await self.store.claim_name(university.name_key, university.id):
			raise Conflict("university_name_taken")
		try:
			await self.store.insert(UNIVERSITY, university)
		except Exception:
			await self.store.release_name(university.name_key, university.id)
			raise
		obs_metrics.inc_directory_submission(UNIVERSITY)
		logger.info("university created id=%s by=%s", university.id, admin.id)
		return university

	async def update(
		self,
		university_id: str,
		changes: Dict[str, Any],
		actor: Optional[AuthenticatedUser],
	) -> University:
		admin = _require_admin(actor)
		if "location" in changes:
			ensure_indexable(changes["location"])
		current = await self.get(university_id, admin)

		new_key: Optional[str] = None
		if "name" in changes and normalise_name(changes["name"]) != current.name_key:
			new_key = normalise_name(changes["name"])
			if not await self.store.claim_name(new_key, university_id):
				raise Conflict("university_name_taken")

		previous_keys: List[str] = []

		def mutate(existing: University) -> University:
			previous_keys.append(existing.name_key)
			return replace(existing, **changes, updated_at=utcnow())

		try:
			updated = await self.store.update(UNIVERSITY, university_id, mutate)  # type: ignore[arg-type]
		except Exception:
			if new_key is not None:
				await self.store.release_name(new_key, university_id)
			raise
		for key in set(previous_keys):
			if key != updated.name_key:  # type: ignore[union-attr]
				await self.store.release_name(key, university_id)
		logger.info("university updated id=%s by=%s fields=%s", university_id, admin.id, sorted(changes))
		return updated  # type: ignore[return-value]

	async def delete(self, university_id: str, actor: Optional[AuthenticatedUser]) -> University:
		admin = _require_admin(actor)

		def mutate(existing: University) -> University:
			return replace(existing, is_active=False, updated_at=utcnow())

		deleted = await self.store.update(UNIVERSITY, university_id, mutate)  # type: ignore[arg-type]
		logger.info("university deactivated id=%s by=%s", university_id, admin.id)
		return deleted  # type: ignore[return-value]
