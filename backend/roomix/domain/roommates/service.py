"""Roommate profile lifecycle and compatibility matching."""

from __future__ import annotations

import logging
from typing import List, Optional

from roomix.domain.common.exceptions import NotFound
from roomix.domain.roommates import scoring
from roomix.domain.roommates.models import ProfileChanges, RoommateProfile
from roomix.domain.roommates.store import ProfileStore, get_profile_store
from roomix.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class RoommateService:
	"""Thin orchestration over the profile store and the scoring engine.

	The store is resolved per call unless one is injected, so switching the
	configured backend (tests do this) takes effect immediately.
	"""

	def __init__(self, store: Optional[ProfileStore] = None) -> None:
		self._store = store

	@property
	def store(self) -> ProfileStore:
		return self._store or get_profile_store()

	async def submit_profile(self, user_id: str, changes: ProfileChanges) -> RoommateProfile:
		profile = await self.store.upsert_profile(user_id, changes)
		obs_metrics.inc_profile_write("upsert")
		logger.info("roommate profile saved user=%s complete=%s", user_id, profile.profile_complete)
		return profile

	async def get_profile(self, user_id: str) -> RoommateProfile:
		profile = await self.store.get_profile(user_id)
		if profile is None:
			raise NotFound("profile_not_found")
		return profile

	async def list_profiles(self) -> List[RoommateProfile]:
		return await self.store.list_complete_profiles()

	async def matches(self, user_id: str) -> List[scoring.Match]:
		me = await self.store.get_profile(user_id)
		if me is None:
			raise NotFound("profile_not_found")
		candidates = await self.store.list_complete_profiles(exclude_user_id=user_id)
		ranked = scoring.rank(me, candidates)
		obs_metrics.observe_match(len(candidates))
		logger.debug("roommate matches user=%s candidates=%s", user_id, len(candidates))
		return ranked

	async def delete_profile(self, user_id: str) -> None:
		removed = await self.store.delete_profile(user_id)
		if removed:
			obs_metrics.inc_profile_write("delete")
			logger.info("roommate profile deleted user=%s", user_id)
