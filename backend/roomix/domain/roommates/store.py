"""Persistence for roommate profiles.

Two backends share one contract: Postgres (asyncpg) for deployments and an
in-process store for local runs and tests. Both make the read-merge-write of an
upsert a single atomic unit.
"""

from __future__ import annotations

import asyncio
import json
from typing import Dict, List, Optional, Protocol

from roomix.domain.roommates.models import ProfileChanges, RoommateProfile, apply_changes
from roomix.infra.postgres import get_pool
from roomix.settings import settings

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS roommate_profiles (
	user_id TEXT PRIMARY KEY,
	bio TEXT NOT NULL,
	interests JSONB NOT NULL DEFAULT '[]'::jsonb,
	budget_min DOUBLE PRECISION NOT NULL,
	budget_max DOUBLE PRECISION NOT NULL,
	locations JSONB NOT NULL DEFAULT '[]'::jsonb,
	lifestyle JSONB NOT NULL DEFAULT '[]'::jsonb,
	profile_complete BOOLEAN NOT NULL DEFAULT FALSE,
	created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
	updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
	CHECK (budget_min <= budget_max)
);
CREATE INDEX IF NOT EXISTS roommate_profiles_complete_idx
	ON roommate_profiles (created_at, user_id) WHERE profile_complete;
"""

_COLUMNS = "user_id, bio, interests, budget_min, budget_max, locations, lifestyle, profile_complete, created_at, updated_at"


class ProfileStore(Protocol):
	async def get_profile(self, user_id: str) -> Optional[RoommateProfile]: ...

	async def list_profiles(self) -> List[RoommateProfile]: ...

	async def list_complete_profiles(self, exclude_user_id: Optional[str] = None) -> List[RoommateProfile]: ...

	async def upsert_profile(self, user_id: str, changes: ProfileChanges) -> RoommateProfile: ...

	async def delete_profile(self, user_id: str) -> bool: ...


class MemoryProfileStore:
	"""Dict-backed store; iteration order is insertion order, updates keep their slot."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._profiles: Dict[str, RoommateProfile] = {}

	async def get_profile(self, user_id: str) -> Optional[RoommateProfile]:
		return self._profiles.get(user_id)

	async def list_profiles(self) -> List[RoommateProfile]:
		return list(self._profiles.values())

	async def list_complete_profiles(self, exclude_user_id: Optional[str] = None) -> List[RoommateProfile]:
		return [
			profile
			for profile in self._profiles.values()
			if profile.profile_complete and profile.user_id != exclude_user_id
		]

	async def upsert_profile(self, user_id: str, changes: ProfileChanges) -> RoommateProfile:
		async with self._lock:
			profile = apply_changes(user_id, self._profiles.get(user_id), changes)
			self._profiles[user_id] = profile
			return profile

	async def delete_profile(self, user_id: str) -> bool:
		async with self._lock:
			return self._profiles.pop(user_id, None) is not None

	async def clear(self) -> None:
		async with self._lock:
			self._profiles.clear()


class PostgresProfileStore:
	"""`roommate_profiles` table; tags live in JSONB columns."""

	async def get_profile(self, user_id: str) -> Optional[RoommateProfile]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(f"SELECT {_COLUMNS} FROM roommate_profiles WHERE user_id = $1", user_id)
		return RoommateProfile.from_record(row) if row else None

	async def list_profiles(self) -> List[RoommateProfile]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(f"SELECT {_COLUMNS} FROM roommate_profiles ORDER BY created_at, user_id")
		return [RoommateProfile.from_record(row) for row in rows]

	async def list_complete_profiles(self, exclude_user_id: Optional[str] = None) -> List[RoommateProfile]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_COLUMNS}
				FROM roommate_profiles
				WHERE profile_complete AND ($1::text IS NULL OR user_id <> $1)
				ORDER BY created_at, user_id
				""",
				exclude_user_id,
			)
		return [RoommateProfile.from_record(row) for row in rows]

	async def upsert_profile(self, user_id: str, changes: ProfileChanges) -> RoommateProfile:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				row = await conn.fetchrow(
					f"SELECT {_COLUMNS} FROM roommate_profiles WHERE user_id = $1 FOR UPDATE",
					user_id,
				)
				existing = RoommateProfile.from_record(row) if row else None
				profile = apply_changes(user_id, existing, changes)
				prefs = profile.preferences
				saved = await conn.fetchrow(
					f"""
					INSERT INTO roommate_profiles ({_COLUMNS})
					VALUES ($1, $2, $3::jsonb, $4, $5, $6::jsonb, $7::jsonb, $8, $9, $10)
					ON CONFLICT (user_id) DO UPDATE SET
						bio = EXCLUDED.bio,
						interests = EXCLUDED.interests,
						budget_min = EXCLUDED.budget_min,
						budget_max = EXCLUDED.budget_max,
						locations = EXCLUDED.locations,
						lifestyle = EXCLUDED.lifestyle,
						profile_complete = EXCLUDED.profile_complete,
						updated_at = EXCLUDED.updated_at
					RETURNING {_COLUMNS}
					""",
					user_id,
					profile.bio,
					json.dumps(list(profile.interests)),
					prefs.budget.min,
					prefs.budget.max,
					json.dumps(list(prefs.location)),
					json.dumps([item.value for item in prefs.lifestyle]),
					profile.profile_complete,
					profile.created_at,
					profile.updated_at,
				)
		return RoommateProfile.from_record(saved)

	async def delete_profile(self, user_id: str) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			status = await conn.execute("DELETE FROM roommate_profiles WHERE user_id = $1", user_id)
		return str(status).endswith(" 1")


async def ensure_schema() -> None:
	pool = await get_pool()
	async with pool.acquire() as conn:
		await conn.execute(SCHEMA_SQL)


_memory_store = MemoryProfileStore()
_postgres_store = PostgresProfileStore()


def get_profile_store() -> ProfileStore:
	if settings.uses_postgres():
		return _postgres_store
	return _memory_store


async def reset_memory_store() -> None:
	await _memory_store.clear()
