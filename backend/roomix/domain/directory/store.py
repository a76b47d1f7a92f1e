"""Redis-backed document store for directory entities.

Layout per entity kind (`utility`, `university`):

- `directory:{kind}:{id}`            JSON document
- `directory:{kind}:ids`             sorted set, score = creation time (ms)
- `directory:{kind}:geo`             GEO set of every entity
- `directory:{kind}:geo:active`      GEO set of active entities
- `directory:utility:geo:public`     GEO set of active, verified utilities
- `directory:utility:category:{c}`   sorted set per category
- `directory:utility:pending`        sorted set of utilities not yet verified
- `directory:utility:owner:{uid}`    sorted set of a submitter's utilities
- `directory:university:names`       hash normalised name -> id

Updates run as WATCH/MULTI/EXEC transactions so a document and its indexes
change together, and concurrent writers to one document retry instead of
overwriting each other.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from redis.exceptions import WatchError

from roomix.domain.common.exceptions import Conflict, NotFound
from roomix.domain.common.geo import GeoPoint
from roomix.domain.directory.models import (
	UNIVERSITY,
	UTILITY,
	Entity,
	Review,
	University,
	Utility,
	UtilityCategory,
	Verification,
)
from roomix.infra.redis import redis_client
from roomix.obs import metrics as obs_metrics
from roomix.settings import settings

logger = logging.getLogger(__name__)

# Redis measures GEO distances on a slightly larger sphere and stores coordinates
# as 52-bit geohashes, so the index is queried a little wider and every
# candidate is re-checked against the exact stored coordinates.
_GEO_PADDING_RATIO = 0.001
_GEO_PADDING_M = 5.0
# Absorbs float noise when a caller's radius equals a computed distance
_BOUNDARY_EPSILON_M = 1e-6

_PENDING_KEY = "directory:utility:pending"
_NAMES_KEY = "directory:university:names"

_DECODERS = {
	UTILITY: Utility.from_document,
	UNIVERSITY: University.from_document,
}


def _doc_key(kind: str, entity_id: str) -> str:
	return f"directory:{kind}:{entity_id}"


def _ids_key(kind: str) -> str:
	return f"directory:{kind}:ids"


def _geo_key(kind: str, scope: Optional[str] = None) -> str:
	return f"directory:{kind}:geo:{scope}" if scope else f"directory:{kind}:geo"


def _geo_scope(kind: str, *, active_only: bool, verified_only: bool) -> Optional[str]:
	if kind == UTILITY and active_only and verified_only:
		return "public"
	return "active" if active_only else None


def _category_key(category: UtilityCategory | str) -> str:
	value = category.value if isinstance(category, UtilityCategory) else category
	return f"directory:utility:category:{value}"


def _owner_key(user_id: str) -> str:
	return f"directory:utility:owner:{user_id}"


def _encode(entity: Entity) -> str:
	return json.dumps(entity.to_document(), separators=(",", ":"))


def _decode(kind: str, raw: str) -> Entity:
	return _DECODERS[kind](json.loads(raw))


def _created_score(entity: Entity) -> float:
	return entity.created_at.timestamp() * 1000


class RedisDirectoryStore:
	def __init__(self, client=None, *, max_retries: Optional[int] = None) -> None:
		self._client = client
		self._max_retries = max_retries

	@property
	def redis(self):
		return self._client or redis_client

	@property
	def max_retries(self) -> int:
		return max(1, self._max_retries or settings.store_max_retries)

	def _queue_index_writes(self, pipe, kind: str, before: Optional[Entity], after: Entity) -> None:
		position = [after.location.lon, after.location.lat, after.id]
		pipe.geoadd(_geo_key(kind), position)
		if after.is_active:
			pipe.geoadd(_geo_key(kind, "active"), position)
		else:
			pipe.zrem(_geo_key(kind, "active"), after.id)
		if not isinstance(after, Utility):
			return
		if after.is_public:
			pipe.geoadd(_geo_key(kind, "public"), position)
		else:
			pipe.zrem(_geo_key(kind, "public"), after.id)
		score = _created_score(after)
		if isinstance(before, Utility) and before.category is not after.category:
			pipe.zrem(_category_key(before.category), after.id)
		pipe.zadd(_category_key(after.category), {after.id: score})
		if after.verified:
			pipe.zrem(_PENDING_KEY, after.id)
		else:
			pipe.zadd(_PENDING_KEY, {after.id: score})
		pipe.zadd(_owner_key(after.added_by), {after.id: score})

	async def insert(self, kind: str, entity: Entity) -> Entity:
		async with self.redis.pipeline(transaction=True) as pipe:
			pipe.set(_doc_key(kind, entity.id), _encode(entity))
			pipe.zadd(_ids_key(kind), {entity.id: _created_score(entity)})
			self._queue_index_writes(pipe, kind, None, entity)
			await pipe.execute()
		return entity

	async def get(self, kind: str, entity_id: str) -> Optional[Entity]:
		raw = await self.redis.get(_doc_key(kind, entity_id))
		return _decode(kind, raw) if raw is not None else None

	async def get_many(self, kind: str, entity_ids: Sequence[str]) -> List[Entity]:
		if not entity_ids:
			return []
		raws = await self.redis.mget([_doc_key(kind, entity_id) for entity_id in entity_ids])
		return [_decode(kind, raw) for raw in raws if raw is not None]

	async def list_all(self, kind: str) -> List[Entity]:
		ids = await self.redis.zrange(_ids_key(kind), 0, -1)
		return await self.get_many(kind, [str(entity_id) for entity_id in ids])

	async def list_by_category(self, category: UtilityCategory) -> List[Utility]:
		ids = await self.redis.zrange(_category_key(category), 0, -1)
		return await self.get_many(UTILITY, [str(entity_id) for entity_id in ids])  # type: ignore[return-value]

	async def list_pending(self) -> List[Utility]:
		ids = await self.redis.zrevrange(_PENDING_KEY, 0, -1)
		return await self.get_many(UTILITY, [str(entity_id) for entity_id in ids])  # type: ignore[return-value]

	async def list_by_owner(self, user_id: str) -> List[Utility]:
		ids = await self.redis.zrevrange(_owner_key(user_id), 0, -1)
		return await self.get_many(UTILITY, [str(entity_id) for entity_id in ids])  # type: ignore[return-value]

	async def query_near(
		self,
		kind: str,
		point: GeoPoint,
		radius_m: float,
		*,
		active_only: bool,
		verified_only: bool,
	) -> List[Tuple[Entity, float]]:
		"""Entities within `radius_m` of `point` (inclusive), nearest first.

		The search runs on the GEO set that already matches the visibility filters and
		is never truncated, so hidden entries cannot crowd out visible ones.
		"""
		search_radius = radius_m * (1 + _GEO_PADDING_RATIO) + _GEO_PADDING_M
		scope = _geo_scope(kind, active_only=active_only, verified_only=verified_only)
		members = await self.redis.geosearch(
			_geo_key(kind, scope),
			longitude=point.lon,
			latitude=point.lat,
			radius=search_radius,
			unit="m",
			sort="ASC",
		)
		entities = await self.get_many(kind, [str(member) for member in members])
		hits: List[Tuple[Entity, float]] = []
		for entity in entities:
			if active_only and not entity.is_active:
				continue
			if verified_only and not getattr(entity, "verified", True):
				continue
			distance_m = point.distance_m(entity.location)
			if distance_m <= radius_m + _BOUNDARY_EPSILON_M:
				hits.append((entity, distance_m))
		hits.sort(key=lambda hit: hit[1])
		return hits

	async def query_text(
		self,
		kind: str,
		substring: str,
		fields: Iterable[str],
		*,
		active_only: bool,
		verified_only: bool,
	) -> List[Entity]:
		"""Case-insensitive substring match on any of `fields` (OR semantics)."""
		needle = substring.casefold()
		fields = tuple(fields)
		matched: List[Entity] = []
		for entity in await self.list_all(kind):
			if active_only and not entity.is_active:
				continue
			if verified_only and not getattr(entity, "verified", True):
				continue
			for name in fields:
				value = getattr(entity, name, None)
				values = value if isinstance(value, (tuple, list)) else (value,)
				if any(isinstance(item, str) and needle in item.casefold() for item in values):
					matched.append(entity)
					break
		return matched

	async def update(self, kind: str, entity_id: str, mutate: Callable[[Entity], Entity]) -> Entity:
		"""Apply `mutate` to the stored entity atomically, retrying on concurrent writes.

		Exceptions raised by `mutate` abort the write and leave the document untouched.
		"""
		key = _doc_key(kind, entity_id)
		for attempt in range(1, self.max_retries + 1):
			async with self.redis.pipeline(transaction=True) as pipe:
				try:
					await pipe.watch(key)
					raw = await pipe.get(key)
					if raw is None:
						raise NotFound(f"{kind}_not_found")
					before = _decode(kind, raw)
					after = mutate(before)
					pipe.multi()
					pipe.set(key, _encode(after))
					self._queue_index_writes(pipe, kind, before, after)
					await pipe.execute()
					return after
				except WatchError:
					obs_metrics.inc_store_retry(kind)
					logger.debug("directory write retry kind=%s id=%s attempt=%s", kind, entity_id, attempt)
		obs_metrics.inc_store_conflict(kind)
		logger.warning("directory write abandoned kind=%s id=%s retries=%s", kind, entity_id, self.max_retries)
		raise Conflict("concurrent_update")

	async def append_review_atomic(self, utility_id: str, review: Review) -> Utility:
		return await self.update(UTILITY, utility_id, lambda utility: utility.with_review(review))  # type: ignore[arg-type,return-value]

	async def set_verification(self, utility_id: str, verification: Verification) -> Utility:
		return await self.update(  # type: ignore[return-value]
			UTILITY, utility_id, lambda utility: utility.with_verification(verification)  # type: ignore[attr-defined]
		)

	async def claim_name(self, name_key: str, entity_id: str) -> bool:
		"""Reserve a normalised university name; True when it is (now) held by `entity_id`."""
		if await self.redis.hsetnx(_NAMES_KEY, name_key, entity_id):
			return True
		holder = await self.redis.hget(_NAMES_KEY, name_key)
		return str(holder) == str(entity_id)

	async def release_name(self, name_key: str, entity_id: str) -> None:
		holder = await self.redis.hget(_NAMES_KEY, name_key)
		if holder is not None and str(holder) == str(entity_id):
			await self.redis.hdel(_NAMES_KEY, name_key)


_store = RedisDirectoryStore()


def get_directory_store() -> RedisDirectoryStore:
	return _store
