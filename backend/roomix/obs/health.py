"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from roomix.infra import postgres
from roomix.infra.redis import redis_client
from roomix.obs import metrics
from roomix.settings import settings

LOGGER = logging.getLogger(__name__)


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(redis_client.ping(), timeout=timeout)
		latency = perf_counter() - start
		metrics.mark_redis(True, latency_seconds=latency)
		return {"ok": True, "latency_ms": round(latency * 1000, 2)}
	except Exception as exc:  # pragma: no cover - depends on runtime
		metrics.mark_redis(False)
		LOGGER.warning("Redis readiness check failed", exc_info=True)
		return {"ok": False, "error": str(exc)}


async def _postgres_status(timeout: float = 0.3) -> Dict[str, Any]:
	if not settings.uses_postgres():
		return {"ok": True, "backend": settings.profile_store_backend}
	start = perf_counter()
	try:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			await asyncio.wait_for(conn.execute("SELECT 1"), timeout=timeout)
		latency = perf_counter() - start
		metrics.mark_postgres(True, latency_seconds=latency)
		return {"ok": True, "latency_ms": round(latency * 1000, 2)}
	except Exception as exc:  # pragma: no cover - depends on runtime
		metrics.mark_postgres(False)
		LOGGER.warning("Postgres readiness query failed", exc_info=True)
		return {"ok": False, "error": str(exc)}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	redis_state, postgres_state = await asyncio.gather(_redis_status(), _postgres_status())
	ok = bool(redis_state.get("ok") and postgres_state.get("ok"))
	return (
		200 if ok else 503,
		{
			"status": "ok" if ok else "degraded",
			"checks": {"redis": redis_state, "postgres": postgres_state},
		},
	)
