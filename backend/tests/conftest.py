import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from roomix.domain.roommates.store import reset_memory_store
from roomix.infra import postgres
from roomix.main import app
from roomix.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from roomix.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via X-User-Id/X-User-Roles headers, which are only
	accepted in dev mode, and roommate profiles live in the in-process store.
	"""
	original_env = settings.environment
	original_backend = settings.profile_store_backend
	settings.environment = "dev"
	settings.profile_store_backend = "memory"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.profile_store_backend = original_backend


@pytest_asyncio.fixture(autouse=True)
async def clean_profiles():
	await reset_memory_store()
	yield
	await reset_memory_store()


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client


@pytest.fixture
def user_headers():
	def _headers(user_id: str, *roles: str) -> dict:
		headers = {"X-User-Id": user_id}
		if roles:
			headers["X-User-Roles"] = ",".join(roles)
		return headers

	return _headers
