from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from roomix.domain.roommates.models import Preferences, ProfileChanges
from roomix.domain.roommates.store import PostgresProfileStore, ensure_schema, get_profile_store
from roomix.infra import postgres
from roomix.settings import settings

NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _row(**overrides) -> dict:
	row = {
		"user_id": "u1",
		"bio": "hello",
		"interests": '["chess"]',
		"budget_min": 5000.0,
		"budget_max": 9000.0,
		"locations": '["north"]',
		"lifestyle": '["quiet"]',
		"profile_complete": True,
		"created_at": NOW,
		"updated_at": NOW,
	}
	row.update(overrides)
	return row


def _mock_pool(conn: AsyncMock) -> MagicMock:
	pool = MagicMock()
	pool.acquire.return_value.__aenter__.return_value = conn
	conn.transaction = MagicMock()
	conn.transaction.return_value.__aenter__ = AsyncMock(return_value=None)
	conn.transaction.return_value.__aexit__ = AsyncMock(return_value=False)
	return pool


@pytest.mark.asyncio
async def test_get_profile_maps_row():
	conn = AsyncMock()
	conn.fetchrow.return_value = _row()
	with patch("roomix.domain.roommates.store.get_pool", AsyncMock(return_value=_mock_pool(conn))):
		profile = await PostgresProfileStore().get_profile("u1")
	assert profile is not None
	assert profile.interests == ("chess",)
	assert profile.preferences.location == ("north",)


@pytest.mark.asyncio
async def test_get_profile_missing_returns_none():
	conn = AsyncMock()
	conn.fetchrow.return_value = None
	with patch("roomix.domain.roommates.store.get_pool", AsyncMock(return_value=_mock_pool(conn))):
		assert await PostgresProfileStore().get_profile("nobody") is None


@pytest.mark.asyncio
async def test_upsert_locks_row_and_merges_inside_transaction():
	conn = AsyncMock()
	saved = _row(interests='["go"]')
	conn.fetchrow.side_effect = [_row(), saved]
	pool = _mock_pool(conn)
	with patch("roomix.domain.roommates.store.get_pool", AsyncMock(return_value=pool)):
		profile = await PostgresProfileStore().upsert_profile("u1", ProfileChanges(interests=("go",)))

	conn.transaction.assert_called_once()
	select_sql = conn.fetchrow.call_args_list[0].args[0]
	insert_call = conn.fetchrow.call_args_list[1]
	assert "FOR UPDATE" in select_sql
	assert "ON CONFLICT (user_id)" in insert_call.args[0]
	# bio and preferences carried over from the locked row
	assert insert_call.args[2] == "hello"
	assert insert_call.args[3] == '["go"]'
	assert insert_call.args[6] == '["north"]'
	assert profile.interests == ("go",)


@pytest.mark.asyncio
async def test_upsert_new_profile_inserts_defaults():
	conn = AsyncMock()
	conn.fetchrow.side_effect = [None, _row(interests="[]", locations="[]", lifestyle="[]", profile_complete=True)]
	with patch("roomix.domain.roommates.store.get_pool", AsyncMock(return_value=_mock_pool(conn))):
		await PostgresProfileStore().upsert_profile(
			"u1", ProfileChanges(bio="hello", preferences=Preferences.parse())
		)
	insert_args = conn.fetchrow.call_args_list[1].args
	assert insert_args[4] == 5000.0
	assert insert_args[5] == 50000.0
	assert insert_args[8] is True


@pytest.mark.asyncio
async def test_list_complete_profiles_passes_exclusion():
	conn = AsyncMock()
	conn.fetch.return_value = [_row(user_id="u2")]
	with patch("roomix.domain.roommates.store.get_pool", AsyncMock(return_value=_mock_pool(conn))):
		profiles = await PostgresProfileStore().list_complete_profiles(exclude_user_id="u1")
	assert [profile.user_id for profile in profiles] == ["u2"]
	assert conn.fetch.call_args.args[1] == "u1"


@pytest.mark.asyncio
async def test_delete_profile_reports_removal():
	conn = AsyncMock()
	conn.execute.side_effect = ["DELETE 1", "DELETE 0"]
	with patch("roomix.domain.roommates.store.get_pool", AsyncMock(return_value=_mock_pool(conn))):
		store = PostgresProfileStore()
		assert await store.delete_profile("u1") is True
		assert await store.delete_profile("u1") is False


@pytest.mark.asyncio
async def test_ensure_schema_creates_table():
	conn = AsyncMock()
	with patch("roomix.domain.roommates.store.get_pool", AsyncMock(return_value=_mock_pool(conn))):
		await ensure_schema()
	assert "CREATE TABLE IF NOT EXISTS roommate_profiles" in conn.execute.call_args.args[0]


def test_backend_selection_follows_settings():
	settings.profile_store_backend = "postgres"
	assert isinstance(get_profile_store(), PostgresProfileStore)
	settings.profile_store_backend = "memory"
	assert not isinstance(get_profile_store(), PostgresProfileStore)


@pytest.mark.asyncio
async def test_get_pool_raises_when_pool_cannot_be_created(monkeypatch):
	# init_pool is a no-op under the test fixtures, so no pool ever appears
	monkeypatch.setattr(postgres, "_pool", None)
	with pytest.raises(RuntimeError, match="postgres pool unavailable"):
		await postgres.get_pool()
