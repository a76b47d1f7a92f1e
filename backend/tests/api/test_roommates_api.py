import pytest


def _payload(bio="Quiet CS student", lifestyle=("quiet", "clean"), interests=("chess",), location=("north",)):
	return {
		"bio": bio,
		"interests": list(interests),
		"preferences": {
			"budget": {"min": 8000, "max": 12000},
			"location": list(location),
			"lifestyle": list(lifestyle),
		},
	}


@pytest.mark.asyncio
async def test_profile_lifecycle(api_client, user_headers):
	headers = user_headers("alice")

	missing = await api_client.get("/api/roommates/profile", headers=headers)
	assert missing.status_code == 404
	assert missing.json()["detail"] == "profile_not_found"
	assert "request_id" in missing.json()

	created = await api_client.post("/api/roommates/profile", json=_payload(), headers=headers)
	assert created.status_code == 200
	body = created.json()
	assert body["user_id"] == "alice"
	assert body["profile_complete"] is True
	assert body["preferences"]["budget"] == {"min": 8000, "max": 12000}

	partial = await api_client.post("/api/roommates/profile", json={"interests": ["go"]}, headers=headers)
	assert partial.status_code == 200
	assert partial.json()["bio"] == "Quiet CS student"
	assert partial.json()["interests"] == ["go"]

	other = await api_client.get("/api/roommates/profile/alice", headers=user_headers("bob"))
	assert other.status_code == 200

	deleted = await api_client.delete("/api/roommates/profile", headers=headers)
	assert deleted.status_code == 200
	assert (await api_client.get("/api/roommates/profile", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_profile_validation_errors(api_client, user_headers):
	headers = user_headers("alice")
	bad_budget = _payload()
	bad_budget["preferences"]["budget"] = {"min": 20000, "max": 1000}
	response = await api_client.post("/api/roommates/profile", json=bad_budget, headers=headers)
	assert response.status_code == 422
	assert response.json()["detail"] == "budget_min_exceeds_max"

	response = await api_client.post(
		"/api/roommates/profile", json=_payload(lifestyle=("party",)), headers=headers
	)
	assert response.status_code == 422
	assert response.json()["detail"] == "unknown_lifestyle:party"

	response = await api_client.post("/api/roommates/profile", json={"bio": 42}, headers=headers)
	assert response.status_code == 422
	assert response.json()["detail"] == "validation_error"


@pytest.mark.asyncio
async def test_matches_ranked_with_compatibility(api_client, user_headers):
	await api_client.post("/api/roommates/profile", json=_payload(), headers=user_headers("me"))
	await api_client.post(
		"/api/roommates/profile", json=_payload(lifestyle=("quiet",), interests=(), location=()), headers=user_headers("ok")
	)
	await api_client.post("/api/roommates/profile", json=_payload(), headers=user_headers("twin"))

	response = await api_client.get("/api/roommates/matches", headers=user_headers("me"))
	assert response.status_code == 200
	body = response.json()
	assert body["count"] == 2
	assert [m["user_id"] for m in body["matches"]] == ["twin", "ok"]
	assert body["matches"][0]["compatibility"] == 100
	assert body["matches"][1]["compatibility"] == 45

	listing = await api_client.get("/api/roommates/all", headers=user_headers("me"))
	assert listing.json()["count"] == 3


@pytest.mark.asyncio
async def test_matches_without_profile_is_404(api_client, user_headers):
	response = await api_client.get("/api/roommates/matches", headers=user_headers("ghost"))
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_roommate_routes_require_authentication(api_client):
	response = await api_client.get("/api/roommates/matches")
	assert response.status_code == 401
	assert response.json()["detail"] == "invalid_token"
