"""Tests for the /api/v1/professions endpoints."""

import pytest

from hh_vibe.providers import TransientError
from hh_vibe.providers.llm.base import TaskType
from tests.conftest import make_card

PROFESSIONS_URL = "/api/v1/professions"
GENERATE_URL = f"{PROFESSIONS_URL}/generate"


class TestListProfessions:
    @pytest.mark.asyncio
    async def test_empty_store(self, client):
        response = await client.get(PROFESSIONS_URL)

        assert response.status_code == 200
        assert response.json() == {"data": []}

    @pytest.mark.asyncio
    async def test_summaries_in_camel_case(self, client, card_store):
        await card_store.put(
            "florist", make_card("Флорист", "florist", images=["/img/florist.png"])
        )
        await card_store.put("barista", make_card("Бариста", "barista"))

        response = await client.get(PROFESSIONS_URL)

        data = response.json()["data"]
        assert [item["slug"] for item in data] == ["barista", "florist"]
        assert data[1]["image"] == "/img/florist.png"
        assert data[1]["vacancies"] == 1200


class TestGetProfession:
    @pytest.mark.asyncio
    async def test_stored_card_returned(self, client, card_store):
        await card_store.put(
            "barista", make_card("Бариста", "barista", avg_salary=70_000, comic={"frames": 4})
        )

        response = await client.get(f"{PROFESSIONS_URL}/barista")

        assert response.status_code == 200
        card = response.json()["data"]
        assert card["profession"] == "Бариста"
        assert card["avgSalary"] == 70_000
        assert card["comic"] == {"frames": 4}
        assert "userPreferences" not in card

    @pytest.mark.asyncio
    async def test_missing_card_is_404(self, client):
        response = await client.get(f"{PROFESSIONS_URL}/sommelier")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_path_traversal_is_404(self, client):
        response = await client.get(f"{PROFESSIONS_URL}/..%2F..%2Fetc%2Fpasswd")

        assert response.status_code == 404


class TestGenerateProfession:
    """POST /professions/generate."""

    @pytest.mark.asyncio
    async def test_stored_card_is_cached(self, client, card_store, mock_llm):
        await card_store.put("barista", make_card("Бариста", "barista"))

        response = await client.post(GENERATE_URL, json={"profession": " Бариста "})

        assert response.status_code == 200
        assert response.json()["cached"] is True
        assert response.json()["data"]["slug"] == "barista"
        assert mock_llm.calls == []

    @pytest.mark.asyncio
    async def test_missing_card_generated_and_stored(
        self, client, card_store, mock_llm, market, card_json
    ):
        mock_llm.set_response(TaskType.CARD_GENERATION, card_json)

        response = await client.post(
            GENERATE_URL,
            json={
                "profession": "Бариста",
                "level": "Junior",
                "company": "кофейня",
                "companySize": "startup",
                "location": "moscow",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["cached"] is False
        assert body["data"]["isIT"] is True
        assert body["data"]["level"] == "Junior"
        assert body["data"]["competition"] == "очень низкая"
        assert await card_store.get("barista") is not None
        assert market.queries[0].text == "Бариста"

    @pytest.mark.asyncio
    async def test_generation_failure_is_502(self, client, mock_llm):
        mock_llm.set_error(TaskType.CARD_GENERATION, TransientError("region not supported"))

        response = await client.post(GENERATE_URL, json={"profession": "Бариста"})

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "CARD_GENERATION_FAILED"

    @pytest.mark.parametrize("profession", ["", "   "])
    @pytest.mark.asyncio
    async def test_empty_profession_is_400(self, client, profession):
        response = await client.post(GENERATE_URL, json={"profession": profession})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
