"""Tests for the bot's HTTP client to the trivia backend."""

import json

import httpx
import pytest

from trivia.discord.api_client import API_KEY_HEADER, TriviaApiClient
from trivia.errors import TransientError, ValidationError

BASE_URL = "http://backend.test/api/trivia"
DISCORD_ID = "123456789012345"


def make_client(handler) -> TriviaApiClient:
    return TriviaApiClient(BASE_URL, "secret", transport=httpx.MockTransport(handler))


class TestRegister:
    async def test_sends_action_key_and_body(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["action"] = request.url.params["action"]
            seen["key"] = request.headers[API_KEY_HEADER]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        client = make_client(handler)
        result = await client.register(DISCORD_ID, "Zezima")
        await client.close()

        assert result.ok is True
        assert seen == {
            "action": "register",
            "key": "secret",
            "body": {"discord_id": DISCORD_ID, "rsn": "Zezima"},
        }

    async def test_backend_error_is_reported(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"error": "Invalid RSN format"})

        client = make_client(handler)
        result = await client.register(DISCORD_ID, "Zezima")
        await client.close()

        assert result.ok is False
        assert result.status == 422
        assert result.error == "Invalid RSN format"

    async def test_non_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad gateway</html>")

        client = make_client(handler)
        result = await client.register(DISCORD_ID, "Zezima")
        await client.close()

        assert result.ok is False
        assert result.error == "Unknown error"


class TestSubmit:
    async def test_period_converted_to_zero_based(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "overflow": False})

        client = make_client(handler)
        result = await client.submit(DISCORD_ID, "Who is Zezima?", "A legend", period=2)
        await client.close()

        assert result.ok is True
        assert result.overflow is False
        assert bodies[0]["week_id"] == 1

    async def test_no_period_omits_week(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "overflow": True})

        client = make_client(handler)
        result = await client.submit(DISCORD_ID, "Who is Zezima?", "A legend")
        await client.close()

        assert "week_id" not in bodies[0]
        assert result.overflow is True

    async def test_period_zero_rejected_before_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = make_client(handler)
        with pytest.raises(ValidationError):
            await client.submit(DISCORD_ID, "Who is Zezima?", "A legend", period=0)
        await client.close()

    async def test_transport_failure_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(TransientError):
            await client.submit(DISCORD_ID, "Who is Zezima?", "A legend")
        await client.close()


class TestLeaderboard:
    async def test_query_params(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"count": 1, "data": [{"rsn": "Zezima", "score": 9}]})

        client = make_client(handler)
        result = await client.leaderboard(rsn="Zezima", limit=5)
        await client.close()

        assert seen["method"] == "GET"
        assert seen["params"] == {"action": "leaderboard", "rsn": "Zezima", "limit": "5"}
        assert result.data["data"][0]["score"] == 9
