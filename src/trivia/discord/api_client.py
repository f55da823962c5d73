"""HTTP client the bot uses to reach the trivia backend.

One ``httpx.AsyncClient`` is created per bot and closed with it. Backend
rejections come back as ``ApiResult(ok=False, error=...)``; only transport
failures raise (``TransientError``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from trivia.core.weeks import period_to_week_id
from trivia.errors import TransientError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-KEY"


@dataclass(frozen=True)
class ApiResult:
    ok: bool
    status: int
    error: str | None = None
    data: dict = field(default_factory=dict)

    @property
    def overflow(self) -> bool:
        return bool(self.data.get("overflow", False))


class TriviaApiClient:
    """Thin async wrapper over the backend's ``?action=`` endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
            headers={API_KEY_HEADER: api_key},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def register(self, discord_id: str, rsn: str) -> ApiResult:
        return await self._request(
            "POST", "register", json={"discord_id": discord_id, "rsn": rsn}
        )

    async def submit(
        self,
        discord_id: str,
        question: str,
        answer: str,
        period: int | None = None,
    ) -> ApiResult:
        """Submit a question. *period* is the 1-based week number, if any."""
        payload: dict[str, object] = {
            "discord_id": discord_id,
            "question": question,
            "answer": answer,
        }
        week_id = period_to_week_id(period)
        if week_id is not None:
            payload["week_id"] = week_id
        return await self._request("POST", "submit", json=payload)

    async def leaderboard(self, rsn: str | None = None, limit: int | None = None) -> ApiResult:
        params: dict[str, object] = {}
        if rsn:
            params["rsn"] = rsn
        if limit is not None:
            params["limit"] = limit
        return await self._request("GET", "leaderboard", params=params)

    async def _request(
        self,
        method: str,
        action: str,
        *,
        json: dict | None = None,
        params: dict | None = None,
    ) -> ApiResult:
        query = {"action": action, **(params or {})}
        try:
            resp = await self._client.request(method, self.base_url, params=query, json=json)
        except httpx.TransportError as exc:
            logger.warning("trivia_api_unreachable action=%s err=%r", action, exc)
            raise TransientError("The trivia server could not be reached.") from exc

        try:
            body = resp.json()
        except ValueError:
            logger.warning(
                "trivia_api_bad_body action=%s status=%d body=%.200s",
                action,
                resp.status_code,
                resp.text,
            )
            return ApiResult(ok=False, status=resp.status_code, error="Unknown error")

        logger.info(
            "trivia_api_response action=%s status=%d body=%s", action, resp.status_code, body
        )
        if not isinstance(body, dict):
            return ApiResult(ok=False, status=resp.status_code, error="Unknown error")
        if resp.is_success and not body.get("error"):
            return ApiResult(ok=True, status=resp.status_code, data=body)
        return ApiResult(
            ok=False,
            status=resp.status_code,
            error=str(body.get("error") or "Unknown error"),
            data=body,
        )
