"""Slack Web API client."""

from __future__ import annotations

from typing import Any

import httpx

from slackport.errors import SlackApiError
from slackport.models import WireRequest
from slackport.utils.logging import get_logger

log = get_logger(__name__)


class SlackClient:
    def __init__(
        self,
        base_url: str = "https://slack.com/api/",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/",
            timeout=timeout,
        )

    async def call(self, request: WireRequest) -> dict[str, Any]:
        """POST a wire request as JSON and return the decoded response.

        Raises httpx.HTTPStatusError on transport-level failures and
        SlackApiError when Slack reports ``ok: false``.
        """
        resp = await self._client.post(
            request.url,
            json=request.body,
            headers={"Content-Type": "application/json; charset=utf-8", **request.headers},
        )
        resp.raise_for_status()
        data: dict[str, Any] = resp.json()
        if not data.get("ok", False):
            error = data.get("error", "unknown_error")
            log.warning("slack_api_error", method=request.url, error=error)
            raise SlackApiError(request.url, error)
        return data

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
