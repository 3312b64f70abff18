"""Attachment proxy: relays token-protected Slack files to token-less consumers."""

from __future__ import annotations

from collections.abc import Iterable

import httpx
from aiohttp import web
from yarl import URL

from slackport.core.auth import AuthProvider
from slackport.models import PLATFORM
from slackport.slack.tokens import BOT_SCOPE, bearer
from slackport.utils.logging import get_logger

log = get_logger(__name__)

# Headers copied from the upstream file response
_FORWARDED_HEADERS = ("Content-Type", "Content-Disposition")


class AttachmentProxy:
    """``GET .../attachment?url=...`` handler.

    The route itself is unauthenticated; the bot token of the installation
    named in the path is attached to the upstream request only.
    """

    def __init__(
        self,
        auth: AuthProvider,
        client: httpx.AsyncClient,
        allowed_hosts: Iterable[str] = ("files.slack.com",),
    ) -> None:
        self._auth = auth
        self._client = client
        self._allowed_hosts = frozenset(h.lower() for h in allowed_hosts)

    def is_allowed(self, url: str) -> bool:
        """Only https URLs on a configured Slack file host receive the token."""
        try:
            target = URL(url)
        except (TypeError, ValueError):
            return False
        return target.scheme == "https" and (target.host or "").lower() in self._allowed_hosts

    async def handle(self, request: web.Request) -> web.StreamResponse:
        url = request.query.get("url")
        if not url:
            return web.Response(status=404, text="Not found")
        if not self.is_allowed(url):
            log.warning("attachment_host_rejected", url=url)
            return web.Response(status=404, text="Not found")

        # Lookup and token failures propagate and fail this request only
        auth = await self._auth.fetch(
            PLATFORM,
            request.match_info["app_id"],
            request.match_info["client_id"],
        )
        headers = bearer(auth, BOT_SCOPE)

        async with self._client.stream("GET", url, headers=headers) as upstream:
            response = web.StreamResponse(status=upstream.status_code)
            for name in _FORWARDED_HEADERS:
                if name in upstream.headers:
                    response.headers[name] = upstream.headers[name]
            await response.prepare(request)
            size = 0
            async for chunk in upstream.aiter_bytes():
                size += len(chunk)
                await response.write(chunk)
            await response.write_eof()

        log.info("attachment_proxied", status=upstream.status_code, size=size)
        return response
