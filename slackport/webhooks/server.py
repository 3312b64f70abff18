"""Slack webhook HTTP server using aiohttp."""

from __future__ import annotations

import json
from typing import Any

import httpx
from aiohttp import web

from slackport.config import ServerConfig
from slackport.core.auth import AuthProvider
from slackport.core.bus import EventBus, MessageIncoming
from slackport.core.hooks import HookRegistry
from slackport.errors import AuthLookupError
from slackport.models import Message, RequestMeta
from slackport.slack.normalizer import parse_interactive_payload
from slackport.utils.logging import get_logger
from slackport.webhooks.proxy import AttachmentProxy
from slackport.webhooks.signature import validate_slack_signature

log = get_logger(__name__)


class WebhookServer:
    """Receives Slack webhooks, publishes canonical messages to the bus
    and serves the attachment proxy."""

    def __init__(
        self,
        config: ServerConfig,
        bus: EventBus,
        auth: AuthProvider,
        registry: HookRegistry,
        hook: str = "slackIn",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._bus = bus
        self._auth = auth
        self._registry = registry
        self._hook = hook
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(follow_redirects=True)
        self._proxy = AttachmentProxy(auth, self._http_client, config.attachment_hosts)
        self._runner: web.AppRunner | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if not self._config.signing_secret:
            log.warning(
                "webhook_no_signing_secret",
                msg="No signing secret configured; Slack request signatures are not verified.",
            )
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=self._config.bind,
            port=self._config.port,
            prefix=self._config.path_prefix,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        if self._owns_client:
            await self._http_client.aclose()
        log.info("webhook_server_stopped")

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        app = web.Application()
        base = f"/{self._config.path_prefix.strip('/')}/{{app_id}}/{{client_id}}"
        app.router.add_get(f"{base}/attachment", self._proxy.handle)
        app.router.add_post(base, self._handle_webhook)
        app.router.add_post(f"{base}/{{action}}", self._handle_webhook)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        body = await request.read()

        if self._config.signing_secret and not validate_slack_signature(
            body,
            request.headers.get("X-Slack-Request-Timestamp", ""),
            request.headers.get("X-Slack-Signature", ""),
            self._config.signing_secret,
        ):
            return web.Response(status=401, text="Invalid signature")

        meta = self._meta(request)
        identity = self._invoke("identity.request.receive", None, meta)
        try:
            meta.auth = await self._auth.fetch(
                identity["platform"], identity["appId"], identity["clientId"]
            )
        except AuthLookupError:
            return web.Response(status=403, text="Unknown installation")

        try:
            payload = await self._parse(request, body, meta)
        except (KeyError, ValueError):
            return web.Response(status=400, text="Invalid payload")

        log.debug("webhook_payload", kind=payload.get("type"), payload=payload)
        result = self._invoke("message.request.receive", payload, meta)

        # Control signals are answered inline and never forwarded
        reply = self._invoke("server.response.send", result, meta)
        if reply is not None:
            log.info("webhook_control_reply", app_id=meta.app_id, kind=payload.get("type"))
            return web.json_response(reply)

        if isinstance(result, Message):
            await self._bus.publish(
                MessageIncoming(
                    message=result,
                    data={"app_id": meta.app_id, "client_id": meta.client_id},
                )
            )
            log.info(
                "webhook_message_received",
                app_id=meta.app_id,
                type=getattr(result.type, "value", result.type),
                channel=result.receiver.id,
            )

        return web.json_response(self._config.response_body)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _invoke(self, name: str, msg: Any, meta: RequestMeta) -> Any:
        return self._registry.invoke(f"{self._hook}.{name}", msg, meta)

    def _meta(self, request: web.Request) -> RequestMeta:
        app_id = request.match_info["app_id"]
        client_id = request.match_info["client_id"]
        prefix = self._config.path_prefix.strip("/")
        return RequestMeta(
            app_id=app_id,
            client_id=client_id,
            action=request.match_info.get("action"),
            headers=dict(request.headers),
            base_url=self._config.public_url or f"{request.scheme}://{request.host}",
            path=f"/{prefix}/{app_id}/{client_id}",
        )

    async def _parse(self, request: web.Request, body: bytes, meta: RequestMeta) -> dict[str, Any]:
        if meta.action:
            payload = parse_interactive_payload(await request.post())
        else:
            payload = json.loads(body)
        if not isinstance(payload, dict):
            raise ValueError("webhook payload is not an object")
        return payload
