"""Slack transport: posts canonical messages through the Web API."""

from __future__ import annotations

from typing import Any

from slackport.config import SlackConfig
from slackport.core.auth import AuthProvider
from slackport.core.bus import Event, EventBus, EventType, MessageOutgoing
from slackport.core.hooks import HookRegistry
from slackport.models import PLATFORM, Message, RequestMeta
from slackport.slack.client import SlackClient
from slackport.transports.base import Transport
from slackport.utils.logging import get_logger

log = get_logger(__name__)


class SlackTransport(Transport):
    def __init__(
        self,
        config: SlackConfig,
        bus: EventBus,
        auth: AuthProvider,
        registry: HookRegistry,
        client: SlackClient | None = None,
    ) -> None:
        super().__init__(bus)
        self._config = config
        self._auth = auth
        self._registry = registry
        self._owns_client = client is None
        self._client = client or SlackClient(config.base_url, timeout=config.timeout)

    @property
    def platform_name(self) -> str:
        return PLATFORM

    async def start(self) -> None:
        self.bus.subscribe(EventType.MESSAGE_OUTGOING, self._handle_outgoing)
        log.info("slack_transport_started", base_url=self._config.base_url)

    async def stop(self) -> None:
        if self._owns_client:
            await self._client.close()
        log.info("slack_transport_stopped")

    # ------------------------------------------------------------------
    # Outgoing
    # ------------------------------------------------------------------

    async def _handle_outgoing(self, event: Event) -> None:
        if not isinstance(event, MessageOutgoing) or event.message is None:
            return
        await self.send_message(
            event.message,
            event.data.get("app_id", ""),
            event.data.get("client_id", ""),
            reply=event.reply,
        )

    async def send_message(
        self,
        message: Message,
        app_id: str,
        client_id: str,
        *,
        reply: bool = True,
    ) -> dict | None:
        """Render and post a message.

        ``reply`` posts as the bot (bot token); otherwise the message is
        relayed on behalf of a user of another platform (app token).
        Returns the Slack response, or None when the message has no Slack
        rendering.
        """
        meta = await self._meta(app_id, client_id)
        hook = (
            f"{self._config.hook}.message.response.send"
            if reply
            else f"{self._config.namespace}.message.send.request.send"
        )
        request = self._registry.invoke(hook, message, meta)
        if request is None:
            log.info(
                "slack_message_skipped",
                type=getattr(message.type, "value", message.type),
                channel=message.receiver.conversation_id,
            )
            return None

        response = await self._client.call(request)
        self._registry.invoke(
            f"{self._config.namespace}.message.send.response.receive", response, meta
        )
        log.info(
            "slack_message_posted",
            channel=message.receiver.conversation_id,
            reply=reply,
        )
        return response

    async def create_conversation(
        self, name: str, users: list[str], app_id: str, client_id: str
    ) -> Any:
        """Create a channel with the given members and return it."""
        meta = await self._meta(app_id, client_id)
        namespace = self._config.namespace
        request = self._registry.invoke(
            f"{namespace}.conversation.create.request.send",
            {"name": name, "users": users},
            meta,
        )
        response = await self._client.call(request)
        channel = self._registry.invoke(
            f"{namespace}.conversation.create.response.receive", response, meta
        )
        log.info("slack_conversation_created", name=name, members=len(users))
        return channel

    async def _meta(self, app_id: str, client_id: str) -> RequestMeta:
        auth = await self._auth.fetch(PLATFORM, app_id, client_id)
        return RequestMeta(app_id=app_id, client_id=client_id, auth=auth)
