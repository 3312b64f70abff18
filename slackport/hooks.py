"""Slack handlers for the named bus hooks."""

from __future__ import annotations

from typing import Any

from slackport.config import SlackConfig
from slackport.core.hooks import HookRegistry, Registration
from slackport.models import (
    PLATFORM,
    AuthContext,
    Message,
    RequestMeta,
    VerificationChallenge,
    WireRequest,
)
from slackport.slack.formatting import render_body
from slackport.slack.normalizer import InboundResult, normalize_event
from slackport.slack.tokens import APP_SCOPE, BOT_SCOPE, bearer
from slackport.utils.logging import get_logger

log = get_logger(__name__)

POST_MESSAGE = "chat.postMessage"
CREATE_CONVERSATION = "conversations.create"


def _require_auth(meta: RequestMeta) -> AuthContext:
    if meta.auth is None:
        raise ValueError("request metadata carries no auth context")
    return meta.auth


class SlackHooks:
    """Maps hook names onto the normalizer, formatter and token resolver.

    ``hook`` prefixes the hooks of the inbound webhook side, ``namespace``
    the hooks of outbound Web API calls.
    """

    def __init__(self, config: SlackConfig) -> None:
        self._config = config
        self.hook = config.hook
        self.namespace = config.namespace

    def handlers(self) -> dict[str, Any]:
        hook, namespace = self.hook, self.namespace
        return {
            f"{hook}.identity.request.receive": self.identity_request_receive,
            f"{hook}.identity.response.send": self.identity_response_send,
            f"{hook}.message.request.receive": self.message_request_receive,
            f"{hook}.server.response.send": self.server_response_send,
            f"{hook}.message.response.send": self.message_response_send,
            f"{namespace}.message.send.request.send": self.message_send_request_send,
            f"{namespace}.message.send.response.receive": self.message_send_response_receive,
            f"{namespace}.conversation.create.request.send": self.conversation_create_request_send,
            f"{namespace}.conversation.create.response.receive": self.conversation_create_response_receive,
        }

    def register(self, registry: HookRegistry) -> list[Registration]:
        """Register every hook once; unregister through the returned handles."""
        return [registry.register(name, fn) for name, fn in self.handlers().items()]

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def identity_request_receive(self, msg: Any, meta: RequestMeta) -> dict[str, str]:
        return {
            "clientId": meta.client_id,
            "appId": meta.app_id,
            "platform": PLATFORM,
        }

    def identity_response_send(self, msg: Any, meta: RequestMeta) -> Any:
        return msg

    def message_request_receive(self, msg: dict[str, Any], meta: RequestMeta) -> InboundResult:
        return normalize_event(msg, meta)

    def server_response_send(self, msg: Any, meta: RequestMeta | None = None) -> dict[str, Any] | None:
        """Inline reply body for control signals; None lets the default reply stand."""
        if isinstance(msg, VerificationChallenge):
            return {"challenge": msg.challenge}
        return None

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def message_response_send(self, msg: Message | None, meta: RequestMeta) -> WireRequest | None:
        """Bot reply to an inbound message, posted with the bot token."""
        body = render_body(msg) if msg else None
        if body is None:
            return None
        return WireRequest(
            url=POST_MESSAGE,
            headers=bearer(_require_auth(meta), BOT_SCOPE),
            body={**body, "as_user": True},
        )

    def message_send_request_send(self, msg: Message | None, meta: RequestMeta) -> WireRequest | None:
        """Relay of a message from another platform, posted with the app token."""
        body = render_body(msg) if msg else None
        if body is None:
            return None
        is_bot = msg.sender.platform in self._config.bot_platforms
        return WireRequest(
            url=POST_MESSAGE,
            headers=bearer(_require_auth(meta), APP_SCOPE),
            body={
                **body,
                "username": "bot" if is_bot else f"{msg.sender.platform} user",
                "icon_emoji": ":computer:" if is_bot else ":adult:",
            },
        )

    def message_send_response_receive(self, msg: Any, meta: Any = None) -> None:
        log.debug("slack_message_sent", response=msg)
        return None

    def conversation_create_request_send(self, msg: dict[str, Any], meta: RequestMeta) -> WireRequest:
        return WireRequest(
            url=CREATE_CONVERSATION,
            headers=bearer(_require_auth(meta), APP_SCOPE),
            body={
                "name": msg["name"],
                "user_ids": ",".join(msg.get("users") or []),
            },
        )

    def conversation_create_response_receive(self, msg: dict[str, Any], meta: Any = None) -> Any:
        return msg.get("channel")
