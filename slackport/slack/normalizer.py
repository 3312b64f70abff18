"""Inbound Slack webhook payload normalization."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from yarl import URL

from slackport.models import (
    PLATFORM,
    EventKind,
    Message,
    MessageType,
    Party,
    RequestMeta,
    VerificationChallenge,
)
from slackport.slack.formatting import decode_action_value, sanitize
from slackport.utils.logging import get_logger

log = get_logger(__name__)

BOT_SUBTYPE = "bot_message"
FILE_SHARE_SUBTYPE = "file_share"

InboundResult = Message | VerificationChallenge | None


def parse_ts(ts: Any) -> int | None:
    """Slack ``"1700000000.123456"`` timestamps to whole UNIX seconds."""
    if ts is None:
        return None
    return int(str(ts).split(".")[0])


def parse_interactive_payload(form: Mapping[str, Any]) -> dict[str, Any]:
    """Interactive callbacks are form-encoded with a JSON ``payload`` field."""
    return json.loads(form["payload"])


def attachment_proxy_url(meta: RequestMeta, url: str) -> str:
    """URL of this webhook's attachment endpoint relaying ``url``."""
    base = URL(meta.base_url)
    # Keep any path prefix the public base URL carries
    path = f"{base.path.rstrip('/')}{meta.path.rstrip('/')}/attachment"
    return str(base.with_path(path).with_query(url=url))


def normalize_event(payload: Mapping[str, Any], meta: RequestMeta) -> InboundResult:
    """Turn a Slack webhook payload into a canonical message or control signal.

    Returns None for payloads that must not reach the bus: unknown event
    kinds, actions without an action id and bot-originated messages.
    """
    match payload.get("type"):
        case EventKind.BLOCK_ACTIONS:
            return _block_actions(payload, meta)
        case EventKind.URL_VERIFICATION:
            return VerificationChallenge(challenge=payload.get("challenge", ""))
        case EventKind.EVENT_CALLBACK:
            return _event_callback(payload, meta)
        case kind:
            log.debug("slack_event_unhandled", kind=kind)
            return None


def _block_actions(payload: Mapping[str, Any], meta: RequestMeta) -> Message | None:
    found = next(
        (a for a in payload.get("actions") or [] if isinstance(a, Mapping) and a.get("action_id")),
        None,
    )
    if found is None:
        log.debug("slack_action_without_id", trigger_id=payload.get("trigger_id"))
        return None

    user_id = payload["user"]["id"]
    channel_id = (payload.get("channel") or {}).get("id")
    bot_id = (payload.get("message") or {}).get("bot_id")

    return Message(
        type=MessageType.ACTION,
        message_id=payload.get("trigger_id"),
        timestamp=parse_ts(found.get("action_ts")),
        sender=Party(
            id=user_id,
            platform=PLATFORM,
            context_id=meta.context_id,
            conversation_id=channel_id,
        ),
        receiver=Party(id=channel_id),
        text=found["action_id"].split("-", 1)[0],
        details={
            **decode_action_value(found.get("value")),
            "users": [user_id],
            "bot": bot_id,
        },
        request=dict(payload),
    )


def _event_callback(payload: Mapping[str, Any], meta: RequestMeta) -> Message | None:
    event = payload.get("event") or {}
    if event.get("type") != "message":
        return None
    # Never feed our own (or any other bot's) traffic back in
    if event.get("subtype") == BOT_SUBTYPE or event.get("bot_id"):
        return None

    attachments: list[dict[str, Any]] = []
    if event.get("subtype") == FILE_SHARE_SUBTYPE:
        attachments = [
            {
                "url": attachment_proxy_url(meta, f.get("url_private_download") or ""),
                "contentType": f.get("mimetype"),
                "filename": f.get("name"),
            }
            for f in event.get("files") or []
        ]

    channel_id = event.get("channel")
    return Message(
        type=MessageType.TEXT,
        message_id=event.get("client_msg_id"),
        timestamp=parse_ts(event.get("ts")),
        sender=Party(
            id=event.get("user"),
            platform=PLATFORM,
            context_id=meta.context_id,
            conversation_id=channel_id,
        ),
        receiver=Party(id=channel_id),
        text=sanitize(event.get("text")),
        attachments=attachments,
        request=dict(payload),
    )
