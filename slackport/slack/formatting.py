"""Outbound rendering of canonical messages into Slack Web API bodies."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from slackport.models import (
    BUTTON_CONTENT_TYPE,
    IMAGE_CONTENT_TYPES,
    LOCATION_CONTENT_TYPE,
    Attachment,
    BareAttachment,
    Message,
    MessageType,
)


_MAILTO = re.compile(r"<mailto:([^>]+?)\|[^>]*?>")


def sanitize(text: Any) -> Any:
    """Replace Slack ``<mailto:addr|label>`` markup with the bare address.

    Non-string input is returned unchanged.
    """
    if not isinstance(text, str):
        return text
    return _MAILTO.sub(r"\1", text)


# ---------------------------------------------------------------------------
# Action value envelope
# ---------------------------------------------------------------------------

def encode_action_value(value: Any) -> str:
    """Serialize a button payload into the string Slack echoes back on click."""
    if not isinstance(value, dict):
        value = {"text": value}
    return json.dumps(value)


def decode_action_value(raw: str | None) -> dict[str, Any]:
    """Inverse of :func:`encode_action_value`.

    Never raises: a missing value decodes to ``{}`` and anything that is not a
    JSON object is kept as ``{"value": raw}``.
    """
    if raw is None:
        return {}
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return {"value": raw}
    if isinstance(decoded, dict):
        return decoded
    return {"value": raw}


# ---------------------------------------------------------------------------
# Attachment classifiers
# ---------------------------------------------------------------------------

def _parse_all(attachments: Iterable[Any] | None) -> list[Attachment]:
    parsed = (Attachment.parse(raw) for raw in attachments or [])
    return [a for a in parsed if a is not None]


def is_image(attachment: Attachment) -> bool:
    return isinstance(attachment, BareAttachment) or attachment.content_type in IMAGE_CONTENT_TYPES


def is_button(attachment: Attachment) -> bool:
    return isinstance(attachment, BareAttachment) or attachment.content_type == BUTTON_CONTENT_TYPE


def is_location(attachment: Attachment) -> bool:
    return attachment.content_type == LOCATION_CONTENT_TYPE and attachment.details is not None


def image_blocks(attachments: Iterable[Any] | None) -> list[dict[str, Any]]:
    return [
        {"type": "image", "image_url": a.url, "alt_text": a.title}
        for a in _parse_all(attachments)
        if is_image(a)
    ]


def button_elements(attachments: Iterable[Any] | None) -> list[dict[str, Any]]:
    """Render button attachments as Slack ``button`` elements.

    Default action ids are numbered within the eligible subset, so the
    n-th button is ``imBack-n`` regardless of any attachments skipped
    before it. Inbound action handling relies on this numbering.
    """
    buttons = [a for a in _parse_all(attachments) if is_button(a)]
    elements = []
    for index, button in enumerate(buttons):
        label = button.title or (button.value if isinstance(button.value, str) else "")
        elements.append({
            "type": "button",
            "text": {"type": "plain_text", "text": label},
            "action_id": button.action or f"imBack-{index}",
            "value": encode_action_value(button.value),
        })
    return elements


def location_blocks(attachments: Iterable[Any] | None) -> list[dict[str, Any]]:
    """Render each location as an image block followed by a title/address section."""
    blocks: list[dict[str, Any]] = []
    for location in _parse_all(attachments):
        if not is_location(location):
            continue
        address = location.details.get("address")
        blocks.append({
            "type": "image",
            "image_url": location.thumbnail,
            "alt_text": address,
        })
        blocks.append({
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*{location.title}*\n<{location.url}|{address}>",
            },
        })
    return blocks


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------

def _plain_section(text: str | None) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "plain_text", "text": text}}


def _as_datetime(timestamp: int | float | datetime) -> datetime:
    if isinstance(timestamp, datetime):
        return timestamp
    return datetime.fromtimestamp(timestamp)


def date_token(timestamp: int | float | datetime) -> str:
    """Slack date formatting token with a locale-rendered fallback."""
    moment = _as_datetime(timestamp)
    return f"<!date^{int(moment.timestamp())}^{{date_short_pretty}} {{time}}|{moment.strftime('%c')}>"


def render_body(msg: Message) -> dict[str, Any] | None:
    """Map a canonical message to a ``chat.postMessage`` body.

    Returns None for message types that have no Slack rendering.
    """
    channel = msg.receiver.conversation_id

    if msg.type == MessageType.TEXT:
        text = msg.text
        # Without a timestamp there is no moment to render
        if msg.time_prefix and msg.timestamp is not None:
            text = f"{date_token(msg.timestamp)}\n{msg.text}"
        return {"channel": channel, "mrkdwn": True, "text": text}

    if msg.type == MessageType.LOCATION:
        return {
            "channel": channel,
            "text": msg.text,
            "blocks": location_blocks(msg.attachments) + [_plain_section(msg.text)],
        }

    if msg.type == MessageType.IMAGE:
        return {
            "channel": channel,
            "text": msg.text,
            "blocks": image_blocks(msg.attachments) + [_plain_section(msg.text)],
        }

    if msg.type == MessageType.QUICK:
        return {
            "channel": channel,
            "text": msg.text,
            "blocks": [
                _plain_section(msg.text),
                {"type": "actions", "elements": button_elements(msg.attachments)},
            ],
        }

    return None
