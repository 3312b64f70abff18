"""Canonical message envelope, attachments and request/response models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


PLATFORM = "slack"

BARE_CONTENT_TYPE = "text/plain"
IMAGE_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/gif"})
BUTTON_CONTENT_TYPE = "application/x.button"
LOCATION_CONTENT_TYPE = "application/x.location"


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    LOCATION = "location"
    QUICK = "quick"
    ACTION = "action"


class EventKind(str, Enum):
    """Top-level ``type`` of a Slack webhook payload."""
    BLOCK_ACTIONS = "block_actions"
    URL_VERIFICATION = "url_verification"
    EVENT_CALLBACK = "event_callback"


# ---------------------------------------------------------------------------
# Canonical message
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Party:
    """Sender or receiver of a canonical message."""
    id: str | None = None
    platform: str | None = None
    context_id: str | None = None
    conversation_id: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Party:
        data = data or {}
        return cls(
            id=data.get("id"),
            platform=data.get("platform"),
            context_id=data.get("contextId"),
            conversation_id=data.get("conversationId"),
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            "id": self.id,
            "platform": self.platform,
            "contextId": self.context_id,
            "conversationId": self.conversation_id,
        }
        return {k: v for k, v in result.items() if v is not None}


@dataclass(frozen=True)
class Message:
    type: MessageType | str
    sender: Party = field(default_factory=Party)
    receiver: Party = field(default_factory=Party)
    text: str | None = None
    message_id: str | None = None
    # UNIX seconds for inbound messages; upstream senders may pass a datetime
    timestamp: int | float | datetime | None = None
    attachments: list[Any] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)
    request: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Message:
        raw_type = data.get("type", "")
        try:
            msg_type: MessageType | str = MessageType(raw_type)
        except ValueError:
            msg_type = raw_type
        return cls(
            type=msg_type,
            sender=Party.from_dict(data.get("sender")),
            receiver=Party.from_dict(data.get("receiver")),
            text=data.get("text"),
            message_id=data.get("messageId"),
            timestamp=data.get("timestamp"),
            attachments=list(data.get("attachments") or []),
            details=dict(data.get("details") or {}),
            request=data.get("request"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.type.value if isinstance(self.type, MessageType) else self.type,
            "messageId": self.message_id,
            "timestamp": self.timestamp,
            "sender": self.sender.to_dict(),
            "receiver": self.receiver.to_dict(),
            "text": self.text,
        }
        if self.attachments:
            result["attachments"] = list(self.attachments)
        if self.details:
            result["details"] = dict(self.details)
        if self.request is not None:
            result["request"] = self.request
        return result

    @property
    def time_prefix(self) -> bool:
        return bool(self.details.get("timePrefix"))


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Attachment:
    """Normalized view shared by both attachment variants."""
    content_type: str = ""
    url: str | None = None
    title: str | None = None
    value: Any = None
    action: str | None = None
    thumbnail: str | None = None
    details: Mapping[str, Any] | None = None
    filename: str | None = None

    @staticmethod
    def parse(raw: Any) -> Attachment | None:
        """Build the normalized view of a raw attachment, or None if unrecognized."""
        if isinstance(raw, str):
            return BareAttachment.of(raw)
        if isinstance(raw, Mapping):
            return RichAttachment.from_dict(raw)
        return None


@dataclass(frozen=True)
class BareAttachment(Attachment):
    """A plain string used as label, value and URL at once."""

    @classmethod
    def of(cls, text: str) -> BareAttachment:
        return cls(content_type=BARE_CONTENT_TYPE, url=text, title=text, value=text)


@dataclass(frozen=True)
class RichAttachment(Attachment):
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RichAttachment:
        details = data.get("details")
        content_type = data.get("contentType")
        return cls(
            content_type=content_type if isinstance(content_type, str) else "",
            url=data.get("url"),
            title=data.get("title"),
            value=data.get("value"),
            action=data.get("action"),
            thumbnail=data.get("thumbnail"),
            details=details if isinstance(details, Mapping) else None,
            filename=data.get("filename"),
        )


# ---------------------------------------------------------------------------
# Control signals, requests and metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VerificationChallenge:
    """Slack ``url_verification`` handshake; answered inline, never forwarded."""
    challenge: str


@dataclass
class WireRequest:
    """A Slack Web API call: method path relative to the API base URL."""
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthContext:
    context_id: str
    # JSON-encoded {scope: token} map, owned by the auth subsystem
    access_token: str


@dataclass
class RequestMeta:
    app_id: str = ""
    client_id: str = ""
    action: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    auth: AuthContext | None = None
    base_url: str = ""
    path: str = ""

    @property
    def context_id(self) -> str | None:
        return self.auth.context_id if self.auth else None
