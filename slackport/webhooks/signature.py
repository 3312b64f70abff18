"""Slack request signature validation."""

from __future__ import annotations

import hashlib
import hmac
import time

# Older requests are treated as replays
MAX_SKEW_SECONDS = 60 * 5


def validate_slack_signature(
    body: bytes,
    timestamp: str,
    signature: str,
    secret: str,
    now: float | None = None,
) -> bool:
    """Validate the ``X-Slack-Signature`` v0 HMAC-SHA256 signature."""
    if not secret or not signature or not timestamp:
        return False
    try:
        sent_at = int(timestamp)
    except ValueError:
        return False
    if abs((now if now is not None else time.time()) - sent_at) > MAX_SKEW_SECONDS:
        return False
    basestring = f"v0:{timestamp}:".encode() + body
    expected = "v0=" + hmac.new(secret.encode(), basestring, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)
