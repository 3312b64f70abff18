"""Exception hierarchy."""

from __future__ import annotations


class SlackPortError(Exception):
    """Base class for adapter errors."""


class TokenResolutionError(SlackPortError):
    """The auth record is malformed or lacks the requested scope."""

    def __init__(self, scope: str, reason: str) -> None:
        super().__init__(f"cannot resolve {scope!r} token: {reason}")
        self.scope = scope
        self.reason = reason


class AuthLookupError(SlackPortError):
    """No auth context is known for a platform/app/client triple."""

    def __init__(self, platform: str, app_id: str, client_id: str) -> None:
        super().__init__(f"no auth context for {platform}/{app_id}/{client_id}")
        self.platform = platform
        self.app_id = app_id
        self.client_id = client_id


class SlackApiError(SlackPortError):
    """Slack answered a Web API call with ``ok: false``."""

    def __init__(self, method: str, error: str) -> None:
        super().__init__(f"{method} failed: {error}")
        self.method = method
        self.error = error
