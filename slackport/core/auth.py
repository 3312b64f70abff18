"""Auth context lookup for Slack app installations."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod

from slackport.config import SlackAppConfig
from slackport.errors import AuthLookupError
from slackport.models import AuthContext
from slackport.utils.logging import get_logger

log = get_logger(__name__)


class AuthProvider(ABC):
    """Resolves the auth record of an installation.

    Records are read per request and never cached here; the owner may rotate
    tokens at any time.
    """

    @abstractmethod
    async def fetch(self, platform: str, app_id: str, client_id: str) -> AuthContext: ...


class StaticAuthProvider(AuthProvider):
    """Auth records built from configured app installations."""

    def __init__(self, apps: list[SlackAppConfig], platform: str = "slack") -> None:
        self._platform = platform
        self._records: dict[tuple[str, str], AuthContext] = {}
        for app in apps:
            tokens = {"bot": app.bot_token, "app": app.app_token}
            self._records[(app.app_id, app.client_id)] = AuthContext(
                context_id=app.context_id or f"{app.app_id}:{app.client_id}",
                access_token=json.dumps({k: v for k, v in tokens.items() if v}),
            )

    async def fetch(self, platform: str, app_id: str, client_id: str) -> AuthContext:
        record = self._records.get((app_id, client_id))
        if platform != self._platform or record is None:
            log.warning("auth_lookup_failed", platform=platform, app_id=app_id, client_id=client_id)
            raise AuthLookupError(platform, app_id, client_id)
        return record
