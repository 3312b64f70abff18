"""Bearer token resolution from opaque auth records."""

from __future__ import annotations

import json

from slackport.errors import TokenResolutionError
from slackport.models import AuthContext

BOT_SCOPE = "bot"
APP_SCOPE = "app"


def get_token(auth: AuthContext, scope: str) -> str:
    """Return the ``scope`` token stored in ``auth.access_token``.

    Raises TokenResolutionError when the record is not a JSON object or has no
    token for the scope.
    """
    try:
        tokens = json.loads(auth.access_token)
    except (TypeError, ValueError) as e:
        raise TokenResolutionError(scope, f"malformed auth record ({e})") from e
    if not isinstance(tokens, dict):
        raise TokenResolutionError(scope, "auth record is not an object")
    token = tokens.get(scope)
    if not isinstance(token, str) or not token:
        raise TokenResolutionError(scope, "scope missing from auth record")
    return token


def bearer(auth: AuthContext, scope: str) -> dict[str, str]:
    """Authorization header for the ``scope`` token."""
    return {"Authorization": f"Bearer {get_token(auth, scope)}"}
