"""Slack wire format: inbound normalization, outbound rendering, tokens."""

from slackport.slack.formatting import render_body, sanitize
from slackport.slack.normalizer import normalize_event
from slackport.slack.tokens import get_token

__all__ = [
    "normalize_event",
    "render_body",
    "sanitize",
    "get_token",
]
