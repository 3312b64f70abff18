"""Slackport transports."""

from slackport.transports.base import Transport
from slackport.transports.slack_transport import SlackTransport

__all__ = [
    "Transport",
    "SlackTransport",
]
