"""Inbound HTTP surface: Slack webhooks and the attachment proxy."""

from slackport.webhooks.proxy import AttachmentProxy
from slackport.webhooks.server import WebhookServer

__all__ = ["AttachmentProxy", "WebhookServer"]
