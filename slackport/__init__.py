"""Slackport - Slack webhook and Web API adapter for canonical messages."""
__version__ = "0.1.0"
