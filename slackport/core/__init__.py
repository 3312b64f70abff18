"""Core modules for Slackport."""

from .auth import AuthProvider, StaticAuthProvider
from .bus import EventBus, EventType, MessageIncoming, MessageOutgoing
from .hooks import HookRegistry, Registration

__all__ = [
    "AuthProvider",
    "StaticAuthProvider",
    "EventBus",
    "EventType",
    "MessageIncoming",
    "MessageOutgoing",
    "HookRegistry",
    "Registration",
]
