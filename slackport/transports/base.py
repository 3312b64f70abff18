"""Abstract transport base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from slackport.core.bus import EventBus
from slackport.models import Message


class Transport(ABC):
    def __init__(self, bus: EventBus) -> None:
        self.bus = bus

    @property
    @abstractmethod
    def platform_name(self) -> str: ...

    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...

    @abstractmethod
    async def send_message(
        self,
        message: Message,
        app_id: str,
        client_id: str,
        *,
        reply: bool = True,
    ) -> dict | None: ...
