"""Named hook registry used to plug the adapter into a message bus."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from slackport.utils.logging import get_logger

log = get_logger(__name__)

Hook = Callable[[Any, Any], Any]


@dataclass
class Registration:
    """Handle returned by :meth:`HookRegistry.register`."""
    registry: HookRegistry
    name: str
    fn: Hook

    def unregister(self) -> None:
        self.registry.unregister(self.name, self.fn)


class HookRegistry:
    def __init__(self) -> None:
        self._hooks: dict[str, Hook] = {}

    def register(self, name: str, fn: Hook) -> Registration:
        if name in self._hooks:
            raise ValueError(f"hook already registered: {name}")
        self._hooks[name] = fn
        log.debug("hook_registered", hook=name)
        return Registration(self, name, fn)

    def unregister(self, name: str, fn: Hook | None = None) -> None:
        current = self._hooks.get(name)
        if current is None or (fn is not None and current is not fn):
            return
        del self._hooks[name]
        log.debug("hook_unregistered", hook=name)

    def __contains__(self, name: str) -> bool:
        return name in self._hooks

    def names(self) -> list[str]:
        return sorted(self._hooks)

    def invoke(self, name: str, msg: Any, meta: Any = None) -> Any:
        """Call a hook; raises KeyError for unknown names."""
        return self._hooks[name](msg, meta)
