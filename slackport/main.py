"""Slackport entry point: wires the webhook server, bus and transport together."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from slackport import __version__
from slackport.config import Settings, load_settings
from slackport.core.auth import StaticAuthProvider
from slackport.core.bus import Event, EventBus, EventType, Handler
from slackport.core.hooks import HookRegistry, Registration
from slackport.hooks import SlackHooks
from slackport.transports.slack_transport import SlackTransport
from slackport.utils.logging import get_logger, setup_logging
from slackport.webhooks.server import WebhookServer

log = get_logger(__name__)


async def _drop_incoming(event: Event) -> None:
    msg = event.message
    if msg is None:
        return
    log.info(
        "slack_message_dropped",
        type=msg.type,
        sender=msg.sender.id,
        conversation=msg.receiver.id,
    )


class SlackPort:
    """Main application: inbound webhooks in, Web API calls out."""

    def __init__(self, settings: Settings, on_message: Handler | None = None) -> None:
        self.settings = settings

        self.bus = EventBus()
        # Inbound messages are published for a downstream consumer; without
        # one they are logged and dropped
        self.consumer = on_message or _drop_incoming
        self.bus.subscribe(EventType.MESSAGE_INCOMING, self.consumer)
        self.auth = StaticAuthProvider(settings.slack.apps)
        self.registry = HookRegistry()
        self.hooks = SlackHooks(settings.slack)
        self._registrations: list[Registration] = self.hooks.register(self.registry)

        self.server = WebhookServer(
            settings.server,
            self.bus,
            self.auth,
            self.registry,
            hook=settings.slack.hook,
        )
        self.transport = SlackTransport(
            settings.slack, self.bus, self.auth, self.registry
        )

    async def start(self) -> None:
        log.info("slackport_starting", version=__version__, apps=len(self.settings.slack.apps))
        if self.consumer is _drop_incoming:
            log.warning("slackport_no_message_consumer")
        await self.transport.start()
        await self.bus.start()
        await self.server.start()
        log.info("slackport_ready")

    async def stop(self) -> None:
        log.info("slackport_stopping")
        await self.server.stop()
        await self.bus.stop()
        await self.transport.stop()
        for registration in self._registrations:
            registration.unregister()
        self._registrations.clear()
        log.info("slackport_stopped")


async def run(settings: Settings) -> None:
    app = SlackPort(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--port", type=int, default=None, help="Override the webhook server port")
def cli(config_path: str | None, log_level: str | None, port: int | None) -> None:
    """Start the Slack webhook adapter."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    if port is not None:
        settings.server.port = port
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
