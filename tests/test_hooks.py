"""Tests for the hook registry and the Slack hook handlers."""

import json

import pytest

from slackport.config import SlackConfig
from slackport.core.hooks import HookRegistry
from slackport.errors import TokenResolutionError
from slackport.hooks import SlackHooks
from slackport.models import AuthContext, Message, MessageType, Party, RequestMeta, VerificationChallenge


@pytest.fixture
def hooks():
    return SlackHooks(SlackConfig())


@pytest.fixture
def registry(hooks):
    registry = HookRegistry()
    hooks.register(registry)
    return registry


@pytest.fixture
def meta():
    return RequestMeta(
        app_id="A1",
        client_id="C1",
        auth=AuthContext(context_id="ctx", access_token=json.dumps({"bot": "xoxb-1", "app": "xoxa-2"})),
    )


def _text(platform="whatsapp"):
    return Message(
        type=MessageType.TEXT,
        text="hello",
        sender=Party(id="u1", platform=platform),
        receiver=Party(conversation_id="C42"),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestHookRegistry:
    def test_register_and_invoke(self):
        registry = HookRegistry()
        registry.register("x.y", lambda msg, meta: (msg, meta))
        assert registry.invoke("x.y", 1, 2) == (1, 2)

    def test_duplicate_rejected(self):
        registry = HookRegistry()
        registry.register("x.y", lambda msg, meta: None)
        with pytest.raises(ValueError):
            registry.register("x.y", lambda msg, meta: None)

    def test_unregister_handle(self):
        registry = HookRegistry()
        handle = registry.register("x.y", lambda msg, meta: None)
        handle.unregister()
        assert "x.y" not in registry
        with pytest.raises(KeyError):
            registry.invoke("x.y", None)

    def test_stale_handle_keeps_replacement(self):
        registry = HookRegistry()
        old = registry.register("x.y", lambda msg, meta: "old")
        old.unregister()
        registry.register("x.y", lambda msg, meta: "new")
        old.unregister()
        assert registry.invoke("x.y", None) == "new"

    def test_slack_hook_names(self, registry):
        assert registry.names() == sorted([
            "slackIn.identity.request.receive",
            "slackIn.identity.response.send",
            "slackIn.message.request.receive",
            "slackIn.server.response.send",
            "slackIn.message.response.send",
            "slack.message.send.request.send",
            "slack.message.send.response.receive",
            "slack.conversation.create.request.send",
            "slack.conversation.create.response.receive",
        ])

    def test_custom_prefixes(self):
        registry = HookRegistry()
        SlackHooks(SlackConfig(hook="in", namespace="out")).register(registry)
        assert "in.message.request.receive" in registry
        assert "out.message.send.request.send" in registry


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

class TestInboundHooks:
    def test_identity(self, registry, meta):
        identity = registry.invoke("slackIn.identity.request.receive", None, meta)
        assert identity == {"clientId": "C1", "appId": "A1", "platform": "slack"}

    def test_message_receive(self, registry, meta):
        payload = {"type": "url_verification", "challenge": "abc"}
        result = registry.invoke("slackIn.message.request.receive", payload, meta)
        assert result == VerificationChallenge("abc")

    def test_server_response_challenge(self, registry, meta):
        reply = registry.invoke("slackIn.server.response.send", VerificationChallenge("abc"), meta)
        assert reply == {"challenge": "abc"}

    def test_server_response_default(self, registry, meta):
        assert registry.invoke("slackIn.server.response.send", _text(), meta) is None
        assert registry.invoke("slackIn.server.response.send", None, meta) is None


class TestOutboundHooks:
    def test_reply_uses_bot_token(self, registry, meta):
        request = registry.invoke("slackIn.message.response.send", _text(), meta)
        assert request.url == "chat.postMessage"
        assert request.headers == {"Authorization": "Bearer xoxb-1"}
        assert request.body == {"channel": "C42", "mrkdwn": True, "text": "hello", "as_user": True}

    def test_reply_without_body(self, registry, meta):
        msg = Message(type="sticker", receiver=Party(conversation_id="C42"))
        assert registry.invoke("slackIn.message.response.send", msg, meta) is None
        assert registry.invoke("slackIn.message.response.send", None, meta) is None

    def test_relay_uses_app_token_and_user_persona(self, registry, meta):
        request = registry.invoke("slack.message.send.request.send", _text("whatsapp"), meta)
        assert request.headers == {"Authorization": "Bearer xoxa-2"}
        assert request.body["username"] == "whatsapp user"
        assert request.body["icon_emoji"] == ":adult:"
        assert "as_user" not in request.body

    def test_relay_bot_persona(self, registry, meta):
        request = registry.invoke("slack.message.send.request.send", _text("dialogflow"), meta)
        assert request.body["username"] == "bot"
        assert request.body["icon_emoji"] == ":computer:"

    def test_token_failure_propagates(self, registry):
        broken = RequestMeta(auth=AuthContext(context_id="ctx", access_token='{"bot": "xoxb-1"}'))
        with pytest.raises(TokenResolutionError):
            registry.invoke("slack.message.send.request.send", _text(), broken)

    def test_send_response_is_suppressed(self, registry, meta):
        assert registry.invoke("slack.message.send.response.receive", {"ok": True}, meta) is None

    def test_conversation_create(self, registry, meta):
        request = registry.invoke(
            "slack.conversation.create.request.send",
            {"name": "support", "users": ["U1", "U2"]},
            meta,
        )
        assert request.url == "conversations.create"
        assert request.body == {"name": "support", "user_ids": "U1,U2"}
        assert request.headers == {"Authorization": "Bearer xoxa-2"}

    def test_conversation_created_channel(self, registry, meta):
        channel = {"id": "C77", "name": "support"}
        result = registry.invoke(
            "slack.conversation.create.response.receive", {"ok": True, "channel": channel}, meta
        )
        assert result == channel
