"""Tests for inbound Slack payload normalization."""

import json

import pytest
from yarl import URL

from slackport.models import AuthContext, MessageType, RequestMeta, VerificationChallenge
from slackport.slack.formatting import button_elements
from slackport.slack.normalizer import (
    attachment_proxy_url,
    normalize_event,
    parse_interactive_payload,
    parse_ts,
)


@pytest.fixture
def meta():
    return RequestMeta(
        app_id="A1",
        client_id="C1",
        auth=AuthContext(context_id="ctx-1", access_token='{"bot": "xoxb-1"}'),
        base_url="https://hooks.example.com",
        path="/slack/A1/C1",
    )


def _block_actions(actions, **extra):
    payload = {
        "type": "block_actions",
        "trigger_id": "trig-1",
        "user": {"id": "U1"},
        "channel": {"id": "D1"},
        "message": {"bot_id": "B1"},
        "actions": actions,
    }
    payload.update(extra)
    return payload


def _message_event(**event):
    base = {
        "type": "message",
        "user": "U2",
        "channel": "C2",
        "text": "hi",
        "ts": "1700000000.000200",
        "client_msg_id": "msg-1",
    }
    base.update(event)
    return {"type": "event_callback", "event": base}


class TestParseTs:
    def test_truncates_fraction(self):
        assert parse_ts("1700000000.999999") == 1700000000

    def test_whole_seconds(self):
        assert parse_ts("1700000001") == 1700000001

    def test_missing(self):
        assert parse_ts(None) is None


# ---------------------------------------------------------------------------
# block_actions
# ---------------------------------------------------------------------------

class TestBlockActions:
    def test_action_message(self, meta):
        payload = _block_actions([
            {"action_id": "", "value": "ignored"},
            {"action_id": "imBack-1", "action_ts": "1700000123.456", "value": '{"text": "No"}'},
        ])
        msg = normalize_event(payload, meta)
        assert msg.type == MessageType.ACTION
        assert msg.message_id == "trig-1"
        assert msg.timestamp == 1700000123
        assert msg.sender.id == "U1"
        assert msg.sender.platform == "slack"
        assert msg.sender.context_id == "ctx-1"
        assert msg.sender.conversation_id == "D1"
        assert msg.receiver.id == "D1"
        assert msg.text == "imBack"
        assert msg.details == {"text": "No", "users": ["U1"], "bot": "B1"}
        assert msg.request == payload

    def test_text_is_prefix_before_first_dash(self, meta):
        payload = _block_actions([{"action_id": "approve-request-7", "action_ts": "1"}])
        assert normalize_event(payload, meta).text == "approve"

    def test_no_action_id_is_no_message(self, meta):
        payload = _block_actions([None, {"value": "x"}, {"action_id": ""}])
        assert normalize_event(payload, meta) is None

    def test_malformed_value_does_not_raise(self, meta):
        payload = _block_actions([{"action_id": "imBack-0", "action_ts": "1", "value": "{oops"}])
        msg = normalize_event(payload, meta)
        assert msg.details["value"] == "{oops"
        assert msg.details["users"] == ["U1"]

    def test_round_trip_with_rendered_buttons(self, meta):
        buttons = button_elements([
            "Yes",
            {"contentType": "application/x.button", "title": "More", "value": {"page": 2}},
        ])
        for button, expected in zip(buttons, [{"text": "Yes"}, {"page": 2}]):
            payload = _block_actions([{
                "action_id": button["action_id"],
                "action_ts": "1700000000.1",
                "value": button["value"],
            }])
            details = normalize_event(payload, meta).details
            assert {k: v for k, v in details.items() if k not in ("users", "bot")} == expected


# ---------------------------------------------------------------------------
# url_verification
# ---------------------------------------------------------------------------

class TestUrlVerification:
    def test_challenge(self, meta):
        result = normalize_event({"type": "url_verification", "challenge": "abc"}, meta)
        assert result == VerificationChallenge(challenge="abc")


# ---------------------------------------------------------------------------
# event_callback
# ---------------------------------------------------------------------------

class TestEventCallback:
    def test_text_message(self, meta):
        payload = _message_event(text="write <mailto:a@b.com|a@b.com>")
        msg = normalize_event(payload, meta)
        assert msg.type == MessageType.TEXT
        assert msg.message_id == "msg-1"
        assert msg.timestamp == 1700000000
        assert msg.sender.id == "U2"
        assert msg.sender.conversation_id == "C2"
        assert msg.sender.context_id == "ctx-1"
        assert msg.receiver.id == "C2"
        assert msg.text == "write a@b.com"
        assert msg.attachments == []

    def test_bot_subtype_is_no_message(self, meta):
        payload = _message_event(subtype="bot_message", user="U3", text="anything")
        assert normalize_event(payload, meta) is None

    def test_bot_id_is_no_message(self, meta):
        assert normalize_event(_message_event(bot_id="B9"), meta) is None

    def test_non_message_event_is_no_message(self, meta):
        payload = {"type": "event_callback", "event": {"type": "reaction_added"}}
        assert normalize_event(payload, meta) is None

    def test_file_share_uses_proxy_urls(self, meta):
        original = "https://files.slack.com/files-pri/T1-F1/download/cat.png"
        payload = _message_event(
            subtype="file_share",
            files=[{"url_private_download": original, "mimetype": "image/png", "name": "cat.png"}],
        )
        msg = normalize_event(payload, meta)
        [attachment] = msg.attachments
        assert attachment["contentType"] == "image/png"
        assert attachment["filename"] == "cat.png"
        url = URL(attachment["url"])
        assert url.host == "hooks.example.com"
        assert url.path == "/slack/A1/C1/attachment"
        assert url.query["url"] == original

    def test_file_share_without_files(self, meta):
        msg = normalize_event(_message_event(subtype="file_share"), meta)
        assert msg.attachments == []


class TestOtherKinds:
    @pytest.mark.parametrize("kind", ["app_rate_limited", "", None])
    def test_unknown_kind_is_no_message(self, meta, kind):
        assert normalize_event({"type": kind}, meta) is None

    def test_missing_kind_is_no_message(self, meta):
        assert normalize_event({}, meta) is None


class TestHelpers:
    def test_proxy_url_encodes_query(self, meta):
        url = attachment_proxy_url(meta, "https://files.slack.com/a?b=c&d=e")
        assert URL(url).query["url"] == "https://files.slack.com/a?b=c&d=e"

    def test_proxy_url_keeps_base_path(self, meta):
        meta.base_url = "https://gateway.example.com/hooks/"
        url = URL(attachment_proxy_url(meta, "https://files.slack.com/x"))
        assert url.host == "gateway.example.com"
        assert url.path == "/hooks/slack/A1/C1/attachment"
        assert url.query["url"] == "https://files.slack.com/x"

    def test_interactive_payload(self):
        form = {"payload": json.dumps({"type": "block_actions"})}
        assert parse_interactive_payload(form) == {"type": "block_actions"}

    def test_interactive_payload_missing(self):
        with pytest.raises(KeyError):
            parse_interactive_payload({})
