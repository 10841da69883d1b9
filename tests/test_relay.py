import pytest

from chat_relay.core.config import DEFAULT_GENERIC_REPLY as GENERIC_REPLY
from chat_relay.core.context_store import ContextStore
from chat_relay.core.errors import UpstreamFailure, ValidationError
from chat_relay.core.models import ChatRequest, ClientContext
from chat_relay.core.relay import ChatRelay, FallbackPicker
from chat_relay.core.upstream import FieldPayload, OpaquePayload

FALLBACKS = ["sorry one", "sorry two", "sorry three"]


class _FakeWebhook:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.payloads = []

    async def send(self, payload):
        self.payloads.append(payload)
        if self.error:
            raise self.error
        return self.result


def _relay(webhook, store=None):
    return ChatRelay(
        store=store if store is not None else ContextStore(),
        webhook=webhook,
        fallback=FallbackPicker(FALLBACKS, choose=lambda options: options[1]),
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("message", [None, ""])
async def test_empty_message_is_rejected(message):
    webhook = _FakeWebhook(FieldPayload("reply", "x"))

    with pytest.raises(ValidationError, match="Message is required"):
        await _relay(webhook).handle(ChatRequest(message=message))
    assert webhook.payloads == []


@pytest.mark.asyncio
async def test_successful_relay_appends_exchange():
    store = ContextStore()
    relay = _relay(_FakeWebhook(FieldPayload("output", "hello")), store)

    reply = await relay.handle(ChatRequest(message="hi", session_id="s1"))

    assert reply.reply == "hello"
    assert reply.session_id == "s1"
    assert reply.error is None
    history = store.lookup("s1").history
    assert len(history) == 1
    assert (history[0].user, history[0].bot, history[0].timestamp) == ("hi", "hello", reply.timestamp)


@pytest.mark.asyncio
async def test_payload_carries_previous_history_and_preferences():
    store = ContextStore()
    webhook = _FakeWebhook(FieldPayload("reply", "ok"))
    relay = _relay(webhook, store)

    await relay.handle(ChatRequest(message="first", session_id="s1"))
    await relay.handle(
        ChatRequest(message="second", session_id="s1", context=ClientContext(preferences={"branch": "ECE"}))
    )

    first, second = webhook.payloads
    assert first["context"] == {"history": [], "preferences": {}}
    assert second["message"] == "second"
    assert second["sessionId"] == "s1"
    assert second["context"]["history"][0]["user"] == "first"
    assert second["context"]["preferences"] == {"branch": "ECE"}
    assert second["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_missing_session_id_uses_default():
    store = ContextStore()
    await _relay(_FakeWebhook(FieldPayload("reply", "ok")), store).handle(ChatRequest(message="hi"))

    assert "default" in store


@pytest.mark.asyncio
async def test_unusable_upstream_response_gets_generic_reply():
    store = ContextStore()
    reply = await _relay(_FakeWebhook(OpaquePayload({})), store).handle(ChatRequest(message="hi", session_id="s"))

    assert reply.reply == GENERIC_REPLY
    assert store.lookup("s").history[0].bot == GENERIC_REPLY


@pytest.mark.asyncio
async def test_upstream_failure_is_absorbed():
    store = ContextStore()
    relay = _relay(_FakeWebhook(error=UpstreamFailure("Webhook timed out")), store)

    reply = await relay.handle(ChatRequest(message="hi", session_id="s"))

    assert reply.error is True
    assert reply.reply == "sorry two"
    assert reply.session_id is None
    assert "s" not in store


def test_fallback_picker_defaults_to_random_choice():
    picker = FallbackPicker(FALLBACKS)

    assert all(picker() in FALLBACKS for _ in range(20))


def test_fallback_picker_requires_responses():
    with pytest.raises(ValueError):
        FallbackPicker([])


@pytest.mark.asyncio
async def test_whitespace_message_is_relayed():
    webhook = _FakeWebhook(FieldPayload("reply", "ok"))

    reply = await _relay(webhook).handle(ChatRequest(message="   ", session_id="s"))

    assert reply.reply == "ok"
    assert webhook.payloads[0]["message"] == "   "


@pytest.mark.asyncio
async def test_preferences_are_sent_but_not_stored_when_upstream_fails():
    store = ContextStore()
    webhook = _FakeWebhook(error=UpstreamFailure("Webhook returned HTTP 502"))
    relay = _relay(webhook, store)

    reply = await relay.handle(
        ChatRequest(message="hi", session_id="s", context=ClientContext(preferences={"branch": "CSE"}))
    )

    assert reply.error is True
    assert webhook.payloads[0]["context"]["preferences"] == {"branch": "CSE"}
    assert "s" not in store


@pytest.mark.asyncio
async def test_preferences_are_stored_after_successful_relay():
    store = ContextStore()
    store.update_preferences("s", {"quota": "state"})
    relay = _relay(_FakeWebhook(FieldPayload("reply", "ok")), store)

    await relay.handle(ChatRequest(message="hi", session_id="s", context=ClientContext(preferences={"branch": "CSE"})))

    assert store.lookup("s").preferences == {"quota": "state", "branch": "CSE"}


def test_relay_uses_generic_reply_from_settings_by_default():
    relay = _relay(_FakeWebhook())

    assert relay.generic_reply == GENERIC_REPLY
