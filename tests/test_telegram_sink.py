#!/usr/bin/env python3
"""Tests for the Telegram Bot API sink."""
from urllib.parse import parse_qs

import httpx
import pytest

from cliptrack import telegram_constants
from cliptrack.errors import DeliveryError, MissingCredentialsError, SinkClosedError
from cliptrack.telegram_sink import TelegramSink


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Retry transport failures without sleeping."""
    monkeypatch.setattr(telegram_constants, "RETRY_WAIT_MIN", 0)
    monkeypatch.setattr(telegram_constants, "RETRY_WAIT_MAX", 0)
    monkeypatch.setattr(telegram_constants, "RETRY_WAIT_MULTIPLIER", 0)


def recording_transport(requests: list[httpx.Request], status: int = 200) -> httpx.MockTransport:
    """Create a transport recording requests and answering with status."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status, json={"ok": status < 400})

    return httpx.MockTransport(handler)


class TestConstruction:
    """Tests for credential validation at construction."""

    @pytest.mark.parametrize("token, chat_id", [("", "chat"), ("token", ""), ("", "")])
    def test_missing_credentials_raise(self, token: str, chat_id: str) -> None:
        """Empty token or chat id fails construction."""
        with pytest.raises(MissingCredentialsError):
            TelegramSink(token, chat_id)

    def test_complete_credentials_succeed(self) -> None:
        """Both credentials set constructs the sink."""
        sink = TelegramSink("token", "chat")
        assert sink.sink_name == "telegram"
        assert sink.chat_id == "chat"

    def test_api_url_contains_token(self) -> None:
        """The endpoint is templated with the bot token."""
        sink = TelegramSink("123:abc", "chat")
        assert sink.build_api_url() == "https://api.telegram.org/bot123:abc/sendMessage"


@pytest.mark.asyncio
async def test_deliver_posts_form_encoded_message() -> None:
    """deliver() POSTs chat_id and text as a form."""
    requests: list[httpx.Request] = []
    sink = TelegramSink("tok", "42", transport=recording_transport(requests))

    await sink.deliver("Hello Telegram!")

    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.telegram.org/bottok/sendMessage"
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert parse_qs(request.content.decode()) == {
        "chat_id": ["42"],
        "text": ["Hello Telegram!"],
    }


@pytest.mark.asyncio
async def test_error_status_is_not_a_delivery_error() -> None:
    """Known limitation: a non-2xx answer still counts as delivered."""
    requests: list[httpx.Request] = []
    sink = TelegramSink("tok", "42", transport=recording_transport(requests, status=400))

    await sink.deliver("rejected by the API")

    assert len(requests) == 1


@pytest.mark.asyncio
async def test_transport_error_is_retried_then_raised() -> None:
    """Connection failures are retried and finally raised as DeliveryError."""
    attempts: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    sink = TelegramSink("tok", "42", transport=httpx.MockTransport(handler))

    with pytest.raises(DeliveryError, match="connection refused"):
        await sink.deliver("hello")
    assert len(attempts) == telegram_constants.SEND_ATTEMPTS


@pytest.mark.asyncio
async def test_invalid_token_url_raises_delivery_error() -> None:
    """A token that cannot form a URL fails as DeliveryError without sending."""
    requests: list[httpx.Request] = []
    sink = TelegramSink("123:abc\n", "42", transport=recording_transport(requests))

    with pytest.raises(DeliveryError):
        await sink.deliver("hi")
    assert requests == []


@pytest.mark.asyncio
async def test_transient_transport_error_recovers() -> None:
    """A single connection failure followed by success delivers the message."""
    attempts: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("flaky", request=request)
        return httpx.Response(200, json={"ok": True})

    sink = TelegramSink("tok", "42", transport=httpx.MockTransport(handler))
    await sink.deliver("hello")
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_close_is_a_no_op_and_blocks_further_deliveries() -> None:
    """close() releases nothing but rejects later deliveries."""
    requests: list[httpx.Request] = []
    sink = TelegramSink("tok", "42", transport=recording_transport(requests))
    await sink.close()
    assert sink.closed
    with pytest.raises(SinkClosedError):
        await sink.deliver("late")
    assert requests == []
