#!/usr/bin/env python3
"""Telegram Bot API sink.

Forwards each message to a chat through the Bot API sendMessage method as
a form-encoded POST. No connection is kept open between messages, so
close() has nothing to release.

Only transport failures count as delivery errors. Any HTTP response,
including an error status from the Bot API, is treated as delivered and
merely logged as a warning.
"""

from __future__ import annotations

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cliptrack import telegram_constants
from cliptrack.config import TelegramConfig
from cliptrack.errors import DeliveryError, SinkClosedError
from cliptrack.resolver import validate_telegram_config

logger = logging.getLogger(__name__)


class TelegramSink:
    """Sink that sends messages to a Telegram chat.

    Args:
        token: Bot token used in the endpoint URL.
        chat_id: Target chat identifier.
        transport: Optional httpx transport, used in place of the network.

    Raises:
        MissingCredentialsError: If token or chat_id is empty.
    """

    def __init__(
        self,
        token: str,
        chat_id: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        validate_telegram_config(TelegramConfig(token=token, chat_id=chat_id))
        self._token = token
        self._chat_id = chat_id
        self._transport = transport
        self._closed = False

    @property
    def sink_name(self) -> str:
        return "telegram"

    @property
    def chat_id(self) -> str:
        return self._chat_id

    @property
    def closed(self) -> bool:
        return self._closed

    def build_api_url(self) -> str:
        """Return the sendMessage URL for the stored token."""
        return telegram_constants.API_URL.format(token=self._token)

    async def deliver(self, message: str) -> None:
        """Send message to the configured chat.

        Transport errors are retried with exponential backoff before being
        raised.

        Raises:
            DeliveryError: If every attempt failed at the transport level, or
                the request could not be built (e.g. a token that makes an
                invalid URL).
            SinkClosedError: If close() was already called.
        """
        if self._closed:
            raise SinkClosedError("Telegram sink is closed")

        try:
            response = await self._post(message)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DeliveryError(f"Telegram sendMessage failed: {e}") from e

        if not response.is_success:
            # Known limitation: the message is still reported as delivered.
            logger.warning(
                "Telegram API answered %s for chat %s",
                response.status_code,
                self._chat_id,
            )
        else:
            logger.debug("Sent %d characters to chat %s", len(message), self._chat_id)

    async def close(self) -> None:
        self._closed = True

    async def _post(self, message: str) -> httpx.Response:
        """POST chat_id and text to sendMessage, retrying transport errors."""
        retrying = AsyncRetrying(
            wait=wait_exponential(
                multiplier=telegram_constants.RETRY_WAIT_MULTIPLIER,
                min=telegram_constants.RETRY_WAIT_MIN,
                max=telegram_constants.RETRY_WAIT_MAX,
            ),
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(telegram_constants.SEND_ATTEMPTS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=telegram_constants.REQUEST_TIMEOUT,
        ) as client:
            async for attempt in retrying:
                with attempt:
                    response = await client.post(
                        self.build_api_url(),
                        data={"chat_id": self._chat_id, "text": message},
                    )
        return response
