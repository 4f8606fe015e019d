#!/usr/bin/env python3
"""Constants for the Telegram Bot API sink.

These control the sendMessage endpoint and the retry behavior for
transport-level failures (connection refused, DNS errors, timeouts).
"""

# sendMessage endpoint, formatted with the bot token.
API_URL: str = "https://api.telegram.org/bot{token}/sendMessage"

# Timeout in seconds for a single sendMessage request.
REQUEST_TIMEOUT: float = 10.0

# Total number of attempts for one message before giving up.
SEND_ATTEMPTS: int = 3

# Exponential backoff between attempts, in seconds.
RETRY_WAIT_MIN: float = 0.5
RETRY_WAIT_MAX: float = 4.0
RETRY_WAIT_MULTIPLIER: float = 0.5
