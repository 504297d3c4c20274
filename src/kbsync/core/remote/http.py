"""
HTTP retry utilities with exponential backoff.

Only transport-level failures are retried: 5xx responses, timeouts and
connection errors. Client errors (401, 403, 404, 409, 422) are returned to
the caller on the first attempt. Ref updates never go through the retry
path because a rejected update must surface as a conflict.

Configuration:
    - Default retries: 2 attempts after the first
    - Default base delay: 0.5 seconds
    - Default multiplier: 2.0x per retry
    - Jitter: Random variance of ±20% added to delay
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

import httpx

logger = logging.getLogger(__name__)


class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_retries: Maximum number of retry attempts (0 disables retry)
        base_delay: Initial delay in seconds before first retry
        multiplier: Exponential backoff multiplier
        jitter: Whether to add jitter to delays
        jitter_ratio: Random variance ratio for jitter (0.2 = ±20%)
    """

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 0.5,
        multiplier: float = 2.0,
        jitter: bool = True,
        jitter_ratio: float = 0.2,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if not 0.0 <= jitter_ratio <= 1.0:
            raise ValueError("jitter_ratio must be between 0.0 and 1.0")

        self.max_retries = max_retries
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.jitter = jitter
        self.jitter_ratio = jitter_ratio

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for a given retry attempt.

        Uses exponential backoff: delay = base_delay * (multiplier ^ attempt)

        Args:
            attempt: Retry attempt number (0-indexed)

        Returns:
            Delay in seconds before next retry
        """
        delay = self.base_delay * (self.multiplier**attempt)

        if self.jitter:
            variance = delay * self.jitter_ratio
            delay = delay + random.uniform(-variance, variance)

        return max(0.0, delay)


def is_retryable_error(exception: Exception) -> bool:
    """
    Determine if an exception represents a transient, retryable error.

    ``client.send`` never raises for a status code, so only request-level
    failures (timeouts, refused or dropped connections) are retried.
    """
    return isinstance(exception, httpx.RequestError)


def is_retryable_response(response: httpx.Response) -> bool:
    """A received response is worth retrying only if the server failed."""
    return 500 <= response.status_code < 600


def send_with_retry(
    client: httpx.Client,
    request: httpx.Request,
    config: RetryConfig,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> httpx.Response:
    """
    Send a request, retrying transient failures.

    The final response is returned even if it is a 5xx once retries run out,
    so the caller can classify it. Network errors that outlive the retries
    are re-raised.

    Args:
        client: httpx client used to send the request
        request: Prepared request (sent unchanged on every attempt)
        config: Retry configuration
        sleep: Sleep function, replaceable in tests

    Returns:
        The last HTTP response received

    Raises:
        httpx.HTTPError: If every attempt failed without a response
    """
    label = f"{request.method} {request.url.path}"

    for attempt in range(config.max_retries + 1):
        try:
            response = client.send(request)
        except httpx.HTTPError as e:
            if not is_retryable_error(e):
                raise
            if attempt >= config.max_retries:
                logger.warning("%s: max retries (%d) exceeded: %s", label, config.max_retries, e)
                raise
            delay = config.calculate_delay(attempt)
            logger.warning(
                "%s: retry %d/%d after %.2fs due to: %s",
                label,
                attempt + 1,
                config.max_retries,
                delay,
                e,
            )
            sleep(delay)
            continue

        if not is_retryable_response(response) or attempt >= config.max_retries:
            return response

        delay = config.calculate_delay(attempt)
        logger.warning(
            "%s: retry %d/%d after %.2fs due to HTTP %d",
            label,
            attempt + 1,
            config.max_retries,
            delay,
            response.status_code,
        )
        sleep(delay)

    # Unreachable: the loop always returns or raises on its last attempt
    raise RuntimeError("Retry loop completed without success or exception")


__all__ = [
    "RetryConfig",
    "is_retryable_error",
    "is_retryable_response",
    "send_with_retry",
]
