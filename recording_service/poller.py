from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from common.config import TwilioSettings
from common.errors import RecordingUnavailable

logger = logging.getLogger(__name__)


class RetryPolicy:
    """Bounded, fixed-interval retry loop.

    ``sleep`` is injectable so the timing can be observed in tests without
    actually waiting.
    """

    def __init__(
        self,
        max_attempts: int = 10,
        interval_s: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.interval_s = interval_s
        self._sleep = sleep

    async def run(
        self,
        attempt: Callable[[], Awaitable[Any]],
        is_success: Callable[[Any], bool] = bool,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> bool:
        """Return True on the first successful attempt, False once exhausted.

        Exceptions not listed in ``retry_on`` propagate immediately.
        """

        async def checked() -> bool:
            return is_success(await attempt())

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.interval_s),
            retry=retry_if_exception_type(retry_on) | retry_if_result(lambda ok: not ok),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            retry_error_callback=lambda state: False,
        )
        return await retrying(checked)


def is_audio_response(response: httpx.Response) -> bool:
    if not response.is_success:
        return False
    content_type = response.headers.get("content-type")
    return content_type is None or "audio" in content_type


class RecordingPoller:
    """Waits until a Twilio recording URL serves audio."""

    def __init__(
        self,
        settings: TwilioSettings,
        client: httpx.AsyncClient,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self.policy = policy or RetryPolicy(
            max_attempts=settings.poll_max_attempts,
            interval_s=settings.poll_interval_s,
        )

    async def _probe(self, url: str) -> httpx.Response:
        return await self._client.head(
            url,
            auth=(self._settings.account_sid, self._settings.auth_token),
            follow_redirects=True,
            timeout=self._settings.timeout_s,
        )

    async def wait_until_available(self, url: str) -> None:
        available = await self.policy.run(
            lambda: self._probe(url),
            is_success=is_audio_response,
            retry_on=(httpx.HTTPError, httpx.InvalidURL),
        )
        if not available:
            raise RecordingUnavailable(url, self.policy.max_attempts)
        logger.info("Recording available: %s", url)
