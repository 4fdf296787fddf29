"""Resilient request executor shared by every call to persistent storage.

Each attempt is bounded by a timeout. Connection failures, timeouts and 5xx
responses are retried with linear backoff; 4xx responses and unusable payloads
fail immediately.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Type

import requests
from pydantic import BaseModel, ValidationError

import config
from sitechat.errors import (
    ClientRejected,
    ConnectionFailure,
    InvalidResponseShape,
    NetworkError,
    RequestTimeout,
    ServerFailure,
)
from sitechat.logger import get_logger

logger = get_logger(__name__)


class ResilientClient:
    def __init__(
        self,
        base_url: str,
        timeout_ms: int = config.REQUEST_TIMEOUT_MS,
        max_attempts: int = config.REQUEST_MAX_ATTEMPTS,
        base_delay_ms: int = config.REQUEST_BASE_DELAY_MS,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.session = session or requests.Session()
        self._sleep = sleep

    def delay_table(self) -> List[int]:
        """Milliseconds to wait before attempts 2..max_attempts."""
        return [self.base_delay_ms * n for n in range(1, self.max_attempts)]

    async def request(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        envelope: Optional[Type[BaseModel]] = None,
    ):
        """Run one call with bounded retry.

        Returns the validated envelope model, or the decoded JSON object when no
        envelope is given. Raises the last failure once attempts are exhausted.
        """
        url = f"{self.base_url}{path}"
        delays = self.delay_table()
        last_error: Optional[NetworkError] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self._attempt(method, url, payload, envelope)
            except NetworkError as e:
                last_error = e
                if attempt == self.max_attempts:
                    break
                delay_ms = delays[attempt - 1]
                logger.warning(
                    f"{method} {path} failed ({e}); retrying "
                    f"(attempt {attempt + 1}/{self.max_attempts}) in {delay_ms}ms"
                )
                await self._sleep(delay_ms / 1000)

        logger.error(f"{method} {path} failed after {self.max_attempts} attempts: {last_error}")
        raise last_error

    async def _attempt(self, method, url, payload, envelope):
        timeout_s = self.timeout_ms / 1000
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.session.request, method, url, json=payload, timeout=timeout_s
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, requests.exceptions.Timeout) as e:
            raise RequestTimeout(self.timeout_ms) from e
        except requests.exceptions.RequestException as e:
            raise ConnectionFailure(str(e)) from e

        status = response.status_code
        if status >= 500:
            raise ServerFailure(status, response.text)
        if status >= 400:
            raise ClientRejected(status, response.text)

        return self._validate(response, envelope)

    def _validate(self, response, envelope):
        if not response.content:
            raise InvalidResponseShape("Empty response from API")
        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseShape(f"Response is not JSON: {e}") from e
        if not isinstance(data, dict) or not data:
            raise InvalidResponseShape(f"Expected a JSON object, got: {str(data)[:200]}")
        if envelope is None:
            return data
        try:
            return envelope.model_validate(data)
        except ValidationError as e:
            raise InvalidResponseShape(
                f"Invalid {envelope.__name__}: {e.error_count()} error(s)"
            ) from e
