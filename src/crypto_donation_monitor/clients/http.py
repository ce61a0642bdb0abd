# -*- coding: utf-8 -*-
"""Async HTTP client with retries and rate-limit handling."""

from __future__ import annotations

import asyncio
import json as jsonlib
import random
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Dict, Literal, Optional
from structlog.contextvars import bound_contextvars

from crypto_donation_monitor.config import Settings
from crypto_donation_monitor.exceptions import (
    ProviderError,
    ProviderNotFoundError,
    RateLimitError,
    TransientProviderError,
)


def _is_retryable_status(status: int) -> bool:
    return status == 408 or status >= 500


class AsyncHttpClient:
    """Async HTTP client shared by every chain provider, with retries and 429 handling.

    Injects Settings and optionally an aiohttp.ClientSession. If no session
    is provided, one is created and must be closed via aclose() or used
    as an async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Configuration (api.timeout_seconds, api.max_retries).
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.api.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at 4 seconds."""
        base = min(4.0, 0.25 * (2**attempt))
        return base + random.uniform(0.0, 0.15)

    async def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Perform a GET request and return JSON. Retries on transient failures and 429.

        Raises:
            ProviderNotFoundError: On HTTP 404 (not retried).
            RateLimitError: If 429 persists after all retries.
            TransientProviderError: If the request keeps failing after all retries.
            ProviderError: On other non-retryable 4xx responses.
        """
        return await self._request("GET", url, params=params, headers=headers)

    async def post(
        self,
        url: str,
        *,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Perform a POST request with a JSON body and return JSON. Same retry rules as get()."""
        return await self._request("POST", url, json_body=json or {}, headers=headers)

    async def _request(
        self,
        method: Literal["GET", "POST"],
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        event_prefix = f"http_{method.lower()}"
        request_id = uuid.uuid4().hex[:12]
        max_retries = self._settings.api.max_retries
        last_error: Optional[Exception] = None
        retry_after: Optional[float] = None

        with bound_contextvars(
            http_method=method,
            http_url=url,
            http_request_id=request_id,
            http_max_retries=max_retries,
        ):
            for attempt in range(max_retries):
                with bound_contextvars(http_attempt=attempt + 1):
                    try:
                        session = await self._get_session()
                        async with session.request(
                            method,
                            url,
                            params=params or None,
                            json=json_body if method == "POST" else None,
                            headers=headers,
                        ) as response:
                            if response.status == 429:
                                retry_after = self._parse_retry_after(response.headers.get("Retry-After"))
                                last_error = RateLimitError(url=url, retry_after=retry_after)
                                self._logger.warning(
                                    f"{event_prefix}_rate_limited",
                                    http_status_code=429,
                                    http_retry_after_seconds=retry_after,
                                )
                                if attempt + 1 < max_retries:
                                    await asyncio.sleep(
                                        retry_after
                                        if retry_after is not None and retry_after > 0
                                        else self._backoff_delay(attempt)
                                    )
                                continue

                            if response.status == 404:
                                raise ProviderNotFoundError(f"{method} {url} returned 404", url=url)

                            if response.status >= 400 and not _is_retryable_status(response.status):
                                body = await response.text()
                                raise ProviderError(
                                    f"{method} {url} returned {response.status}: {body[:200]}",
                                    url=url,
                                    status_code=response.status,
                                )

                            response.raise_for_status()
                            text = await response.text()
                            try:
                                return jsonlib.loads(text) if text else None
                            except ValueError as e:
                                raise TransientProviderError(
                                    f"Malformed JSON from {url}",
                                    url=url,
                                    status_code=response.status,
                                    cause=e,
                                ) from e
                    except (ProviderNotFoundError, RateLimitError):
                        raise
                    except TransientProviderError as e:
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                    except ProviderError:
                        raise
                    except aiohttp.ClientResponseError as e:
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                            http_status_code=getattr(e, "status", None),
                        )
                    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                    if attempt + 1 < max_retries:
                        await asyncio.sleep(self._backoff_delay(attempt))

            status_code = (
                getattr(last_error, "status", None)
                if isinstance(last_error, aiohttp.ClientResponseError)
                else getattr(last_error, "status_code", None)
            )
            self._logger.warning(
                f"{event_prefix}_failed",
                http_status_code=status_code,
                http_attempts=max_retries,
                error_type=type(last_error).__name__ if last_error else None,
                error_message=str(last_error) if last_error else None,
            )
            if isinstance(last_error, RateLimitError):
                raise RateLimitError(
                    f"{method} rate limited after {max_retries} attempts: {url}",
                    url=url,
                    retry_after=retry_after,
                )
            raise TransientProviderError(
                f"{method} failed after {max_retries} attempts: {url}",
                url=url,
                status_code=status_code,
                cause=last_error,
            ) from last_error

    @staticmethod
    def _parse_retry_after(header: Optional[str]) -> Optional[float]:
        if not header:
            return None
        try:
            return float(header)
        except ValueError:
            return None
