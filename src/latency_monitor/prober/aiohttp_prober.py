"""
HTTP probe executor implementation using the aiohttp library.

This module provides an implementation of the ProbeExecutor interface that uses
the aiohttp library to perform HTTP requests. It handles per-attempt timeouts,
retries with a fixed delay, status code checks and optional validation of the
JSON response body.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional

import aiohttp

from latency_monitor.config.constants import DEFAULT_RETRY_DELAY_SECONDS
from latency_monitor.contracts import ProbeExecutor
from latency_monitor.domain import ProbeOptions, ProbeResult, ResponseValidator

# Module logger
logger = logging.getLogger(__name__)


def _is_expected_status(status: int, expected_status_code: Optional[int]) -> bool:
    """
    Checks a response status against the success criteria of a probe.

    Args:
        status: The HTTP status code received.
        expected_status_code: The only accepted status, or None for any 2xx.

    Returns:
        bool: True if the status satisfies the criteria, False otherwise.
    """
    if expected_status_code is not None:
        return status == expected_status_code
    return 200 <= status < 300


async def _validate_body(
    response: aiohttp.ClientResponse, validator: ResponseValidator, target: str
) -> bool:
    """
    Runs a validator against the JSON-decoded body of a response.

    A body that cannot be decoded and a validator that raises are both
    reported as a failed validation.
    """
    try:
        payload = await response.json(content_type=None)
    except ValueError as e:
        logger.debug(f"Response body of {target} is not valid JSON: {e}")
        return False

    try:
        return bool(validator(payload))
    except Exception:
        logger.exception(f"Response validator raised for {target}")
        return False


class AiohttpProbeExecutor(ProbeExecutor):
    """
    A concrete implementation of ProbeExecutor using the aiohttp library.

    This class handles the entire lifecycle of a single probe, including
    timing, retries and success determination. It uses a shared aiohttp
    ClientSession for optimal performance.

    The reported latency spans the whole probe, from the start of the first
    attempt to the final verdict, retry delays included.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
    ) -> None:
        """
        Initializes the executor with a shared aiohttp ClientSession.

        Args:
            session: An active aiohttp.ClientSession to be used for requests.
            retry_delay: Seconds to wait between two attempts.
        """
        self._session: aiohttp.ClientSession = session
        self._retry_delay: float = retry_delay

    async def execute(self, target: str, options: ProbeOptions) -> ProbeResult:
        """
        Probes the target, retrying failed attempts up to options.retry_count times.

        Args:
            target: The URL to probe.
            options: Method, headers, body, timeout, retry and success criteria.

        Returns:
            ProbeResult: A successful result carrying the status of the first
                successful attempt, or a failed result with status 0 once all
                attempts are exhausted.
        """
        logger.debug(f"Starting probe for target: {target}")
        start: float = time.monotonic()
        max_attempts: int = max(options.retry_count, 0) + 1

        for attempt in range(1, max_attempts + 1):
            status = await self._attempt(target, options)
            if status is not None:
                result = self._build_result(target, start, status, True)
                logger.debug(
                    f"Probe of {target} succeeded on attempt {attempt} in {result.latency}ms "
                    f"with status {status}"
                )
                return result

            if attempt < max_attempts:
                logger.debug(
                    f"Attempt {attempt}/{max_attempts} for {target} failed. "
                    f"Retrying in {self._retry_delay}s."
                )
                await asyncio.sleep(self._retry_delay)

        result = self._build_result(target, start, 0, False)
        logger.info(f"Probe of {target} failed after {max_attempts} attempt(s) in {result.latency}ms")
        return result

    async def _attempt(self, target: str, options: ProbeOptions) -> Optional[int]:
        """
        Performs one bounded HTTP request.

        Returns:
            Optional[int]: The response status if the attempt succeeded, None otherwise.
        """
        timeout = aiohttp.ClientTimeout(total=options.timeout_ms / 1000)
        try:
            async with self._session.request(
                options.method.value,
                target,
                headers=options.headers,
                data=options.body,
                timeout=timeout,
            ) as response:
                status: int = response.status
                if not _is_expected_status(status, options.expected_status_code):
                    logger.debug(f"Unexpected status {status} from {target}")
                    return None

                if options.response_validator is not None:
                    is_valid = await _validate_body(response, options.response_validator, target)
                    if not is_valid:
                        logger.debug(f"Response validation failed for {target}")
                        return None

                return status

        except asyncio.TimeoutError:
            logger.warning(f"Timeout after {options.timeout_ms}ms probing {target}")
        except aiohttp.ClientError as e:
            logger.warning(f"Network error probing {target}: {e}")
        except Exception:
            logger.exception(f"Error probing {target}")
        return None

    @staticmethod
    def _build_result(target: str, start: float, status: int, success: bool) -> ProbeResult:
        elapsed_ms = round((time.monotonic() - start) * 1000)
        return ProbeResult(
            endpoint=target,
            timestamp=datetime.now(timezone.utc),
            latency=max(elapsed_ms, 0),
            status=status,
            success=success,
        )
