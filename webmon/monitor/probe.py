"""HTTP root-path probe."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Union

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Success:
    """The host answered ``200`` on ``/``."""

    latency: float  # seconds


@dataclass(frozen=True)
class Failure:
    """The host could not be reached or answered with a non-200 status."""

    reason: str
    latency: float  # seconds


Outcome = Union[Success, Failure]


def _describe_error(exc: BaseException) -> str:
    """Human readable reason for a transport error."""
    text = str(exc)
    if text:
        return text
    return type(exc).__name__


async def probe(
    hostname: str,
    timeout: float,
    client: Optional[httpx.AsyncClient] = None,
) -> Outcome:
    """Perform one bounded-time GET against ``http://<hostname>/``.

    The measured latency covers connect, request and reading the full
    response, including any redirects that were followed. The whole
    exchange is bounded by ``timeout`` so a slowly trickling response cannot
    keep the probe alive past the deadline.

    Args:
        hostname: Host (optionally ``host:port``) to probe.
        timeout: Deadline in seconds for the whole exchange.
        client: Shared client to use. A short-lived one is created if omitted.

    Returns:
        ``Success`` for a 200 response, ``Failure`` otherwise. Never raises
        for network problems.
    """
    url = f"http://{hostname}/"
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(follow_redirects=True)

    start = time.monotonic()
    try:
        response = await asyncio.wait_for(
            client.get(url, timeout=timeout, follow_redirects=True),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        duration = time.monotonic() - start
        logger.info("%s FAIL after %.3fs (deadline exceeded)", hostname, duration)
        return Failure(reason=f"timed out after {timeout:g}s", latency=duration)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        duration = time.monotonic() - start
        logger.info("%s FAIL after %.3fs: %s", hostname, duration, e)
        return Failure(reason=_describe_error(e), latency=duration)
    finally:
        if owns_client:
            await client.aclose()

    duration = time.monotonic() - start
    if response.status_code != 200:
        status_line = f"{response.status_code} {response.reason_phrase}".strip()
        logger.info("%s ERROR after %.3fs: %s", hostname, duration, status_line)
        return Failure(reason=status_line, latency=duration)

    logger.debug("%s OK after %.3fs", hostname, duration)
    return Success(latency=duration)
