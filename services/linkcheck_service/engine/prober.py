"""Two-tier reachability probe for a single absolute URL.

Tier 1 sends ``HEAD``. Many servers refuse header-only requests while still
serving the page, so a transport failure or a rejection status (405, 501 by
default) triggers one ``GET`` before the link is called broken.
"""

import asyncio
import time

import httpx

from config.logging_config import LinkCheckLogger, get_logger
from services.linkcheck_service.engine.models import LinkStatus, ProbeConfig, ProbeMethod, ProbeOutcome

logger = get_logger(__name__)
link_logger = LinkCheckLogger()

TIMEOUT_ERROR = "timeout"


def build_client(config: ProbeConfig, max_connections: int | None = None) -> httpx.AsyncClient:
    limits = httpx.Limits(max_connections=max_connections) if max_connections else httpx.Limits()
    return httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=config.max_redirects,
        headers={"User-Agent": config.user_agent},
        timeout=config.timeout_s,
        limits=limits,
    )


def describe_error(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return TIMEOUT_ERROR
    if isinstance(exc, httpx.TooManyRedirects):
        return "too many redirects"
    text = str(exc)
    if isinstance(exc, httpx.ConnectError):
        return f"connection error: {text}" if text else "connection error"
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def _classify(url: str, status_code: int, latency_ms: int, method: ProbeMethod) -> ProbeOutcome:
    status = LinkStatus.BROKEN if status_code >= 400 else LinkStatus.HEALTHY
    return ProbeOutcome(url=url, status=status, http_status_code=status_code, latency_ms=latency_ms, probe_method=method)


def _broken(url: str, method: ProbeMethod, error: str) -> ProbeOutcome:
    return ProbeOutcome(url=url, status=LinkStatus.BROKEN, probe_method=method, error=error)


async def _head(client: httpx.AsyncClient, url: str) -> tuple[int, int]:
    started = time.perf_counter()
    r = await client.head(url)
    return r.status_code, int((time.perf_counter() - started) * 1000)


async def _get(client: httpx.AsyncClient, url: str) -> tuple[int, int]:
    # the body is never read; headers are enough to classify
    started = time.perf_counter()
    async with client.stream("GET", url) as r:
        return r.status_code, int((time.perf_counter() - started) * 1000)


async def probe(url: str, config: ProbeConfig | None = None, client: httpx.AsyncClient | None = None) -> ProbeOutcome:
    """Classify ``url`` as healthy or broken.

    Transport errors never escape: a link that fails both tiers is broken with
    a descriptive ``error``. The whole probe, fallback included, is bounded by
    ``config.timeout_ms``; running past it yields ``error="timeout"``.
    """
    config = config or ProbeConfig.from_settings()
    if client is None:
        async with build_client(config) as own_client:
            return await probe(url, config, own_client)

    loop = asyncio.get_running_loop()
    deadline = loop.time() + config.timeout_s

    try:
        status_code, latency_ms = await asyncio.wait_for(_head(client, url), timeout=config.timeout_s)
    except asyncio.TimeoutError:
        return _broken(url, ProbeMethod.LIGHTWEIGHT, TIMEOUT_ERROR)
    except httpx.HTTPError as e:
        reason = describe_error(e)
        if not config.retry_fallback:
            return _broken(url, ProbeMethod.LIGHTWEIGHT, reason)
    else:
        if not (config.retry_fallback and status_code in config.fallback_statuses):
            return _classify(url, status_code, latency_ms, ProbeMethod.LIGHTWEIGHT)
        reason = f"HEAD rejected with {status_code}"

    remaining = deadline - loop.time()
    if remaining <= 0:
        return _broken(url, ProbeMethod.LIGHTWEIGHT, TIMEOUT_ERROR)

    link_logger.log_probe_fallback(url, reason)
    try:
        status_code, latency_ms = await asyncio.wait_for(_get(client, url), timeout=remaining)
    except asyncio.TimeoutError:
        return _broken(url, ProbeMethod.FALLBACK, TIMEOUT_ERROR)
    except httpx.HTTPError as e:
        logger.debug(f"Fallback probe failed for {url}: {e!r}")
        return _broken(url, ProbeMethod.FALLBACK, describe_error(e))

    return _classify(url, status_code, latency_ms, ProbeMethod.FALLBACK)
