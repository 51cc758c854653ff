import asyncio
import time
from typing import Awaitable, Callable, Sequence

import httpx
from prometheus_client import Counter, Histogram

from config.logging_config import LinkCheckLogger, get_logger
from services.linkcheck_service.config import settings
from services.linkcheck_service.engine.errors import ConfigurationError
from services.linkcheck_service.engine.models import LinkStatus, ProbeConfig, ProbeMethod, ProbeOutcome, ResolvedLink
from services.linkcheck_service.engine.prober import TIMEOUT_ERROR, build_client, probe

logger = get_logger(__name__)
link_logger = LinkCheckLogger()

# backstop for probe functions that do not bound their own runtime
PROBE_GRACE_S = 0.25

ProbeFn = Callable[[str, ProbeConfig, httpx.AsyncClient], Awaitable[ProbeOutcome]]

link_probes_total = Counter(
    'linkcheck_probes_total',
    'Total link probes by final classification',
    ['status', 'method']
)

link_probe_latency = Histogram(
    'linkcheck_probe_latency_seconds',
    'Latency of link probes that produced an HTTP status'
)


class BatchResult(list):
    """Outcomes of one batch, in completion order."""

    def __init__(self, outcomes=(), cancelled: bool = False, skipped_count: int = 0):
        super().__init__(outcomes)
        self.cancelled = cancelled
        self.skipped_count = skipped_count


def _record(outcome: ProbeOutcome) -> None:
    method = outcome.probe_method.value if outcome.probe_method else "none"
    link_probes_total.labels(status=outcome.status.value, method=method).inc()
    if outcome.latency_ms is not None:
        link_probe_latency.observe(outcome.latency_ms / 1000.0)


async def _probe_safely(probe_fn: ProbeFn, url: str, config: ProbeConfig, client: httpx.AsyncClient) -> ProbeOutcome:
    try:
        return await asyncio.wait_for(probe_fn(url, config, client), timeout=config.timeout_s + PROBE_GRACE_S)
    except asyncio.TimeoutError:
        return ProbeOutcome(url=url, status=LinkStatus.BROKEN, probe_method=ProbeMethod.LIGHTWEIGHT, error=TIMEOUT_ERROR)
    except Exception as e:
        logger.error(f"Probe crashed for {url}", exc_info=True)
        return ProbeOutcome(url=url, status=LinkStatus.UNRESOLVED, error=f"probe failed: {type(e).__name__}: {e}")


async def run_batch(
    links: Sequence[ResolvedLink],
    config: ProbeConfig | None = None,
    concurrency_limit: int | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    probe_fn: ProbeFn | None = None,
    cancel_event: asyncio.Event | None = None,
    batch_id: str | None = None,
) -> BatchResult:
    """Probe every non-skipped link with at most ``concurrency_limit`` in flight.

    A fixed pool of workers drains a queue of distinct URLs. Links sharing an
    absolute URL are probed once and each receives its own outcome. Setting
    ``cancel_event`` abandons in-flight probes and returns what finished.
    """
    limit = settings.concurrency_limit if concurrency_limit is None else concurrency_limit
    if limit <= 0:
        raise ConfigurationError(f"concurrency_limit must be positive, got {limit}")
    config = config or ProbeConfig.from_settings()
    probe_fn = probe_fn or probe

    by_url: dict[str, list[ResolvedLink]] = {}
    skipped = 0
    for link in links:
        if link.skip_probe:
            skipped += 1
            continue
        by_url.setdefault(link.absolute_url, []).append(link)

    if not by_url:
        return BatchResult(skipped_count=skipped)

    queue: asyncio.Queue[str] = asyncio.Queue()
    for url in by_url:
        queue.put_nowait(url)

    pool_size = min(limit, len(by_url))
    results: list[list[ProbeOutcome]] = [[] for _ in range(pool_size)]

    own_client = client is None
    if own_client:
        client = build_client(config, max_connections=pool_size)

    async def worker(slot: list[ProbeOutcome]) -> None:
        while True:
            try:
                url = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            outcome = await _probe_safely(probe_fn, url, config, client)
            _record(outcome)
            for link in by_url[url]:
                slot.append(ProbeOutcome(
                    url=link.absolute_url,
                    status=outcome.status,
                    http_status_code=outcome.http_status_code,
                    latency_ms=outcome.latency_ms,
                    probe_method=outcome.probe_method,
                    error=outcome.error,
                    position=link.position,
                    original_raw=link.original_raw,
                ))

    started = time.perf_counter()
    workers = [asyncio.create_task(worker(slot)) for slot in results]
    cancelled = False
    try:
        if cancel_event is None:
            await asyncio.gather(*workers)
        else:
            cancelled = await _wait_unless_cancelled(workers, cancel_event)
    except asyncio.CancelledError:
        await _abandon(workers)
        raise
    finally:
        if own_client:
            await client.aclose()

    outcomes = BatchResult(
        (o for slot in results for o in slot),
        cancelled=cancelled,
        skipped_count=skipped,
    )
    if cancelled:
        probed_links = sum(len(v) for v in by_url.values())
        link_logger.log_batch_cancelled(batch_id, len(outcomes), probed_links - len(outcomes))
    else:
        logger.debug(f"Probed {len(by_url)} urls for {len(outcomes)} links in {time.perf_counter() - started:.2f}s")
    return outcomes


async def _abandon(workers: list[asyncio.Task]) -> None:
    for w in workers:
        w.cancel()
    await asyncio.gather(*workers, return_exceptions=True)


async def _wait_unless_cancelled(workers: list[asyncio.Task], cancel_event: asyncio.Event) -> bool:
    stopper = asyncio.create_task(cancel_event.wait())
    waiter = asyncio.gather(*workers)
    try:
        await asyncio.wait([waiter, stopper], return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
    if waiter.done():
        waiter.result()
        return False
    await _abandon(workers)
    return True
