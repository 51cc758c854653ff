import asyncio
import time
import uuid
from typing import Iterable

import httpx
from prometheus_client import Counter

from config.logging_config import LinkCheckLogger
from services.linkcheck_service.config import settings
from services.linkcheck_service.engine.aggregator import aggregate
from services.linkcheck_service.engine.errors import ConfigurationError, ResolutionError
from services.linkcheck_service.engine.models import AuditReport, LinkReference, LinkStatus, ProbeConfig, ProbeOutcome, ResolvedLink
from services.linkcheck_service.engine.resolver import resolve_link, validate_base_url
from services.linkcheck_service.engine.scheduler import run_batch
from services.linkcheck_service.engine.target_guard import guard_private_targets

link_logger = LinkCheckLogger()

resolution_errors_total = Counter(
    'linkcheck_resolution_errors_total',
    'Link targets that could not be resolved to an absolute url'
)

batches_total = Counter(
    'linkcheck_batches_total',
    'Link batches by outcome',
    ['outcome']
)


def resolve_all(base_url: str, links: Iterable[LinkReference | str]) -> tuple[list[ResolvedLink], list[ProbeOutcome]]:
    resolved: list[ResolvedLink] = []
    unresolved: list[ProbeOutcome] = []
    for position, link in enumerate(links):
        raw = link.raw_target if isinstance(link, LinkReference) else link
        try:
            resolved.append(resolve_link(base_url, raw, position=position))
        except ResolutionError as e:
            resolution_errors_total.inc()
            link_logger.log_link_unresolved(base_url, raw, e.reason)
            unresolved.append(ProbeOutcome(url=raw, status=LinkStatus.UNRESOLVED, error=e.reason, position=position, original_raw=raw))
    return resolved, unresolved


async def check_links(
    base_url: str,
    links: Iterable[LinkReference | str],
    config: ProbeConfig | None = None,
    concurrency_limit: int | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    cancel_event: asyncio.Event | None = None,
    block_private_targets: bool = False,
) -> AuditReport:
    """Resolve, probe and aggregate the outbound links of one page.

    With ``block_private_targets`` set, links whose host is or resolves to a
    private, loopback or link-local address are never probed and are listed
    in ``AuditReport.blocked_links``.
    """
    batch_id = str(uuid.uuid4())
    limit = settings.concurrency_limit if concurrency_limit is None else concurrency_limit
    if limit <= 0:
        raise ConfigurationError(f"concurrency_limit must be positive, got {limit}")
    validate_base_url(base_url)
    resolved, unresolved = resolve_all(base_url, links)
    blocked: list[str] = []
    if block_private_targets:
        resolved, blocked = await guard_private_targets(resolved)
        for url in blocked:
            link_logger.log_link_blocked(base_url, url)

    link_logger.log_batch_started(batch_id, base_url, len(resolved) + len(unresolved), limit)
    started = time.perf_counter()

    outcomes = await run_batch(
        resolved,
        config,
        limit,
        client=client,
        cancel_event=cancel_event,
        batch_id=batch_id,
    )
    report = aggregate(base_url, [*unresolved, *outcomes], skipped_count=outcomes.skipped_count, blocked_links=blocked, cancelled=outcomes.cancelled)

    batches_total.labels(outcome="cancelled" if report.cancelled else "completed").inc()
    link_logger.log_batch_completed(batch_id, base_url, report.total_links, report.broken_count, time.perf_counter() - started)
    return report
