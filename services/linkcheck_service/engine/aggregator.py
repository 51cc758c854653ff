from typing import Iterable

from services.linkcheck_service.engine.models import AuditReport, LinkStatus, ProbeOutcome


def aggregate(base_url: str, outcomes: Iterable[ProbeOutcome], *, skipped_count: int = 0, blocked_links: list[str] | None = None, cancelled: bool = False) -> AuditReport:
    """Fold per-link outcomes into a report ordered by page position.

    ``broken_links`` holds one entry per distinct broken URL, at its first
    occurrence on the page, whatever order the probes finished in.
    """
    ordered = sorted(outcomes, key=lambda o: o.position)

    broken: list[ProbeOutcome] = []
    unresolved: list[ProbeOutcome] = []
    latencies: dict[str, int | None] = {}
    seen_broken: set[str] = set()
    healthy_count = broken_count = 0

    for o in ordered:
        if o.status is LinkStatus.UNRESOLVED:
            unresolved.append(o)
            continue
        latencies.setdefault(o.url, o.latency_ms)
        if o.status is LinkStatus.HEALTHY:
            healthy_count += 1
            continue
        broken_count += 1
        if o.url not in seen_broken:
            seen_broken.add(o.url)
            broken.append(o)

    return AuditReport(
        base_url=base_url,
        total_links=len(ordered),
        broken_links=broken,
        healthy_count=healthy_count,
        unresolved_count=len(unresolved),
        broken_count=broken_count,
        skipped_count=skipped_count,
        unresolved_links=unresolved,
        blocked_links=list(blocked_links or []),
        latencies=latencies,
        cancelled=cancelled,
    )
