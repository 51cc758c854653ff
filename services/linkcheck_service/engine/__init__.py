from services.linkcheck_service.engine.models import (
    AuditReport,
    LinkReference,
    LinkStatus,
    ProbeConfig,
    ProbeMethod,
    ProbeOutcome,
    ResolvedLink,
)
from services.linkcheck_service.engine.errors import (
    ConfigurationError,
    LinkCheckError,
    ResolutionError,
)
from services.linkcheck_service.engine.resolver import resolve_link
from services.linkcheck_service.engine.prober import build_client, probe
from services.linkcheck_service.engine.scheduler import BatchResult, run_batch
from services.linkcheck_service.engine.aggregator import aggregate
from services.linkcheck_service.engine.pipeline import check_links
from services.linkcheck_service.engine.target_guard import guard_private_targets, is_private_host

__all__ = [
    "AuditReport",
    "LinkReference",
    "LinkStatus",
    "ProbeConfig",
    "ProbeMethod",
    "ProbeOutcome",
    "ResolvedLink",
    "ConfigurationError",
    "LinkCheckError",
    "ResolutionError",
    "resolve_link",
    "build_client",
    "probe",
    "BatchResult",
    "run_batch",
    "aggregate",
    "check_links",
    "guard_private_targets",
    "is_private_host",
]
