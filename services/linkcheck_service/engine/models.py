import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

from services.linkcheck_service.config import settings
from services.linkcheck_service.engine.errors import ConfigurationError


class LinkStatus(str, enum.Enum):
    HEALTHY = "healthy"
    BROKEN = "broken"
    UNRESOLVED = "unresolved"


class ProbeMethod(str, enum.Enum):
    LIGHTWEIGHT = "lightweight"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class LinkReference:
    raw_target: str
    anchor_text: str | None = None


@dataclass(frozen=True)
class ResolvedLink:
    absolute_url: str
    original_raw: str
    position: int = 0
    skip_probe: bool = False
    skip_reason: str | None = None


@dataclass(frozen=True)
class ProbeOutcome:
    url: str
    status: LinkStatus
    http_status_code: int | None = None
    latency_ms: int | None = None
    probe_method: ProbeMethod | None = None
    error: str | None = None
    position: int = 0
    original_raw: str | None = None

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "status": self.status.value,
            "http_status_code": self.http_status_code,
            "latency_ms": self.latency_ms,
            "probe_method": self.probe_method.value if self.probe_method else None,
            "error": self.error,
            "original_raw": self.original_raw,
        }


@dataclass(frozen=True)
class ProbeConfig:
    """Per-probe settings shared by every worker of a batch."""

    timeout_ms: int = 5000
    max_redirects: int = 5
    retry_fallback: bool = True
    fallback_statuses: frozenset[int] = frozenset({405, 501})
    user_agent: str = "SEO-Master-LinkCheckBot/1.0"

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ConfigurationError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if self.max_redirects < 0:
            raise ConfigurationError(f"max_redirects must be >= 0, got {self.max_redirects}")
        if not isinstance(self.fallback_statuses, frozenset):
            object.__setattr__(self, "fallback_statuses", frozenset(self.fallback_statuses))

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_settings(cls, **overrides) -> "ProbeConfig":
        values = {
            "timeout_ms": settings.probe_timeout_ms,
            "max_redirects": settings.max_redirects,
            "retry_fallback": settings.retry_fallback,
            "fallback_statuses": frozenset(settings.fallback_statuses),
            "user_agent": settings.user_agent,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class AuditReport:
    base_url: str
    total_links: int
    broken_links: list[ProbeOutcome]
    healthy_count: int
    unresolved_count: int
    broken_count: int = 0
    skipped_count: int = 0
    unresolved_links: list[ProbeOutcome] = field(default_factory=list)
    blocked_links: list[str] = field(default_factory=list)
    latencies: dict[str, int | None] = field(default_factory=dict)
    cancelled: bool = False
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "base_url": self.base_url,
            "total_links": self.total_links,
            "broken_links": [o.to_dict() for o in self.broken_links],
            "broken_count": self.broken_count,
            "healthy_count": self.healthy_count,
            "unresolved_count": self.unresolved_count,
            "unresolved_links": [o.to_dict() for o in self.unresolved_links],
            "skipped_count": self.skipped_count,
            "blocked_links": list(self.blocked_links),
            "latencies": dict(self.latencies),
            "cancelled": self.cancelled,
            "generated_at": self.generated_at.isoformat(),
        }
