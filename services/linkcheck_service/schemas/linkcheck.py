from datetime import datetime
from pydantic import BaseModel, AnyUrl, Field


class LinkCheckOptions(BaseModel):
    timeout_ms: int = Field(default=5000, ge=100, le=60000)
    max_redirects: int = Field(default=5, ge=0, le=20)
    concurrency_limit: int = Field(default=10, ge=1, le=100)
    retry_fallback: bool = True
    block_private_targets: bool = True


class LinkInput(BaseModel):
    raw_target: str
    anchor_text: str | None = None


class LinkCheckRequest(BaseModel):
    base_url: AnyUrl
    links: list[str | LinkInput] = Field(default_factory=list, max_length=5000)
    options: LinkCheckOptions = Field(default_factory=LinkCheckOptions)


class PageAuditOptions(LinkCheckOptions):
    page_timeout_s: float = Field(default=10.0, ge=1.0, le=60.0)
    max_links: int = Field(default=500, ge=1, le=5000)


class PageAuditRequest(BaseModel):
    base_url: AnyUrl
    options: PageAuditOptions = Field(default_factory=PageAuditOptions)


class ProbeOutcomeOut(BaseModel):
    url: str
    status: str
    http_status_code: int | None = None
    latency_ms: int | None = None
    probe_method: str | None = None
    error: str | None = None
    original_raw: str | None = None


class LinkReportResponse(BaseModel):
    base_url: str
    total_links: int
    broken_links: list[ProbeOutcomeOut]
    broken_count: int
    healthy_count: int
    unresolved_count: int
    unresolved_links: list[ProbeOutcomeOut]
    skipped_count: int
    blocked_links: list[str] = Field(default_factory=list)
    latencies: dict[str, int | None]
    cancelled: bool
    generated_at: datetime


class PageAuditResponse(BaseModel):
    base_url: str
    summary: dict
    findings: list
    links: LinkReportResponse | None = None
