from services.linkcheck_service.schemas.linkcheck import (
    LinkCheckOptions,
    LinkInput,
    LinkCheckRequest,
    PageAuditOptions,
    PageAuditRequest,
    ProbeOutcomeOut,
    LinkReportResponse,
    PageAuditResponse,
)

__all__ = [
    "LinkCheckOptions",
    "LinkInput",
    "LinkCheckRequest",
    "PageAuditOptions",
    "PageAuditRequest",
    "ProbeOutcomeOut",
    "LinkReportResponse",
    "PageAuditResponse",
]
