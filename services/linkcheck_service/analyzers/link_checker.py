from services.linkcheck_service.engine.models import AuditReport


def link_findings(report: AuditReport) -> list[dict]:
    findings = []
    for o in report.broken_links:
        details = {"url": o.url, "status": o.http_status_code, "probe_method": o.probe_method.value if o.probe_method else None}
        if o.error:
            details["error"] = o.error
        severity = "medium" if o.http_status_code is not None else "low"
        findings.append({"code": "broken_link", "severity": severity, "confidence": "high", "details": details})

    for o in report.unresolved_links:
        findings.append({"code": "link_unresolved", "severity": "low", "confidence": "medium", "details": {"raw": o.original_raw or o.url, "error": o.error}})

    for url in report.blocked_links:
        findings.append({"code": "link_target_blocked", "severity": "medium", "confidence": "high", "details": {"url": url}})

    if report.cancelled:
        findings.append({"code": "link_check_incomplete", "severity": "info", "confidence": "high", "details": {"checked": report.total_links}})
    return findings
