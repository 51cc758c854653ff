import asyncio
from urllib.parse import urlparse

from config.logging_config import LinkCheckLogger
from services.linkcheck_service.analyzers.link_checker import link_findings
from services.linkcheck_service.analyzers.page_checks import check_response, find_amp_url, find_canonical_url, run_page_checks
from services.linkcheck_service.config import settings
from services.linkcheck_service.crawler.page_fetcher import extract_links, fetch_page, parse_html
from services.linkcheck_service.engine.models import ProbeConfig
from services.linkcheck_service.engine.pipeline import check_links
from services.linkcheck_service.engine.target_guard import is_private_host

link_logger = LinkCheckLogger()


async def _precheck_url(base_url: str, block_private: bool) -> list[dict]:
    findings = []
    p = urlparse(base_url)
    if p.scheme not in ("http", "https") or not p.netloc:
        findings.append({"code": "invalid_url", "severity": "high", "confidence": "high", "details": {"base_url": base_url}})
        return findings
    if block_private and await is_private_host(p.hostname or ""):
        findings.append({"code": "unsafe_target", "severity": "high", "confidence": "high", "details": {"host": p.hostname}})
    return findings


async def run_page_audit(
    base_url: str,
    options: dict | None = None,
    cancel_event: asyncio.Event | None = None,
) -> dict:
    """Fetch one page, run its tag checks and probe its outbound links."""
    options = options or {}
    block_private = bool(options.get("block_private_targets", settings.block_private_targets))
    page_timeout = float(options.get("page_timeout_s", settings.page_timeout_s))
    concurrency = int(options.get("concurrency_limit", settings.concurrency_limit))
    max_links = int(options.get("max_links", settings.max_links_per_page))
    config = ProbeConfig.from_settings(
        timeout_ms=options.get("timeout_ms"),
        max_redirects=options.get("max_redirects"),
        retry_fallback=options.get("retry_fallback"),
    )

    findings = []
    pre = await _precheck_url(base_url, block_private)
    findings.extend(pre)
    if pre:
        summary = {"precheck_failed": True, "links_checked": 0}
        return {"base_url": base_url, "summary": summary, "findings": findings, "links": None}

    page = await fetch_page(base_url, timeout_s=page_timeout)
    findings.extend(check_response(page))
    summary = {
        "precheck_failed": False,
        "status_code": page.status_code,
        "final_url": page.final_url,
        "response_time_ms": page.response_time_ms,
    }
    if page.error or not page.html:
        link_logger.log_page_fetch_failed(base_url, page.error)
        summary["links_checked"] = 0
        return {"base_url": base_url, "summary": summary, "findings": findings, "links": None}

    page_url = page.final_url or base_url
    soup = parse_html(page.html)
    findings.extend(run_page_checks(page_url, soup))
    summary["canonical_url"] = find_canonical_url(page_url, soup)
    summary["amp_url"] = find_amp_url(page_url, soup)

    links = extract_links(soup)
    summary["links_found"] = len(links)
    if len(links) > max_links:
        findings.append({"code": "links_truncated", "severity": "info", "confidence": "high", "details": {"found": len(links), "checked": max_links}})
        links = links[:max_links]

    report = await check_links(page_url, links, config, concurrency, cancel_event=cancel_event, block_private_targets=block_private)
    findings.extend(link_findings(report))
    summary["links_checked"] = report.total_links
    summary["broken_count"] = report.broken_count
    summary["broken_urls_count"] = len(report.broken_links)
    summary["blocked_count"] = len(report.blocked_links)

    return {"base_url": base_url, "summary": summary, "findings": findings, "links": report.to_dict()}
