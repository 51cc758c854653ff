import re
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup

from services.linkcheck_service.crawler.page_fetcher import FetchedPage

SLOW_RESPONSE_MS = 3000


def _same_page(a: str, b: str) -> bool:
    a, _ = urldefrag(a)
    b, _ = urldefrag(b)
    return a.rstrip("/") == b.rstrip("/")


def check_response(page: FetchedPage) -> list[dict]:
    findings = []
    if page.error or page.status_code is None:
        findings.append({"code": "page_unreachable", "severity": "high", "confidence": "high", "details": {"url": page.url, "error": page.error}})
        return findings
    if page.status_code >= 400:
        findings.append({"code": "page_error_status", "severity": "high", "confidence": "high", "details": {"url": page.url, "status": page.status_code}})
    if page.response_time_ms is not None and page.response_time_ms > SLOW_RESPONSE_MS:
        findings.append({"code": "page_slow_response", "severity": "medium", "confidence": "medium", "details": {"url": page.url, "response_time_ms": page.response_time_ms}})
    return findings


def find_canonical_url(base_url: str, soup: BeautifulSoup) -> str | None:
    tag = soup.find("link", attrs={"rel": re.compile(r"^canonical$", re.I)}, href=True)
    if tag is None:
        return None
    return urljoin(base_url, tag["href"].strip())


def check_canonical(base_url: str, soup: BeautifulSoup) -> list[dict]:
    canonical = find_canonical_url(base_url, soup)
    if canonical is None:
        return [{"code": "canonical_missing", "severity": "low", "confidence": "high", "details": {"url": base_url}}]
    if not _same_page(canonical, base_url):
        return [{"code": "canonical_points_elsewhere", "severity": "medium", "confidence": "high", "details": {"url": base_url, "canonical": canonical}}]
    return []


def find_amp_url(base_url: str, soup: BeautifulSoup) -> str | None:
    tag = soup.find("link", attrs={"rel": re.compile(r"^amphtml$", re.I)}, href=True)
    if tag is None:
        return None
    return urljoin(base_url, tag["href"].strip())


def check_amp(base_url: str, soup: BeautifulSoup) -> list[dict]:
    amp = find_amp_url(base_url, soup)
    if amp is None:
        return [{"code": "amp_missing", "severity": "info", "confidence": "high", "details": {"url": base_url}}]
    return []


def check_sitemap_link(base_url: str, soup: BeautifulSoup) -> list[dict]:
    a = soup.find("a", href=re.compile(r"sitemap\.xml", re.I))
    if a is None:
        return [{"code": "sitemap_link_missing", "severity": "info", "confidence": "medium", "details": {"url": base_url}}]
    return []


def check_schema_markup(base_url: str, soup: BeautifulSoup) -> list[dict]:
    found = {
        "json_ld": bool(soup.find_all("script", attrs={"type": re.compile(r"application/ld\+json", re.I)})),
        "microdata": bool(soup.find_all(attrs={"itemscope": True})),
        "rdfa": bool(soup.find_all(attrs={"typeof": True})),
    }
    if not any(found.values()):
        return [{"code": "schema_markup_missing", "severity": "low", "confidence": "high", "details": {"url": base_url}}]
    return []


def run_page_checks(base_url: str, soup: BeautifulSoup) -> list[dict]:
    findings = []
    findings.extend(check_canonical(base_url, soup))
    findings.extend(check_amp(base_url, soup))
    findings.extend(check_sitemap_link(base_url, soup))
    findings.extend(check_schema_markup(base_url, soup))
    return findings
