import time
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup

from services.linkcheck_service.config import settings
from services.linkcheck_service.engine.models import LinkReference


@dataclass
class FetchedPage:
    url: str
    status_code: int | None
    final_url: str | None
    html: str | None
    response_time_ms: int | None
    error: str | None


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def extract_links(html: str | BeautifulSoup) -> list[LinkReference]:
    soup = html if isinstance(html, BeautifulSoup) else parse_html(html)
    links = []
    for a in soup.find_all("a", href=True):
        text = a.get_text(" ", strip=True) or None
        links.append(LinkReference(raw_target=a["href"], anchor_text=text))
    return links


async def fetch_page(url: str, timeout_s: float | None = None, client: httpx.AsyncClient | None = None) -> FetchedPage:
    timeout_s = timeout_s or settings.page_timeout_s
    headers = {"User-Agent": settings.user_agent}
    try:
        if client is None:
            async with httpx.AsyncClient(follow_redirects=True, headers=headers, timeout=timeout_s) as own_client:
                return await _fetch(own_client, url)
        return await _fetch(client, url)
    except httpx.TimeoutException:
        return FetchedPage(url=url, status_code=None, final_url=None, html=None, response_time_ms=None, error="timeout")
    except httpx.HTTPError as e:
        return FetchedPage(url=url, status_code=None, final_url=None, html=None, response_time_ms=None, error=str(e) or type(e).__name__)


async def _fetch(client: httpx.AsyncClient, url: str) -> FetchedPage:
    start = time.perf_counter()
    r = await client.get(url)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    return FetchedPage(url=url, status_code=r.status_code, final_url=str(r.url), html=r.text, response_time_ms=elapsed_ms, error=None)
