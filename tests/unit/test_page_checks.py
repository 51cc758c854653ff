from services.linkcheck_service.analyzers.page_checks import (
    check_canonical,
    check_response,
    check_schema_markup,
    check_sitemap_link,
    find_amp_url,
)
from services.linkcheck_service.crawler.page_fetcher import FetchedPage, extract_links, parse_html

PAGE = """
<html><head>
<link rel="canonical" href="/cars/s-class/">
<link rel="amphtml" href="/amp/cars/s-class/">
<script type="application/ld+json">{"@context": "https://schema.org", "@type": "Product"}</script>
</head><body>
<a href="/cars/">Cars</a>
<a href="#specs">Specs</a>
<a href="/sitemap.xml">Sitemap</a>
<a name="no-href">Anchor</a>
</body></html>
"""


def test_extract_links_keeps_page_order_and_anchor_text():
    links = extract_links(PAGE)
    assert [l.raw_target for l in links] == ["/cars/", "#specs", "/sitemap.xml"]
    assert links[0].anchor_text == "Cars"


def test_canonical_matching_page_has_no_findings():
    soup = parse_html(PAGE)
    assert check_canonical("https://example.com/cars/s-class/", soup) == []


def test_canonical_elsewhere_and_missing():
    soup = parse_html(PAGE)
    codes = {f["code"] for f in check_canonical("https://example.com/other/", soup)}
    assert codes == {"canonical_points_elsewhere"}

    bare = parse_html("<html><body></body></html>")
    codes = {f["code"] for f in check_canonical("https://example.com/", bare)}
    assert codes == {"canonical_missing"}


def test_amp_sitemap_and_schema_detection():
    soup = parse_html(PAGE)
    assert find_amp_url("https://example.com/cars/s-class/", soup) == "https://example.com/amp/cars/s-class/"
    assert check_sitemap_link("https://example.com/", soup) == []
    assert check_schema_markup("https://example.com/", soup) == []

    bare = parse_html("<html><body><p>hi</p></body></html>")
    assert find_amp_url("https://example.com/", bare) is None
    assert check_sitemap_link("https://example.com/", bare)[0]["code"] == "sitemap_link_missing"
    assert check_schema_markup("https://example.com/", bare)[0]["code"] == "schema_markup_missing"


def test_microdata_counts_as_schema_markup():
    soup = parse_html('<div itemscope itemtype="https://schema.org/Car"></div>')
    assert check_schema_markup("https://example.com/", soup) == []


def test_check_response_flags_errors_and_slowness():
    down = FetchedPage(url="https://example.com/", status_code=None, final_url=None, html=None, response_time_ms=None, error="timeout")
    assert check_response(down)[0]["code"] == "page_unreachable"

    slow = FetchedPage(url="https://example.com/", status_code=200, final_url="https://example.com/", html="", response_time_ms=4500, error=None)
    assert {f["code"] for f in check_response(slow)} == {"page_slow_response"}

    missing = FetchedPage(url="https://example.com/", status_code=404, final_url="https://example.com/", html="", response_time_ms=20, error=None)
    assert {f["code"] for f in check_response(missing)} == {"page_error_status"}
