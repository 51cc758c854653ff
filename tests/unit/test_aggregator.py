from services.linkcheck_service.engine.aggregator import aggregate
from services.linkcheck_service.engine.models import LinkStatus, ProbeMethod, ProbeOutcome


def _outcome(url, status, position, code=None, latency=None):
    return ProbeOutcome(url=url, status=status, http_status_code=code, latency_ms=latency, probe_method=ProbeMethod.LIGHTWEIGHT, position=position)


def test_broken_links_follow_page_order_not_completion_order():
    completion_order = [
        _outcome("https://example.com/c", LinkStatus.BROKEN, 4, 500),
        _outcome("https://example.com/ok", LinkStatus.HEALTHY, 1, 200, 12),
        _outcome("https://example.com/a", LinkStatus.BROKEN, 0, 404),
        _outcome("https://example.com/b", LinkStatus.BROKEN, 2, 410),
    ]
    report = aggregate("https://example.com/", completion_order)

    assert [o.url for o in report.broken_links] == [
        "https://example.com/a",
        "https://example.com/b",
        "https://example.com/c",
    ]
    assert report.total_links == 4
    assert report.healthy_count == 1
    assert report.broken_count == 3


def test_repeated_broken_url_listed_once_at_first_occurrence():
    outcomes = [
        _outcome("https://example.com/x", LinkStatus.BROKEN, 5, 404),
        _outcome("https://example.com/y", LinkStatus.BROKEN, 3, 404),
        _outcome("https://example.com/x", LinkStatus.BROKEN, 1, 404),
    ]
    report = aggregate("https://example.com/", outcomes)

    assert [(o.url, o.position) for o in report.broken_links] == [("https://example.com/x", 1), ("https://example.com/y", 3)]
    assert report.broken_count == 3


def test_unresolved_are_counted_separately():
    outcomes = [
        ProbeOutcome(url="http://[bad", status=LinkStatus.UNRESOLVED, error="Invalid IPv6 URL", position=0, original_raw="http://[bad"),
        _outcome("https://example.com/ok", LinkStatus.HEALTHY, 1, 200, 8),
    ]
    report = aggregate("https://example.com/", outcomes, skipped_count=2)

    assert report.total_links == 2
    assert report.unresolved_count == 1
    assert report.unresolved_links[0].original_raw == "http://[bad"
    assert report.broken_links == []
    assert report.skipped_count == 2
    assert report.latencies == {"https://example.com/ok": 8}


def test_report_serializes_to_plain_values():
    report = aggregate("https://example.com/", [_outcome("https://example.com/a", LinkStatus.BROKEN, 0, 404)], cancelled=True)
    d = report.to_dict()

    assert d["broken_links"][0]["status"] == "broken"
    assert d["broken_links"][0]["probe_method"] == "lightweight"
    assert d["cancelled"] is True
    assert isinstance(d["generated_at"], str)
