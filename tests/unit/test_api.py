from fastapi.testclient import TestClient

from services.linkcheck_service import main
from services.linkcheck_service.engine.aggregator import aggregate
from services.linkcheck_service.engine.models import LinkStatus, ProbeMethod, ProbeOutcome


def test_health():
    with TestClient(main.app) as client:
        r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_check_links_route(monkeypatch):
    seen = {}

    async def fake_check_links(base_url, links, config, concurrency_limit, cancel_event=None, block_private_targets=False):
        seen["block_private_targets"] = block_private_targets
        seen["links"] = [l.raw_target for l in links]
        seen["limit"] = concurrency_limit
        seen["timeout_ms"] = config.timeout_ms
        outcome = ProbeOutcome(url="https://example.com/gone", status=LinkStatus.BROKEN, http_status_code=404, probe_method=ProbeMethod.LIGHTWEIGHT, original_raw="/gone")
        return aggregate(base_url, [outcome])

    monkeypatch.setattr(main, "check_links", fake_check_links)
    with TestClient(main.app) as client:
        r = client.post(
            "/links/check",
            json={
                "base_url": "https://example.com/page",
                "links": ["/gone", {"raw_target": "/x", "anchor_text": "X"}],
                "options": {"timeout_ms": 2000, "concurrency_limit": 3},
            },
        )

    assert r.status_code == 200
    body = r.json()
    assert body["broken_links"][0]["url"] == "https://example.com/gone"
    assert body["broken_links"][0]["probe_method"] == "lightweight"
    assert seen == {"links": ["/gone", "/x"], "limit": 3, "timeout_ms": 2000, "block_private_targets": True}


def test_check_links_rejects_bad_options():
    with TestClient(main.app) as client:
        r = client.post("/links/check", json={"base_url": "https://example.com/", "links": [], "options": {"concurrency_limit": 0}})
    assert r.status_code == 422


def test_metrics_exposed():
    with TestClient(main.app) as client:
        r = client.get("/metrics")
    assert r.status_code == 200
    assert "linkcheck_probes_total" in r.text
