import pytest

from services.linkcheck_service.engine.errors import ConfigurationError, ResolutionError
from services.linkcheck_service.engine.resolver import resolve_link

BASE = "https://example.com/page"


def test_relative_path_resolves_against_base():
    link = resolve_link(BASE, "/relative/path", position=3)
    assert link.absolute_url == "https://example.com/relative/path"
    assert link.original_raw == "/relative/path"
    assert link.position == 3
    assert link.skip_probe is False


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("https://other.org/x", "https://other.org/x"),
        ("//cdn.example.net/lib.js", "https://cdn.example.net/lib.js"),
        ("sub/item", "https://example.com/sub/item"),
        ("../up", "https://example.com/up"),
        ("  /padded  ", "https://example.com/padded"),
        ("/docs#install", "https://example.com/docs"),
    ],
)
def test_resolves_common_forms(raw, expected):
    assert resolve_link(BASE, raw).absolute_url == expected


def test_fragment_only_is_skipped():
    link = resolve_link(BASE + "#old", "#top")
    assert link.skip_probe is True
    assert link.skip_reason == "fragment"
    assert link.absolute_url == "https://example.com/page#top"


@pytest.mark.parametrize("raw", ["mailto:someone@example.com", "javascript:void(0)", "tel:+123456", "ftp://files.example.com/a"])
def test_non_http_schemes_are_skipped(raw):
    link = resolve_link(BASE, raw)
    assert link.skip_probe is True
    assert link.skip_reason.startswith("scheme:")


@pytest.mark.parametrize("raw", ["", "   ", "http://[invalid", "http://example.com:99999/", "http://example.com:abc/", "http://"])
def test_malformed_targets_raise(raw):
    with pytest.raises(ResolutionError):
        resolve_link(BASE, raw)


def test_base_must_be_absolute():
    with pytest.raises(ConfigurationError):
        resolve_link("/not/absolute", "/x")
    with pytest.raises(ValueError):
        resolve_link("ftp://example.com/", "/x")
