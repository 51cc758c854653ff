from urllib.parse import urldefrag, urljoin, urlparse

import httpx

from services.linkcheck_service.engine.errors import ConfigurationError, ResolutionError
from services.linkcheck_service.engine.models import ResolvedLink

HTTP_SCHEMES = ("http", "https")


def validate_base_url(base_url: str) -> None:
    try:
        p = urlparse(base_url)
    except ValueError as e:
        raise ConfigurationError(f"invalid base url {base_url!r}: {e}") from e
    if p.scheme not in HTTP_SCHEMES or not p.netloc:
        raise ConfigurationError(f"base url must be an absolute http(s) url, got {base_url!r}")


def resolve_link(base_url: str, raw: str, position: int = 0) -> ResolvedLink:
    """Resolve a raw ``href`` value against the page url.

    Fragment-only targets and non-HTTP schemes come back with
    ``skip_probe=True``. Anything that cannot become a usable absolute URL
    raises :class:`ResolutionError`.
    """
    validate_base_url(base_url)

    target = (raw or "").strip()
    if not target:
        raise ResolutionError(raw, "empty link target")

    if target.startswith("#"):
        page, _ = urldefrag(base_url)
        return ResolvedLink(absolute_url=page + target, original_raw=raw, position=position, skip_probe=True, skip_reason="fragment")

    try:
        joined = urljoin(base_url, target)
        p = urlparse(joined)
        p.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise ResolutionError(raw, str(e)) from e

    if p.scheme not in HTTP_SCHEMES:
        return ResolvedLink(absolute_url=joined, original_raw=raw, position=position, skip_probe=True, skip_reason=f"scheme:{p.scheme}")

    if not p.hostname:
        raise ResolutionError(raw, "missing host")
    if any(ch.isspace() for ch in p.netloc):
        raise ResolutionError(raw, "whitespace in host")

    url, _ = urldefrag(joined)
    try:
        httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ResolutionError(raw, str(e)) from e

    return ResolvedLink(absolute_url=url, original_raw=raw, position=position)
