import asyncio
import ipaddress
import socket
from dataclasses import replace
from urllib.parse import urlparse

from services.linkcheck_service.engine.models import ResolvedLink

PRIVATE_TARGET = "private_target"


def _is_private_addr(ip: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip.split("%", 1)[0])
    except ValueError:
        return False
    return addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved or addr.is_unspecified


async def _lookup(host: str) -> list[str]:
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError):
        return []
    return [sockaddr[0] for _, _, _, _, sockaddr in infos]


async def is_private_host(host: str) -> bool:
    """True when ``host`` is, or resolves to, a loopback/private/link-local address."""
    if not host:
        return False
    try:
        ipaddress.ip_address(host)
    except ValueError:
        addrs = await _lookup(host)
    else:
        addrs = [host]
    return any(_is_private_addr(ip) for ip in addrs)


async def guard_private_targets(links: list[ResolvedLink]) -> tuple[list[ResolvedLink], list[str]]:
    """Mark links pointing at private hosts as skipped; return them as blocked urls."""
    hosts = list({urlparse(l.absolute_url).hostname or "" for l in links if not l.skip_probe})
    verdicts = dict(zip(hosts, await asyncio.gather(*(is_private_host(h) for h in hosts))))

    guarded: list[ResolvedLink] = []
    blocked: list[str] = []
    for link in links:
        if not link.skip_probe and verdicts.get(urlparse(link.absolute_url).hostname or ""):
            guarded.append(replace(link, skip_probe=True, skip_reason=PRIVATE_TARGET))
            blocked.append(link.absolute_url)
        else:
            guarded.append(link)
    return guarded, blocked
