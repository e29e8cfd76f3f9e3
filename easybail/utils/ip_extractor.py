"""Client identification for audit entries, aware of reverse proxies."""

from typing import Optional
from fastapi import Request


def get_client_ip(request: Request) -> str:
    """
    Best guess at the originating client address.

    X-Forwarded-For (first hop) wins over X-Real-IP, which wins over the peer
    address of the connection. Proxy headers are trusted as-is, so the service
    must only be reachable through the proxy in production.
    """
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = (request.headers.get("X-Real-IP") or "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")
