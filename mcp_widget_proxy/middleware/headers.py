"""
Header allow-listing between client, gateway and upstream

Only a fixed set of headers crosses the gateway in either direction, so
cookies, host and forwarding headers never leak. `www-authenticate` and
`location` survive outbound so OAuth challenges and redirects still work.
"""

import logging
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Tuple, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)

INBOUND_ALLOWED: FrozenSet[str] = frozenset({
    "authorization",
    "content-type",
    "accept",
})

OUTBOUND_ALLOWED: FrozenSet[str] = frozenset({
    "content-type",
    "www-authenticate",
    "cache-control",
    "pragma",
    "expires",
    "location",  # redirects from upstream discovery/authorize
})

# Streamable HTTP session headers, only on the MCP surface
MCP_INBOUND_ALLOWED: FrozenSet[str] = INBOUND_ALLOWED | {"mcp-session-id", "mcp-protocol-version"}
MCP_OUTBOUND_ALLOWED: FrozenSet[str] = OUTBOUND_ALLOWED | {"mcp-session-id"}

HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def filter_headers(headers: HeaderSource, allowed: Iterable[str]) -> Dict[str, str]:
    """
    Copy the headers whose name is in `allowed` (case-insensitive).

    Keys keep the casing they arrived with. Accepts any mapping (dict,
    starlette or httpx Headers) or an iterable of (name, value) pairs.
    """
    allowed = {name.lower() for name in allowed}
    items: Iterable[Tuple[str, Any]] = headers.items() if hasattr(headers, "items") else headers

    out: Dict[str, str] = {}
    for key, value in items:
        if key.lower() in allowed:
            out[key] = value
    return out


def filter_inbound(headers: HeaderSource) -> Dict[str, str]:
    """Headers the client may send upstream"""
    return filter_headers(headers, INBOUND_ALLOWED)


def filter_outbound(headers: HeaderSource) -> Dict[str, str]:
    """Headers the upstream may send back to the client"""
    return filter_headers(headers, OUTBOUND_ALLOWED)


def set_header(headers: Dict[str, str], name: str, value: str) -> Dict[str, str]:
    """Replace a header regardless of the casing it is currently stored under"""
    for key in [k for k in headers if k.lower() == name.lower()]:
        del headers[key]
    headers[name] = value
    return headers


class HeaderPolicy(BaseModel):
    """Allow-lists applied to one proxied surface"""
    inbound: FrozenSet[str]
    outbound: FrozenSet[str]

    class Config:
        frozen = True

    def filter_request(self, headers: HeaderSource) -> Dict[str, str]:
        return filter_headers(headers, self.inbound)

    def filter_response(self, headers: HeaderSource) -> Dict[str, str]:
        return filter_headers(headers, self.outbound)


OAUTH_HEADER_POLICY = HeaderPolicy(inbound=INBOUND_ALLOWED, outbound=OUTBOUND_ALLOWED)
MCP_HEADER_POLICY = HeaderPolicy(inbound=MCP_INBOUND_ALLOWED, outbound=MCP_OUTBOUND_ALLOWED)
