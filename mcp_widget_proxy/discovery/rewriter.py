"""
OAuth Discovery Document Rewriting

Rewrites absolute upstream URLs in RFC 8414 (Authorization Server Metadata)
and RFC 9728 (Protected Resource Metadata) documents so they point back at
the gateway. Clients then run the whole OAuth flow against the gateway's
origin and never talk to the upstream directly.

Both document types are flat, so only top-level values are rewritten:
- strings starting with the upstream base
- arrays, element-wise, for string elements starting with the upstream base
Nested objects pass through untouched.
"""

import logging
from typing import Any, Dict, List
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

# Flat mapping of string key to JSON value
DiscoveryDocument = Dict[str, Any]

MCP_PATH_SUFFIX = "/mcp"


def extract_base(mcp_endpoint_url: str) -> str:
    """
    Get the OAuth-surface origin from the upstream MCP endpoint.

    "https://upstream.example/mcp" -> "https://upstream.example"

    Args:
        mcp_endpoint_url: Configured upstream MCP endpoint

    Returns:
        Endpoint URL with a trailing /mcp path segment and trailing slash removed
    """
    try:
        parts = urlsplit(mcp_endpoint_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Not an absolute URL: {mcp_endpoint_url}")

        path = parts.path
        if path.endswith(MCP_PATH_SUFFIX):
            path = path[: -len(MCP_PATH_SUFFIX)]

        return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment)).rstrip("/")
    except ValueError:
        logger.debug(f"Could not parse MCP endpoint URL {mcp_endpoint_url!r}, stripping suffix literally")
        if mcp_endpoint_url.endswith(MCP_PATH_SUFFIX):
            return mcp_endpoint_url[: -len(MCP_PATH_SUFFIX)]
        return mcp_endpoint_url


def is_rewritable_string(value: Any, upstream_base: str) -> bool:
    """Check if a value is a string URL under the upstream base"""
    return isinstance(value, str) and value.startswith(upstream_base)


def is_rewritable_array(value: Any) -> bool:
    """Check if a value is an array whose string elements may be rewritten"""
    return isinstance(value, list)


def _replace_prefix(value: str, upstream_base: str, proxy_base: str) -> str:
    return proxy_base + value[len(upstream_base):]


def _rewrite_array(values: List[Any], upstream_base: str, proxy_base: str) -> List[Any]:
    return [
        _replace_prefix(item, upstream_base, proxy_base)
        if is_rewritable_string(item, upstream_base)
        else item
        for item in values
    ]


def rewrite_discovery_document(
    document: DiscoveryDocument,
    upstream_base: str,
    proxy_base: str
) -> DiscoveryDocument:
    """
    Rewrite upstream URLs in a discovery document to the proxy base.

    Returns a new document; the input is not modified. Rewriting is
    idempotent for a given pair of bases as long as the proxy base does not
    itself start with the upstream base.

    Args:
        document: Parsed discovery document
        upstream_base: Origin of the upstream OAuth surface
        proxy_base: Public origin of the gateway

    Returns:
        Rewritten document
    """
    if not upstream_base:
        # Every string starts with "", which would prefix everything
        logger.warning("Empty upstream base, discovery document left unchanged")
        return dict(document)

    rewritten: DiscoveryDocument = {}
    changed = 0

    for key, value in document.items():
        if is_rewritable_string(value, upstream_base):
            rewritten[key] = _replace_prefix(value, upstream_base, proxy_base)
            changed += 1
        elif is_rewritable_array(value):
            rewritten[key] = _rewrite_array(value, upstream_base, proxy_base)
            if rewritten[key] != value:
                changed += 1
        else:
            rewritten[key] = value

    logger.debug(f"Rewrote {changed} discovery fields from {upstream_base} to {proxy_base}")
    return rewritten
