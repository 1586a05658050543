"""
Upstream request forwarding

One forwarding path shared by every pass-through route: method translation
(HEAD becomes GET upstream), header allow-listing in both directions,
manual redirects and optional discovery document rewriting.
"""

import json
import logging
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import httpx
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from mcp_widget_proxy.discovery.rewriter import rewrite_discovery_document
from mcp_widget_proxy.middleware.headers import HeaderPolicy, OAUTH_HEADER_POLICY, set_header

logger = logging.getLogger(__name__)

UPSTREAM_UNREACHABLE_MESSAGE = "Upstream OAuth server unreachable"

BODYLESS_METHODS = {"GET", "HEAD"}


def request_origin(request: Request) -> str:
    """
    Public origin of the gateway as seen by the client.

    Uses x-forwarded-proto and host, falling back to http://localhost:3000.
    """
    protocol = request.headers.get("x-forwarded-proto") or "http"
    host = request.headers.get("host") or "localhost:3000"
    return f"{protocol}://{host}"


def with_search(url: str, query: str) -> str:
    """Replace the query string of `url` with `query` (no-op when empty)"""
    if not query:
        return url
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query.lstrip("?"), parts.fragment))


def _is_json(content_type: str) -> bool:
    return "application/json" in content_type.lower()


async def forward_request(
    request: Request,
    target_url: str,
    rewrite_urls: bool = False,
    upstream_base: Optional[str] = None,
    proxy_base: Optional[str] = None,
    header_policy: HeaderPolicy = OAUTH_HEADER_POLICY,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: Optional[float] = None
) -> Response:
    """
    Proxy an inbound request to `target_url`.

    Flow:
    1. HEAD is sent upstream as GET, its body is dropped on the way back
    2. Inbound headers are filtered by the policy, the body is sent for non-GET methods
    3. Redirects are not followed, 3xx and `location` reach the client
    4. With `rewrite_urls`, JSON bodies are rewritten from upstream_base to proxy_base

    Args:
        request: Inbound request
        target_url: Full upstream URL, including any query string
        rewrite_urls: Rewrite discovery document URLs in JSON responses
        upstream_base: Upstream origin to rewrite from
        proxy_base: Gateway origin to rewrite to
        header_policy: Header allow-lists for this surface
        transport: Optional httpx transport for the upstream call
        timeout: Upstream timeout in seconds, None for no deadline

    Returns:
        Response for the client; 502 plain text if the upstream is unreachable
    """
    upstream_method = "GET" if request.method == "HEAD" else request.method
    headers = header_policy.filter_request(request.headers)
    body = None if upstream_method in BODYLESS_METHODS else await request.body()

    try:
        async with httpx.AsyncClient(transport=transport, timeout=timeout, follow_redirects=False) as client:
            upstream = await client.request(
                upstream_method,
                target_url,
                headers=headers,
                content=body,
            )
    except httpx.RequestError as e:
        logger.error(f"Failed to reach upstream {target_url}: {e}")
        return PlainTextResponse(UPSTREAM_UNREACHABLE_MESSAGE, status_code=502)

    response_headers = header_policy.filter_response(upstream.headers)
    logger.debug(f"{request.method} {target_url} -> {upstream.status_code}")

    if request.method == "HEAD":
        return Response(status_code=upstream.status_code, headers=response_headers)

    if not rewrite_urls or not _is_json(upstream.headers.get("content-type", "")):
        return Response(upstream.content, status_code=upstream.status_code, headers=response_headers)

    try:
        document = json.loads(upstream.content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Failed to parse discovery document from {target_url}: {e}")
        return Response(upstream.content, status_code=upstream.status_code, headers=response_headers)

    if not isinstance(document, dict):
        logger.warning(f"Discovery document from {target_url} is not a JSON object, not rewritten")
        return Response(upstream.content, status_code=upstream.status_code, headers=response_headers)

    rewritten = rewrite_discovery_document(document, upstream_base or "", proxy_base or "")
    set_header(response_headers, "content-type", "application/json")

    return Response(
        json.dumps(rewritten),
        status_code=upstream.status_code,
        headers=response_headers,
    )
