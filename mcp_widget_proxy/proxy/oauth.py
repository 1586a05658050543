"""
OAuth gateway routes

Serves the upstream OAuth surface from the gateway's origin:
- /.well-known/oauth-protected-resource (RFC 9728), rewritten
- /.well-known/oauth-protected-resource/mcp, pass-through
- /.well-known/oauth-authorization-server (RFC 8414), rewritten
- /authorize, /token and /register, pass-through

Token issuance stays with the upstream; nothing is stored here.
"""

import logging
from typing import Optional

import httpx
from starlette.requests import Request
from starlette.responses import Response

from mcp_widget_proxy.config import ProxyConfig
from mcp_widget_proxy.discovery.rewriter import extract_base
from mcp_widget_proxy.proxy.forwarding import forward_request, request_origin, with_search

logger = logging.getLogger(__name__)


class OAuthGatewayRoutes:
    """Endpoint handlers for the proxied OAuth surface"""

    def __init__(self, config: ProxyConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            config: Resolved proxy configuration
            transport: Optional httpx transport for upstream calls
        """
        self.config = config
        self.transport = transport
        self.upstream_base = config.oauth_base_url.rstrip("/") if config.oauth_base_url else extract_base(config.mcp_server_url)
        logger.info(f"OAuth surface proxied to {self.upstream_base}")

    def proxy_base(self, request: Request) -> str:
        """Gateway origin that discovery documents are rewritten to"""
        if self.config.gateway_base_url:
            return self.config.gateway_base_url.rstrip("/")
        return request_origin(request)

    def _target(self, request: Request, path: str, keep_query: bool = True) -> str:
        target = f"{self.upstream_base}{path}"
        if keep_query:
            target = with_search(target, request.url.query)
        return target

    async def _forward(self, request: Request, target: str, rewrite_urls: bool = False) -> Response:
        return await forward_request(
            request,
            target,
            rewrite_urls=rewrite_urls,
            upstream_base=self.upstream_base,
            proxy_base=self.proxy_base(request),
            transport=self.transport,
            timeout=self.config.upstream_timeout_seconds,
        )

    async def protected_resource(self, request: Request) -> Response:
        """GET/HEAD /.well-known/oauth-protected-resource, URLs rewritten to the gateway"""
        target = self._target(request, "/.well-known/oauth-protected-resource")
        return await self._forward(request, target, rewrite_urls=True)

    async def protected_resource_mcp(self, request: Request) -> Response:
        """GET/HEAD /.well-known/oauth-protected-resource/mcp, passed through as-is"""
        target = self._target(request, "/.well-known/oauth-protected-resource/mcp")
        return await self._forward(request, target)

    async def authorization_server(self, request: Request) -> Response:
        """GET/HEAD /.well-known/oauth-authorization-server, URLs rewritten to the gateway"""
        target = self._target(request, "/.well-known/oauth-authorization-server")
        return await self._forward(request, target, rewrite_urls=True)

    async def authorize(self, request: Request) -> Response:
        """GET/POST /authorize; redirects are handed back to the client"""
        target = self._target(request, "/authorize", keep_query=request.method != "POST")
        return await self._forward(request, target)

    async def token(self, request: Request) -> Response:
        """POST /token"""
        return await self._forward(request, self._target(request, "/token", keep_query=False))

    async def register(self, request: Request) -> Response:
        """POST /register (dynamic client registration)"""
        return await self._forward(request, self._target(request, "/register", keep_query=False))
