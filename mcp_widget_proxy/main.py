"""
MCP Widget Proxy - Main entry point

A protocol-translating gateway between an AI chat client and an upstream
MCP server. It forwards MCP traffic, serves widget resources itself, adds
widget rendering metadata to tool results and proxies the upstream OAuth
surface with discovery URLs rewritten to the gateway.
"""

import logging
from typing import Optional

import httpx
from starlette.applications import Starlette
from starlette.routing import Route

from mcp_widget_proxy.config import ProxyConfig, ProxySettings, load_config
from mcp_widget_proxy.middleware import setup_logging
from mcp_widget_proxy.proxy import MCPJsonRpcProxy, OAuthGatewayRoutes
from mcp_widget_proxy.widgets import ToolWidgetRegistry, WidgetResourceResolver

logger = logging.getLogger(__name__)


def create_app(
    config: ProxyConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Starlette:
    """
    Build the gateway application.

    Args:
        config: Resolved proxy configuration
        transport: Optional httpx transport for all outbound calls

    Returns:
        Starlette application
    """
    registry = ToolWidgetRegistry(config.widgets)
    resolver = WidgetResourceResolver(registry, transport=transport, timeout=config.upstream_timeout_seconds)
    mcp_proxy = MCPJsonRpcProxy(config, registry, resolver=resolver, transport=transport)
    oauth = OAuthGatewayRoutes(config, transport=transport)

    # GET routes also answer HEAD
    routes = [
        Route("/mcp", mcp_proxy.handle, methods=["GET", "POST", "OPTIONS"]),
        Route("/.well-known/oauth-protected-resource", oauth.protected_resource, methods=["GET"]),
        Route("/.well-known/oauth-protected-resource/mcp", oauth.protected_resource_mcp, methods=["GET"]),
        Route("/.well-known/oauth-authorization-server", oauth.authorization_server, methods=["GET"]),
        Route("/authorize", oauth.authorize, methods=["GET", "POST"]),
        Route("/token", oauth.token, methods=["POST"]),
        Route("/register", oauth.register, methods=["POST"]),
    ]

    return Starlette(routes=routes)


def run(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """
    Run the gateway server.

    Args:
        host: Server host (default from settings)
        port: Server port (default from settings)
    """
    import uvicorn

    settings = ProxySettings()
    setup_logging(settings.log_level)
    config = load_config(settings)

    host = host or settings.gateway_host
    port = port or settings.gateway_port

    logger.info("=" * 80)
    logger.info(f"{config.name} v{config.version}")
    logger.info("=" * 80)
    logger.info(f"Listening on {host}:{port}")
    logger.info(f"Upstream MCP server: {config.mcp_server_url}")
    logger.info(f"Widgets: {[w.tool_name + ' -> ' + w.widget_path for w in config.widgets]}")
    logger.info("=" * 80)

    app = create_app(config)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    # For local development: python -m mcp_widget_proxy.main
    run()
