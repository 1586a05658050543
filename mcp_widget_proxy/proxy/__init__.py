"""
MCP and OAuth Proxy Module

Handles forwarding requests from clients to the upstream MCP server.
"""

from mcp_widget_proxy.proxy.handler import MCPJsonRpcProxy
from mcp_widget_proxy.proxy.oauth import OAuthGatewayRoutes
from mcp_widget_proxy.proxy.forwarding import forward_request

__all__ = ["MCPJsonRpcProxy", "OAuthGatewayRoutes", "forward_request"]
