"""
MCP JSON-RPC Proxy Handler

Handles the /mcp endpoint:
1. GET - liveness, optionally with an upstream health probe
2. OPTIONS - CORS preflight
3. POST - JSON-RPC requests:
   - resources/read for widget URIs is answered locally
   - everything else is forwarded upstream verbatim
   - successful tools/call results get widget metadata for mapped tools

Each request is handled on its own; nothing is kept between requests.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

import httpx
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from mcp_widget_proxy.config import ProxyConfig
from mcp_widget_proxy.discovery.rewriter import extract_base
from mcp_widget_proxy.jsonrpc import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    RESOURCE_NOT_FOUND,
    JsonRpcParseError,
    JsonRpcRequest,
    as_request,
    error_response,
    is_resources_read,
    is_tool_call_result,
    is_tools_call,
    parse_body,
    success_response,
)
from mcp_widget_proxy.middleware.headers import MCP_HEADER_POLICY, set_header
from mcp_widget_proxy.proxy.forwarding import request_origin
from mcp_widget_proxy.widgets.metadata import inject_widget_meta
from mcp_widget_proxy.widgets.registry import ToolWidgetRegistry
from mcp_widget_proxy.widgets.resources import WidgetResourceResolver
from mcp_widget_proxy.widgets.uri import is_widget_uri

logger = logging.getLogger(__name__)

HEALTH_PROBE_TIMEOUT = 5.0

CORS_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class UpstreamUnavailable(Exception):
    """Upstream MCP server unreachable or answered with a non-JSON body"""
    pass


def _sse_event_data(sse_text: str) -> Iterator[str]:
    """Yield the data payload of each event, multi-line data joined with newlines"""
    data_lines: List[str] = []
    for line in sse_text.splitlines():
        if not line:
            if data_lines:
                yield "\n".join(data_lines)
            data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field == "data":
            data_lines.append(value[1:] if value.startswith(" ") else value)
    if data_lines:
        yield "\n".join(data_lines)


def parse_sse_message(sse_text: str, request_id: Optional[Any] = None) -> Optional[Any]:
    """
    Pick the JSON-RPC reply out of a Server-Sent Events body.

    Streams may carry notifications (progress, logging) ahead of the reply.
    The event whose id matches `request_id` and that holds a result or error
    is returned; otherwise the last JSON message in the stream.

    Returns None if no event holds valid JSON.
    """
    last = None
    for data in _sse_event_data(sse_text):
        try:
            message = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from SSE data: {e}")
            continue
        if (
            request_id is not None
            and isinstance(message, dict)
            and message.get("id") == request_id
            and ("result" in message or "error" in message)
        ):
            return message
        last = message
    return last


class MCPJsonRpcProxy:
    """
    Dispatches MCP requests to the local widget resolver or the upstream server.

    Handles:
    - JSON-RPC parse errors
    - Widget resource reads
    - Request forwarding and error propagation
    - Widget metadata injection into tools/call results
    """

    def __init__(
        self,
        config: ProxyConfig,
        registry: ToolWidgetRegistry,
        resolver: Optional[WidgetResourceResolver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the MCP proxy.

        Args:
            config: Resolved proxy configuration
            registry: Tool widget registry
            resolver: Widget resource resolver (built from the registry if omitted)
            transport: Optional httpx transport for upstream calls
        """
        self.config = config
        self.registry = registry
        self.transport = transport
        self.resolver = resolver or WidgetResourceResolver(
            registry, transport=transport, timeout=config.upstream_timeout_seconds
        )
        self.upstream_url = config.mcp_server_url
        self.health_url = f"{extract_base(config.mcp_server_url)}/health"
        logger.info(f"MCPJsonRpcProxy forwarding to {self.upstream_url}")

    def renderer_base(self, request: Request) -> str:
        """Origin serving widget pages"""
        if self.config.widget_renderer_url:
            return self.config.widget_renderer_url.rstrip("/")
        return request_origin(request)

    async def handle(self, request: Request) -> Response:
        """Starlette endpoint for /mcp"""
        if request.method == "POST":
            return await self.handle_post(request)
        if request.method == "OPTIONS":
            return self.preflight()
        if request.method in ("GET", "HEAD"):
            return await self.health()
        return JSONResponse({"error": "Method not allowed"}, status_code=405)

    def preflight(self) -> Response:
        return Response(status_code=204, headers=CORS_PREFLIGHT_HEADERS)

    async def probe_upstream(self) -> str:
        """
        Probe the upstream health endpoint.

        Returns:
            "healthy" on 2xx, "degraded" on any other status,
            "unhealthy" if the upstream cannot be reached in time
        """
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=HEALTH_PROBE_TIMEOUT) as client:
                response = await client.get(self.health_url)
        except httpx.RequestError as e:
            logger.warning(f"Upstream health probe to {self.health_url} failed: {e}")
            return "unhealthy"

        if response.is_success:
            return "healthy"

        logger.warning(f"Upstream health probe to {self.health_url} returned {response.status_code}")
        return "degraded"

    async def health(self) -> Response:
        """Liveness payload for GET /mcp"""
        payload: Dict[str, Any] = {
            "status": "active",
            "service": self.config.name,
            "version": self.config.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "widgets": self.registry.all_widget_paths(),
        }

        if self.config.health_check_upstream:
            payload["upstream"] = {
                "url": self.health_url,
                "status": await self.probe_upstream(),
            }

        return JSONResponse(payload)

    async def handle_post(self, request: Request) -> Response:
        """Handle a JSON-RPC POST"""
        body = await request.body()

        try:
            message = parse_body(body)
        except JsonRpcParseError as e:
            logger.warning(f"JSON-RPC parse error: {e}")
            return JSONResponse(error_response(None, PARSE_ERROR, "Parse error"), status_code=400)

        rpc_request = as_request(message)
        if rpc_request is not None:
            logger.info(f"MCP POST request: method={rpc_request.method}, id={rpc_request.id}")

        uri = rpc_request.param("uri") if is_resources_read(rpc_request) else None
        if isinstance(uri, str) and is_widget_uri(uri):
            return await self.read_widget_resource(rpc_request, uri, self.renderer_base(request))

        return await self.forward(request, body, message, rpc_request)

    async def read_widget_resource(self, rpc_request: JsonRpcRequest, uri: str, renderer_base: str) -> Response:
        """Answer resources/read for a widget URI locally"""
        content = await self.resolver.resolve(uri, renderer_base)

        if content is None:
            logger.warning(f"Widget not found: {uri}")
            return JSONResponse(
                error_response(rpc_request.id, RESOURCE_NOT_FOUND, f"Widget not found: {uri}")
            )

        return JSONResponse(success_response(rpc_request.id, {"contents": [content.to_wire()]}))

    async def forward(
        self,
        request: Request,
        body: bytes,
        message: Any,
        rpc_request: Optional[JsonRpcRequest]
    ) -> Response:
        """
        Forward the original body upstream and post-process the response.

        Non-2xx upstream responses are passed through untouched so OAuth
        challenges (401 + www-authenticate) reach the client.
        """
        request_id = message.get("id") if isinstance(message, dict) else None

        headers = MCP_HEADER_POLICY.filter_request(request.headers)
        set_header(headers, "Content-Type", "application/json")

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.config.upstream_timeout_seconds) as client:
                upstream = await client.post(self.upstream_url, content=body, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"Failed to forward request to {self.upstream_url}: {e}")
            return self._unavailable(request_id)

        response_headers = MCP_HEADER_POLICY.filter_response(upstream.headers)

        if not upstream.is_success:
            logger.info(f"Upstream {self.upstream_url} returned {upstream.status_code}, passing through")
            return Response(upstream.content, status_code=upstream.status_code, headers=response_headers)

        if not upstream.content.strip():
            return Response(upstream.content, status_code=upstream.status_code, headers=response_headers)

        try:
            data = self._decode(upstream, request_id)
        except UpstreamUnavailable as e:
            logger.error(f"Invalid response from {self.upstream_url}: {e}")
            return self._unavailable(request_id)

        data = self.post_process(rpc_request, data)

        set_header(response_headers, "content-type", "application/json")
        return Response(json.dumps(data), status_code=upstream.status_code, headers=response_headers)

    def post_process(self, rpc_request: Optional[JsonRpcRequest], data: Any) -> Any:
        """Inject widget metadata into tools/call results for mapped tools"""
        if not is_tools_call(rpc_request) or not is_tool_call_result(data):
            return data

        tool_name = rpc_request.param("name")
        mapping = self.registry.by_tool(tool_name) if isinstance(tool_name, str) else None
        if mapping is None:
            return data

        logger.info(f"Injected widget metadata for tool: {tool_name}")
        return {**data, "result": inject_widget_meta(data["result"], mapping)}

    @staticmethod
    def _decode(upstream: httpx.Response, request_id: Any = None) -> Any:
        content_type = upstream.headers.get("content-type", "")

        if "text/event-stream" in content_type.lower():
            data = parse_sse_message(upstream.text, request_id)
            if data is None:
                raise UpstreamUnavailable("no JSON message in event stream")
            return data

        try:
            return json.loads(upstream.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise UpstreamUnavailable(f"non-JSON body: {e}") from e

    @staticmethod
    def _unavailable(request_id: Any) -> Response:
        return JSONResponse(
            error_response(request_id, INTERNAL_ERROR, "MCP server unavailable"),
            status_code=503,
        )
