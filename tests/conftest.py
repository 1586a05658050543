"""
Pytest configuration and fixtures
"""

import json
from typing import Callable, Dict, Optional

import httpx
import pytest
from starlette.testclient import TestClient

from mcp_widget_proxy.config import ProxyConfig, ProxySettings, WidgetCSP, WidgetMapping
from mcp_widget_proxy.main import create_app
from mcp_widget_proxy.widgets import ToolWidgetRegistry

UPSTREAM_MCP_URL = "https://upstream.example/mcp"
UPSTREAM_BASE = "https://upstream.example"


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables"""
    monkeypatch.setenv("MCP_SERVER_URL", UPSTREAM_MCP_URL)
    monkeypatch.setenv("GATEWAY_BASE_URL", "https://gw.example")
    monkeypatch.setenv("WIDGETS_CONFIG_PATH", "does-not-exist.yaml")
    monkeypatch.setenv("GATEWAY_PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


@pytest.fixture
def proxy_settings(mock_env_vars):
    """Create test proxy settings"""
    return ProxySettings()


@pytest.fixture
def example_widget():
    """The example tool widget"""
    return WidgetMapping(
        tool_name="example_tool",
        widget_path="/widgets/example",
        description="Example widget demonstrating data binding",
        invoking_text="Loading...",
        invoked_text="Ready",
    )


@pytest.fixture
def table_widget():
    """A widget with CSP and border disabled"""
    return WidgetMapping(
        tool_name="query_database",
        widget_path="/widgets/data-table",
        description="Shows query results in an interactive table",
        prefers_border=False,
        csp=WidgetCSP(
            connect_domains=["https://api.example.com"],
            resource_domains=["https://cdn.example.com"],
        ),
    )


@pytest.fixture
def widget_registry(example_widget, table_widget):
    """Create test widget registry"""
    return ToolWidgetRegistry([example_widget, table_widget])


@pytest.fixture
def proxy_config(example_widget, table_widget):
    """Create test proxy configuration"""
    return ProxyConfig(
        mcp_server_url=UPSTREAM_MCP_URL,
        widgets=(example_widget, table_widget),
    )


class FakeUpstream:
    """
    Records outbound requests and answers them from a route table.

    Routes map "METHOD url-without-query" to a handler returning an
    httpx.Response; unmatched requests get a 404.
    """

    def __init__(self):
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests = []

    def on(self, method: str, url: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[f"{method} {url}"] = handler

    def json(self, method: str, url: str, body, status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> None:
        self.on(method, url, lambda request: httpx.Response(status_code, json=body, headers=headers))

    def refuse(self, method: str, url: str) -> None:
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)
        self.on(method, url, handler)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = request.url
        key = f"{request.method} {url.scheme}://{url.netloc.decode()}{url.path}"
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404, text="not found")
        return handler(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last_request.content)


@pytest.fixture
def upstream():
    """Fake upstream MCP / OAuth / rendering server"""
    return FakeUpstream()


@pytest.fixture
def transport(upstream):
    return httpx.MockTransport(upstream)


@pytest.fixture
def client(proxy_config, transport):
    """Test client for the gateway app"""
    return TestClient(create_app(proxy_config, transport=transport))
