"""
Widget resource resolution

Serves resources/read for widget URIs locally: the widget page is fetched
from the rendering surface and returned as skybridge HTML content.
"""

import logging
from typing import Optional

import httpx

from mcp_widget_proxy.jsonrpc import ResourceContent
from mcp_widget_proxy.widgets.metadata import widget_rendering_meta
from mcp_widget_proxy.widgets.registry import ToolWidgetRegistry
from mcp_widget_proxy.widgets.uri import is_widget_uri, widget_path_of

logger = logging.getLogger(__name__)

WIDGET_MIME_TYPE = "text/html+skybridge"


class WidgetResourceResolver:
    """
    Resolves widget URIs to rendered widget markup.

    Misses (unknown URI scheme, non-2xx page, unreachable renderer) are
    logged and reported as None.
    """

    def __init__(
        self,
        registry: ToolWidgetRegistry,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None
    ):
        """
        Args:
            registry: Registry used for the reverse widget path lookup
            transport: Optional httpx transport for outbound fetches
            timeout: Fetch timeout in seconds, None for no deadline
        """
        self.registry = registry
        self.transport = transport
        self.timeout = timeout

    async def fetch_widget_html(self, widget_path: str, renderer_base_url: str) -> Optional[str]:
        """
        Fetch a widget page from the rendering surface.

        Returns:
            Page markup, or None on a non-2xx status or transport failure
        """
        url = f"{renderer_base_url.rstrip('/')}{widget_path}"

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(url)
        except httpx.RequestError as e:
            logger.error(f"Failed to fetch widget from {url}: {e}")
            return None

        if not response.is_success:
            logger.error(
                f"Failed to fetch widget from {url}: "
                f"{response.status_code} {response.reason_phrase}"
            )
            return None

        return response.text

    def create_resource_content(self, uri: str, html: str, widget_path: str) -> ResourceContent:
        """Wrap widget markup as resource content with rendering metadata"""
        mapping = self.registry.by_widget_path(widget_path)
        if mapping is None:
            logger.debug(f"No widget mapping for {widget_path}, using default metadata")

        return ResourceContent(
            uri=uri,
            mime_type=WIDGET_MIME_TYPE,
            text=html,
            metadata=widget_rendering_meta(mapping),
        )

    async def resolve(self, uri: str, renderer_base_url: str) -> Optional[ResourceContent]:
        """
        Resolve a widget URI to resource content.

        Args:
            uri: Resource URI from a resources/read request
            renderer_base_url: Origin serving widget pages

        Returns:
            ResourceContent, or None if the widget cannot be served
        """
        if not is_widget_uri(uri):
            return None

        widget_path = widget_path_of(uri)
        html = await self.fetch_widget_html(widget_path, renderer_base_url)
        if html is None:
            logger.error(f"Failed to serve widget {uri}")
            return None

        logger.info(f"Served widget {uri} from {widget_path}")
        return self.create_resource_content(uri, html, widget_path)
