"""
Tool widget registry - maps MCP tool names and widget paths to widget mappings

Both indices are built once from configuration and never change afterwards.
"""

import logging
from typing import Dict, Iterable, List, Optional

from mcp_widget_proxy.config import WidgetMapping

logger = logging.getLogger(__name__)


class ToolWidgetRegistry:
    """
    Immutable lookup of widget mappings by tool name and by widget path.

    Example: example_tool -> /widgets/example, /widgets/example -> example_tool

    Duplicate tool names or widget paths are logged and ignored, the first
    configured entry wins.
    """

    def __init__(self, widgets: Iterable[WidgetMapping]):
        """
        Initialize registry with widget mappings.

        Args:
            widgets: Configured widget mappings, in priority order
        """
        self._by_tool: Dict[str, WidgetMapping] = {}
        self._by_path: Dict[str, WidgetMapping] = {}
        self._widgets: List[WidgetMapping] = []

        for mapping in widgets:
            if mapping.tool_name in self._by_tool:
                logger.warning(
                    f"Duplicate widget mapping for tool '{mapping.tool_name}' "
                    f"({mapping.widget_path}) ignored, keeping {self._by_tool[mapping.tool_name].widget_path}"
                )
                continue
            if mapping.widget_path in self._by_path:
                logger.warning(
                    f"Duplicate widget path '{mapping.widget_path}' for tool '{mapping.tool_name}' "
                    f"ignored, keeping tool '{self._by_path[mapping.widget_path].tool_name}'"
                )
                continue

            self._by_tool[mapping.tool_name] = mapping
            self._by_path[mapping.widget_path] = mapping
            self._widgets.append(mapping)
            logger.info(f"Widget registered: {mapping.tool_name} -> {mapping.widget_path}")

    def by_tool(self, tool_name: str) -> Optional[WidgetMapping]:
        """
        Get widget mapping for a tool.

        Args:
            tool_name: MCP tool name from a tools/call request

        Returns:
            WidgetMapping or None if the tool has no widget
        """
        return self._by_tool.get(tool_name)

    def by_widget_path(self, widget_path: str) -> Optional[WidgetMapping]:
        """
        Get widget mapping for a widget path (reverse lookup).

        Args:
            widget_path: Widget path, with or without leading slash

        Returns:
            WidgetMapping or None if no tool uses this widget
        """
        if not widget_path.startswith("/"):
            widget_path = f"/{widget_path}"
        return self._by_path.get(widget_path)

    def has_tool(self, tool_name: str) -> bool:
        return tool_name in self._by_tool

    def all_widget_paths(self) -> List[str]:
        """List all registered widget paths, in configuration order"""
        return [mapping.widget_path for mapping in self._widgets]

    def __len__(self) -> int:
        return len(self._widgets)
