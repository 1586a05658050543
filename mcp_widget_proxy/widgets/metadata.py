"""
Widget metadata injection

Adds the OpenAI Apps widget keys to the `_meta` of a tools/call result so
the client renders the widget bound to the tool.
"""

import logging
from typing import Any, Dict, Optional

from mcp_widget_proxy.config import WidgetMapping
from mcp_widget_proxy.widgets.uri import to_widget_uri

logger = logging.getLogger(__name__)

META_KEY = "_meta"

OUTPUT_TEMPLATE = "openai/outputTemplate"
WIDGET_DESCRIPTION = "openai/widgetDescription"
WIDGET_PREFERS_BORDER = "openai/widgetPrefersBorder"
WIDGET_CSP = "openai/widgetCSP"
WIDGET_DOMAIN = "openai/widgetDomain"
TOOL_INVOKING = "openai/toolInvocation/invoking"
TOOL_INVOKED = "openai/toolInvocation/invoked"

WIDGET_DOMAIN_VALUE = "https://chatgpt.com"


def widget_rendering_meta(mapping: Optional[WidgetMapping]) -> Dict[str, Any]:
    """
    Rendering hints shared by tool results and widget resources.

    Border preference defaults to True, including when there is no mapping.
    """
    prefers_border = True
    if mapping is not None and mapping.prefers_border is not None:
        prefers_border = mapping.prefers_border

    meta: Dict[str, Any] = {
        WIDGET_PREFERS_BORDER: prefers_border,
        WIDGET_DOMAIN: WIDGET_DOMAIN_VALUE,
    }

    if mapping is None:
        return meta

    if mapping.description:
        meta[WIDGET_DESCRIPTION] = mapping.description

    if mapping.csp is not None:
        meta[WIDGET_CSP] = mapping.csp.model_dump(exclude_none=True)

    return meta


def inject_widget_meta(result: Dict[str, Any], mapping: WidgetMapping) -> Dict[str, Any]:
    """
    Inject widget metadata into a tools/call result.

    Existing `_meta` entries are kept; only the widget keys are added or
    overridden. The input result is not modified.

    Args:
        result: Tool call result from the upstream server
        mapping: Widget mapping for the called tool

    Returns:
        New result with merged `_meta`
    """
    existing = result.get(META_KEY)
    meta: Dict[str, Any] = dict(existing) if isinstance(existing, dict) else {}

    meta[OUTPUT_TEMPLATE] = to_widget_uri(mapping.widget_path)
    meta.update(widget_rendering_meta(mapping))

    if mapping.invoking_text:
        meta[TOOL_INVOKING] = mapping.invoking_text

    if mapping.invoked_text:
        meta[TOOL_INVOKED] = mapping.invoked_text

    return {**result, META_KEY: meta}
