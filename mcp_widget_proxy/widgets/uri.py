"""
Widget URI helpers

"/widgets/weather" <-> "ui://widget/widgets/weather.html"
"""

WIDGET_URI_PREFIX = "ui://widget/"
WIDGET_URI_SUFFIX = ".html"


def to_widget_uri(widget_path: str) -> str:
    """Convert a rooted widget path to its widget URI"""
    path = widget_path[1:] if widget_path.startswith("/") else widget_path
    return f"{WIDGET_URI_PREFIX}{path}{WIDGET_URI_SUFFIX}"


def is_widget_uri(uri: str) -> bool:
    """Check if a resource URI names a widget served by the proxy"""
    return isinstance(uri, str) and uri.startswith(WIDGET_URI_PREFIX)


def widget_path_of(uri: str) -> str:
    """Extract the rooted widget path from a widget URI"""
    path = uri[len(WIDGET_URI_PREFIX):] if uri.startswith(WIDGET_URI_PREFIX) else uri
    if path.endswith(WIDGET_URI_SUFFIX):
        path = path[: -len(WIDGET_URI_SUFFIX)]
    return f"/{path}"
