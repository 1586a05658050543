"""Widget registry, metadata injection and resource resolution"""

from .registry import ToolWidgetRegistry
from .metadata import inject_widget_meta
from .resources import WidgetResourceResolver
from .uri import to_widget_uri, is_widget_uri, widget_path_of

__all__ = [
    "ToolWidgetRegistry",
    "inject_widget_meta",
    "WidgetResourceResolver",
    "to_widget_uri",
    "is_widget_uri",
    "widget_path_of",
]
