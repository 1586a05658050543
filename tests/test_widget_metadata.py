"""
Tests for widget URIs and metadata injection
"""

import pytest

from mcp_widget_proxy.config import WidgetMapping
from mcp_widget_proxy.widgets.metadata import inject_widget_meta, widget_rendering_meta
from mcp_widget_proxy.widgets.uri import is_widget_uri, to_widget_uri, widget_path_of


class TestWidgetUri:
    """Tests for widget URI conversion"""

    def test_to_widget_uri(self):
        assert to_widget_uri("/widgets/weather") == "ui://widget/widgets/weather.html"

    def test_to_widget_uri_without_leading_slash(self):
        assert to_widget_uri("widgets/weather") == "ui://widget/widgets/weather.html"

    def test_widget_path_of(self):
        assert widget_path_of("ui://widget/widgets/weather.html") == "/widgets/weather"

    def test_widget_path_of_only_strips_trailing_suffix(self):
        assert widget_path_of("ui://widget/widgets/a.html.v2.html") == "/widgets/a.html.v2"

    def test_is_widget_uri(self):
        assert is_widget_uri("ui://widget/widgets/weather.html")
        assert not is_widget_uri("file:///etc/hosts")
        assert not is_widget_uri("ui://other/widgets/weather.html")

    @pytest.mark.parametrize("path", [
        "/widgets/example",
        "/widgets/data-table",
        "/a",
        "/deeply/nested/widget/page",
        "/widgets/v1.2",
    ])
    def test_round_trip(self, path):
        assert widget_path_of(to_widget_uri(path)) == path


class TestInjectWidgetMeta:
    """Tests for inject_widget_meta"""

    def test_example_tool_metadata(self, example_widget):
        result = inject_widget_meta({"content": []}, example_widget)

        assert result["_meta"] == {
            "openai/outputTemplate": "ui://widget/widgets/example.html",
            "openai/widgetPrefersBorder": True,
            "openai/widgetDescription": "Example widget demonstrating data binding",
            "openai/toolInvocation/invoking": "Loading...",
            "openai/toolInvocation/invoked": "Ready",
            "openai/widgetDomain": "https://chatgpt.com",
        }

    def test_prefers_border_defaults_to_true(self):
        mapping = WidgetMapping(tool_name="t", widget_path="/widgets/t")
        result = inject_widget_meta({"content": []}, mapping)

        assert mapping.prefers_border is None
        assert result["_meta"]["openai/widgetPrefersBorder"] is True

    def test_prefers_border_false_and_csp(self, table_widget):
        result = inject_widget_meta({"content": []}, table_widget)
        meta = result["_meta"]

        assert meta["openai/widgetPrefersBorder"] is False
        assert meta["openai/widgetCSP"] == {
            "connect_domains": ["https://api.example.com"],
            "resource_domains": ["https://cdn.example.com"],
        }
        assert "openai/toolInvocation/invoking" not in meta

    def test_optional_keys_absent_when_unset(self):
        mapping = WidgetMapping(tool_name="t", widget_path="/widgets/t")
        meta = inject_widget_meta({"content": []}, mapping)["_meta"]

        assert set(meta) == {
            "openai/outputTemplate",
            "openai/widgetPrefersBorder",
            "openai/widgetDomain",
        }

    def test_preserves_existing_metadata(self, example_widget):
        result = {
            "content": [{"type": "text", "text": "hi"}],
            "_meta": {"openai/locale": "en-US", "trace": {"id": "t-1"}},
        }

        injected = inject_widget_meta(result, example_widget)

        assert injected["_meta"]["openai/locale"] == "en-US"
        assert injected["_meta"]["trace"] == {"id": "t-1"}
        assert injected["_meta"]["openai/outputTemplate"] == "ui://widget/widgets/example.html"

    def test_overrides_owned_keys(self, example_widget):
        result = {"content": [], "_meta": {"openai/outputTemplate": "ui://widget/old.html"}}
        injected = inject_widget_meta(result, example_widget)
        assert injected["_meta"]["openai/outputTemplate"] == "ui://widget/widgets/example.html"

    def test_preserves_other_result_fields(self, example_widget):
        result = {
            "content": [{"type": "text", "text": "hi"}],
            "structuredContent": {"rows": [1, 2]},
            "isError": False,
        }

        injected = inject_widget_meta(result, example_widget)

        assert injected["content"] == result["content"]
        assert injected["structuredContent"] == {"rows": [1, 2]}
        assert injected["isError"] is False

    def test_does_not_modify_input(self, example_widget):
        result = {"content": [], "_meta": {"keep": 1}}
        inject_widget_meta(result, example_widget)
        assert result == {"content": [], "_meta": {"keep": 1}}


def test_rendering_meta_without_mapping():
    assert widget_rendering_meta(None) == {
        "openai/widgetPrefersBorder": True,
        "openai/widgetDomain": "https://chatgpt.com",
    }
