"""
Configuration management for the MCP widget proxy
"""

import os
import logging
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings
import yaml
from dotenv import load_dotenv

# Load .env file at module import time
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MCP_SERVER_URL = "http://localhost:3001/mcp"


class WidgetCSP(BaseModel):
    """Content Security Policy domains for a widget"""
    connect_domains: Optional[List[str]] = Field(default=None, alias="connectDomains")
    resource_domains: Optional[List[str]] = Field(default=None, alias="resourceDomains")

    class Config:
        frozen = True
        populate_by_name = True


class WidgetMapping(BaseModel):
    """Binds an MCP tool to the widget page that renders its results

    Fields mirror the rendering hints the client understands:
    - prefers_border: render with a border (treated as True when unset)
    - invoking_text / invoked_text: status text while / after the tool runs
    - csp: domains the widget may connect to or load resources from
    """
    tool_name: str = Field(alias="toolName")
    widget_path: str = Field(alias="widgetPath")  # e.g. "/widgets/weather"
    description: Optional[str] = None
    prefers_border: Optional[bool] = Field(default=None, alias="prefersBorder")
    invoking_text: Optional[str] = Field(default=None, alias="invokingText")
    invoked_text: Optional[str] = Field(default=None, alias="invokedText")
    csp: Optional[WidgetCSP] = None

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("widget_path")
    @classmethod
    def _rooted(cls, value: str) -> str:
        if not value.startswith("/"):
            return f"/{value}"
        return value


DEFAULT_WIDGETS: Tuple[WidgetMapping, ...] = (
    WidgetMapping(
        tool_name="example_tool",
        widget_path="/widgets/example",
        description="Example widget demonstrating data binding",
        prefers_border=True,
        invoking_text="Loading...",
        invoked_text="Ready",
    ),
)


class ProxySettings(BaseSettings):
    """
    Proxy settings from environment variables.

    - MCP_SERVER_URL: upstream MCP endpoint (the OAuth surface lives at its origin)
    - OAUTH_BASE_URL: optional override for the upstream OAuth origin
    - GATEWAY_BASE_URL: optional public origin of this gateway
    - WIDGET_RENDERER_URL: optional origin serving widget pages
    """
    mcp_server_url: str = Field(alias="MCP_SERVER_URL", default=DEFAULT_MCP_SERVER_URL)
    oauth_base_url: Optional[str] = Field(alias="OAUTH_BASE_URL", default=None)
    gateway_base_url: Optional[str] = Field(alias="GATEWAY_BASE_URL", default=None)
    widget_renderer_url: Optional[str] = Field(alias="WIDGET_RENDERER_URL", default=None)
    widgets_config_path: str = Field(alias="WIDGETS_CONFIG_PATH", default="config/widgets.yaml")
    health_check_upstream: bool = Field(alias="HEALTH_CHECK_UPSTREAM", default=False)
    # Unset: forwarded calls have no deadline
    upstream_timeout_seconds: Optional[float] = Field(alias="UPSTREAM_TIMEOUT_SECONDS", default=None)

    gateway_host: str = Field(alias="GATEWAY_HOST", default="0.0.0.0")
    gateway_port: int = Field(alias="GATEWAY_PORT", default=3000)

    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


class ProxyConfig(BaseModel):
    """Resolved proxy configuration, read-only for the lifetime of the process"""
    name: str = "MCP Widget Proxy"
    version: str = "1.0.0"

    mcp_server_url: str = DEFAULT_MCP_SERVER_URL
    widgets: Tuple[WidgetMapping, ...] = DEFAULT_WIDGETS

    oauth_base_url: Optional[str] = None
    gateway_base_url: Optional[str] = None
    widget_renderer_url: Optional[str] = None
    health_check_upstream: bool = False
    upstream_timeout_seconds: Optional[float] = None

    class Config:
        frozen = True

    @classmethod
    def from_yaml(cls, config_path: str, env_settings: Optional[ProxySettings] = None) -> "ProxyConfig":
        """Load widget mappings from YAML and combine them with environment settings"""
        with open(config_path, "r") as f:
            yaml_config = yaml.safe_load(f) or {}

        if env_settings is None:
            env_settings = ProxySettings()

        widgets = tuple(
            WidgetMapping(**widget_data)
            for widget_data in yaml_config.get("widgets", None) or []
        )

        return cls.from_settings(env_settings, widgets)

    @classmethod
    def from_settings(
        cls,
        env_settings: ProxySettings,
        widgets: Tuple[WidgetMapping, ...] = DEFAULT_WIDGETS
    ) -> "ProxyConfig":
        return cls(
            mcp_server_url=env_settings.mcp_server_url,
            widgets=widgets,
            oauth_base_url=env_settings.oauth_base_url,
            gateway_base_url=env_settings.gateway_base_url,
            widget_renderer_url=env_settings.widget_renderer_url,
            health_check_upstream=env_settings.health_check_upstream,
            upstream_timeout_seconds=env_settings.upstream_timeout_seconds,
        )


def load_config(env_settings: Optional[ProxySettings] = None) -> ProxyConfig:
    """Load configuration from environment and YAML"""
    if env_settings is None:
        env_settings = ProxySettings()

    config_path = env_settings.widgets_config_path

    if os.path.exists(config_path):
        logger.info(f"Loading widget mappings from {config_path}")
        return ProxyConfig.from_yaml(config_path, env_settings)

    # Env only, with the built-in example widget
    logger.info(f"No widget config at {config_path}, using default widget mappings")
    return ProxyConfig.from_settings(env_settings)
