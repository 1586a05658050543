"""
MCP Widget Proxy

A gateway between an AI chat client and an upstream MCP server that attaches
widget rendering metadata to tool results and proxies the OAuth surface.
"""

__version__ = "1.0.0"
