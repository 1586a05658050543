"""Discovery module for OAuth metadata rewriting"""

from .rewriter import extract_base, rewrite_discovery_document

__all__ = ["extract_base", "rewrite_discovery_document"]
