"""Request/response middleware helpers"""

from .logging import setup_logging
from .headers import filter_inbound, filter_outbound, filter_headers

__all__ = ["setup_logging", "filter_inbound", "filter_outbound", "filter_headers"]
