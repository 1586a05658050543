"""
JSON-RPC 2.0 / MCP message shapes used by the proxy

Only the messages the proxy intercepts are modelled; everything else is
forwarded as raw bytes.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

# Error codes
PARSE_ERROR = -32700
INTERNAL_ERROR = -32603
RESOURCE_NOT_FOUND = -32002  # MCP-specific, not in base JSON-RPC

# MCP method names
TOOLS_CALL = "tools/call"
RESOURCES_READ = "resources/read"

RequestId = Union[str, int]


class JsonRpcRequest(BaseModel):
    """A JSON-RPC request the proxy may need to inspect"""
    jsonrpc: str = JSONRPC_VERSION
    id: RequestId
    method: str
    params: Optional[Dict[str, Any]] = None

    def param(self, name: str) -> Any:
        if not self.params:
            return None
        return self.params.get(name)


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class ResourceContent(BaseModel):
    """Content of a single resource in a resources/read result"""
    uri: str
    mime_type: str = Field(alias="mimeType")
    text: Optional[str] = None
    blob: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, alias="_meta")

    class Config:
        populate_by_name = True

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class JsonRpcParseError(ValueError):
    """Raised when an inbound body is not valid JSON"""
    pass


def parse_body(body: bytes) -> Any:
    """
    Decode a JSON request body.

    Raises:
        JsonRpcParseError: body is not valid JSON
    """
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise JsonRpcParseError(str(e)) from e


def as_request(message: Any) -> Optional[JsonRpcRequest]:
    """
    Interpret a decoded message as a single JSON-RPC request.

    Returns None for anything the proxy does not intercept: batches,
    notifications (no id) and malformed objects.
    """
    if not isinstance(message, dict) or "id" not in message:
        return None
    try:
        return JsonRpcRequest.model_validate(message)
    except ValidationError as e:
        logger.debug(f"Message is not an interceptable JSON-RPC request: {e}")
        return None


def success_response(request_id: Optional[RequestId], result: Any) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "result": result,
    }


def error_response(
    request_id: Optional[RequestId],
    code: int,
    message: str,
    data: Any = None
) -> Dict[str, Any]:
    error = JsonRpcError(code=code, message=message, data=data)
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": error.model_dump(exclude_none=True),
    }


def is_tools_call(request: Optional[JsonRpcRequest]) -> bool:
    return request is not None and request.method == TOOLS_CALL


def is_resources_read(request: Optional[JsonRpcRequest]) -> bool:
    return request is not None and request.method == RESOURCES_READ


def is_tool_call_result(response: Any) -> bool:
    """Check if an upstream response is a success whose result has content"""
    if not isinstance(response, dict) or "error" in response:
        return False
    result = response.get("result")
    return isinstance(result, dict) and "content" in result
