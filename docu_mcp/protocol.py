"""
MCP Protocol definitions.

Implements the JSON-RPC 2.0 message types used by the Model Context Protocol
over a line-delimited stream.
"""

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


JSONRPC_VERSION = "2.0"

# Sentinel for "the message carried no id member". ``None`` is a valid id.
NO_ID = object()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON number: {name}")


def _parse_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"Number out of range: {text}")
    return value


class MCPErrorCode(Enum):
    """JSON-RPC and MCP error codes emitted by the server."""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    # Reserved: invalid params are reported as REQUEST_FAILED.
    INVALID_PARAMS = -32602
    REQUEST_FAILED = -32000
    ALREADY_INITIALIZED = -32000
    UNSUPPORTED_PROTOCOL_VERSION = -32000
    NOT_INITIALIZED = -32002


@dataclass
class MCPError:
    """MCP Error object."""
    code: int
    message: str
    data: Optional[Any] = None

    @classmethod
    def from_code(cls, code: MCPErrorCode, message: str, data: Any = None) -> "MCPError":
        return cls(code=code.value, message=message, data=data)

    def to_dict(self) -> dict:
        result = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result


class MessageParseError(ValueError):
    """The line is not a JSON-RPC message of the expected shape."""


class InvalidRequestError(ValueError):
    """The message parsed but carries the wrong protocol version tag."""

    def __init__(self, message: str, id: Any = NO_ID):
        super().__init__(message)
        self.id = id

    @property
    def has_id(self) -> bool:
        return self.id is not NO_ID


@dataclass
class MCPNotification:
    """MCP Notification message: a method call without an id."""
    method: str
    params: Optional[Any] = None
    jsonrpc: str = JSONRPC_VERSION

    def to_dict(self) -> dict:
        result = {"jsonrpc": self.jsonrpc, "method": self.method}
        if self.params is not None:
            result["params"] = self.params
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class MCPRequest(MCPNotification):
    """MCP Request message. The id is echoed verbatim, never interpreted."""
    id: Any = None

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["id"] = self.id
        return result


@dataclass
class MCPResponse:
    """MCP Response message. Exactly one of result or error is present."""
    id: Any = None
    result: Optional[Any] = None
    error: Optional[MCPError] = None
    jsonrpc: str = JSONRPC_VERSION

    def to_dict(self) -> dict:
        result = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            result["error"] = self.error.to_dict()
        else:
            result["result"] = self.result
        return result

    def to_json(self) -> str:
        # ASCII output keeps surrogate-escaped strings encodable on the wire.
        return json.dumps(self.to_dict(), allow_nan=False)

    @classmethod
    def success(cls, id: Any, result: Any) -> "MCPResponse":
        return cls(id=id, result=result)

    @classmethod
    def failure(cls, id: Any, error: MCPError) -> "MCPResponse":
        return cls(id=id, error=error)


@dataclass
class ToolParameter:
    """Tool parameter definition."""
    name: str
    type: str
    description: str
    required: bool = False

    def to_json_schema(self) -> dict:
        """Convert to JSON schema property."""
        return {
            "type": self.type,
            "description": self.description,
        }


@dataclass
class Tool:
    """Tool definition for MCP."""
    name: str
    description: str
    parameters: List[ToolParameter] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to MCP tool definition format."""
        properties = {}
        required = []

        for param in self.parameters:
            properties[param.name] = param.to_json_schema()
            if param.required:
                required.append(param.name)

        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }


@dataclass
class ToolResult:
    """Result from tool execution."""
    success: bool
    content: Any
    content_type: str = "text"
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_text(self) -> str:
        """Render the content for a text content block."""
        if self.content_type == "json":
            return json.dumps(self.content, indent=2, allow_nan=False)
        return str(self.content)


def parse_message(data: Union[str, bytes]) -> Union[MCPRequest, MCPNotification]:
    """
    Parse one raw line into a request or notification.

    Raises:
        MessageParseError: not JSON, or not a JSON-RPC message object.
        InvalidRequestError: the ``jsonrpc`` tag is not ``"2.0"``.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MessageParseError(f"Invalid UTF-8: {e}") from e

    try:
        message = json.loads(
            data, parse_constant=_reject_constant, parse_float=_parse_float
        )
    except ValueError as e:
        raise MessageParseError(f"Invalid JSON: {e}") from e

    if not isinstance(message, dict):
        raise MessageParseError("Message must be a JSON object")

    version = message.get("jsonrpc")
    if not isinstance(version, str):
        raise MessageParseError("Missing or invalid field: jsonrpc")

    method = message.get("method")
    if not isinstance(method, str):
        raise MessageParseError("Missing or invalid field: method")

    if version != JSONRPC_VERSION:
        raise InvalidRequestError(
            f"Invalid JSON-RPC version: {version}. Expected {JSONRPC_VERSION}",
            id=message.get("id", NO_ID),
        )

    params = message.get("params")
    if "id" in message:
        return MCPRequest(method=method, params=params, id=message["id"])
    return MCPNotification(method=method, params=params)
