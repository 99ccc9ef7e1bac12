"""
docu-mcp - MCP server for document directories and text extraction.

The Model Context Protocol (MCP) enables AI assistants to interact with
external tools and data sources through a standardized interface. This
server exposes the documents of a chosen directory as resources and offers
tools to manage directories and extract text.
"""

from .config import Config, ConfigStore, FileConfigStore
from .errors import DocuMCPError
from .extractors import PdfExtractor, TextExtractor
from .protocol import (
    MCPError,
    MCPErrorCode,
    MCPNotification,
    MCPRequest,
    MCPResponse,
    Tool,
    ToolParameter,
    ToolResult,
)
from .resources import Resource, ResourceContent, ResourceResolver
from .server import MCPServer, ServerConfig, create_server
from .tools import BaseTool, ToolRegistry
from .transport import StdioTransport, Transport, TransportError

__version__ = "0.1.0"

__all__ = [
    # Protocol
    "MCPError",
    "MCPErrorCode",
    "MCPNotification",
    "MCPRequest",
    "MCPResponse",
    "Tool",
    "ToolParameter",
    "ToolResult",
    # Server
    "MCPServer",
    "ServerConfig",
    "create_server",
    # Tools and resources
    "BaseTool",
    "ToolRegistry",
    "Resource",
    "ResourceContent",
    "ResourceResolver",
    # Collaborators
    "Config",
    "ConfigStore",
    "FileConfigStore",
    "TextExtractor",
    "PdfExtractor",
    "DocuMCPError",
    # Transport
    "Transport",
    "StdioTransport",
    "TransportError",
]
