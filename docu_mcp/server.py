"""
MCP Server implementation.

Owns the session handshake state, turns each input line into a JSON-RPC
request or notification, dispatches it to the tool registry or resource
resolver, and encodes the response.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from .config import ConfigStore, FileConfigStore
from .errors import DocuMCPError, NoActiveDirectoryError, error_chain
from .extractors import TextExtractor
from .protocol import (
    InvalidRequestError,
    MCPError,
    MCPErrorCode,
    MCPNotification,
    MCPRequest,
    MCPResponse,
    MessageParseError,
    parse_message,
)
from .resources import ResourceResolver
from .tools import ToolRegistry
from .transport import StdioTransport, Transport


logger = logging.getLogger(__name__)

SERVER_NAME = "docu-mcp"
SERVER_VERSION = "0.1.0"

SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18", "2025-11-25")

INITIALIZED_NOTIFICATIONS = ("initialized", "notifications/initialized")


@dataclass
class ServerConfig:
    """Configuration for MCP server."""
    name: str = SERVER_NAME
    version: str = SERVER_VERSION
    protocol_versions: Tuple[str, ...] = SUPPORTED_PROTOCOL_VERSIONS
    config_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """Build a config from DOCU_MCP_CONFIG and DOCU_MCP_LOG_LEVEL."""
        environ = os.environ if environ is None else environ
        return cls(
            config_path=environ.get("DOCU_MCP_CONFIG") or None,
            log_level=environ.get("DOCU_MCP_LOG_LEVEL", "INFO").upper(),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "protocol_versions": list(self.protocol_versions),
            "config_path": self.config_path,
        }


@dataclass
class Session:
    """Handshake state of the one client connection."""
    initialized: bool = False


class RequestError(Exception):
    """Raised by a request handler to answer with a specific error."""

    def __init__(self, code: MCPErrorCode, message: str, data: Any = None):
        super().__init__(message)
        self.error = MCPError.from_code(code, message, data)


class MCPServer:
    """
    MCP Server that handles the session lifecycle and request dispatch.

    Requests are processed strictly one at a time. Recoverable failures of
    any kind are answered with an error response; only transport failures
    escape :meth:`run`.
    """

    # Methods that need a completed initialize handshake.
    REQUIRES_INIT = frozenset({
        "tools/list",
        "tools/call",
        "resources/list",
        "resources/read",
    })

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        store: Optional[ConfigStore] = None,
        registry: Optional[ToolRegistry] = None,
        resolver: Optional[ResourceResolver] = None,
    ):
        self.config = config or ServerConfig()
        self.store = store or FileConfigStore(self.config.config_path)
        self.registry = registry or ToolRegistry.create_default(self.store)
        self.resolver = resolver or ResourceResolver(self.store)
        self.session = Session()

        self._handlers: Dict[str, Callable[[Any], Any]] = {
            "initialize": self._handle_initialize,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
            "resources/list": self._handle_list_resources,
            "resources/read": self._handle_read_resource,
        }

    @property
    def initialized(self) -> bool:
        return self.session.initialized

    def _handle_initialize(self, params: Any) -> dict:
        """Handle initialize request."""
        if self.session.initialized:
            raise RequestError(MCPErrorCode.ALREADY_INITIALIZED, "Already initialized")

        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise RequestError(
                MCPErrorCode.REQUEST_FAILED,
                "Failed to parse initialize params: params must be an object",
            )

        version = params.get("protocolVersion")
        if not isinstance(version, str):
            raise RequestError(
                MCPErrorCode.REQUEST_FAILED,
                "Failed to parse initialize params: missing field protocolVersion",
            )

        supported = self.config.protocol_versions
        if version not in supported:
            raise RequestError(
                MCPErrorCode.UNSUPPORTED_PROTOCOL_VERSION,
                f"Unsupported protocol version: {version}. "
                f"Supported versions: {', '.join(supported)}",
                data={"supported": list(supported)},
            )

        client_info = params.get("clientInfo")
        if isinstance(client_info, dict):
            logger.info(
                "Client connected: %s %s",
                client_info.get("name", "unknown"),
                client_info.get("version", ""),
            )

        self.session.initialized = True
        logger.info("Session initialized with protocol version %s", version)

        return {
            "protocolVersion": version,
            "capabilities": {
                "tools": {"listChanged": True},
                "resources": {"subscribe": True, "listChanged": True},
            },
            "serverInfo": {
                "name": self.config.name,
                "version": self.config.version,
            },
        }

    def _handle_list_tools(self, params: Any) -> dict:
        """Handle tools/list request."""
        return {
            "tools": [t.to_dict() for t in self.registry.list_tools()],
        }

    def _handle_call_tool(self, params: Any) -> dict:
        """Handle tools/call request."""
        if not isinstance(params, dict):
            raise RequestError(MCPErrorCode.REQUEST_FAILED, "Missing params for tools/call")

        name = params.get("name")
        if not isinstance(name, str):
            raise RequestError(MCPErrorCode.REQUEST_FAILED, "Missing tool name")

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}

        if self.registry.get(name) is None:
            raise RequestError(
                MCPErrorCode.METHOD_NOT_FOUND,
                f"Unknown tool: {name}",
                data={"tool": name},
            )

        result = self.registry.execute(name, arguments)

        if not result.success:
            logger.error("Tool '%s' failed: %s", name, result.error)
            raise RequestError(
                MCPErrorCode.REQUEST_FAILED,
                f"Request failed: {result.error}",
                data=result.error,
            )

        return {
            "content": [
                {"type": "text", "text": result.to_text()}
            ],
        }

    def _handle_list_resources(self, params: Any) -> dict:
        """Handle resources/list request."""
        try:
            resources = self.resolver.list()
        except NoActiveDirectoryError:
            # Clients may list resources before any directory is chosen.
            return {"resources": []}
        except DocuMCPError as e:
            chain = error_chain(e)
            logger.error("Failed to list resources: %s", chain)
            raise RequestError(
                MCPErrorCode.REQUEST_FAILED,
                f"Failed to list resources: {chain}",
                data=chain,
            ) from e

        return {"resources": [r.to_dict() for r in resources]}

    def _handle_read_resource(self, params: Any) -> dict:
        """Handle resources/read request."""
        if not isinstance(params, dict):
            raise RequestError(MCPErrorCode.REQUEST_FAILED, "Missing params for resources/read")

        uri = params.get("uri")
        if not isinstance(uri, str):
            raise RequestError(MCPErrorCode.REQUEST_FAILED, "Missing URI")

        try:
            content = self.resolver.read(uri)
        except DocuMCPError as e:
            chain = error_chain(e)
            logger.error("Failed to read resource %s: %s", uri, chain)
            raise RequestError(
                MCPErrorCode.REQUEST_FAILED,
                f"Failed to read resource: {chain}",
                data={"uri": uri, "error": chain},
            ) from e

        return {"contents": [content.to_dict()]}

    def process_request(self, request: MCPRequest) -> MCPResponse:
        """Process a single MCP request."""
        handler = self._handlers.get(request.method)

        if handler is None:
            error = MCPError.from_code(
                MCPErrorCode.METHOD_NOT_FOUND,
                f"Unknown method: {request.method}",
            )
            return MCPResponse.failure(request.id, error)

        if request.method in self.REQUIRES_INIT and not self.session.initialized:
            error = MCPError.from_code(MCPErrorCode.NOT_INITIALIZED, "Not initialized")
            return MCPResponse.failure(request.id, error)

        try:
            return MCPResponse.success(request.id, handler(request.params))
        except RequestError as e:
            return MCPResponse.failure(request.id, e.error)
        except DocuMCPError as e:
            chain = error_chain(e)
            logger.error("Request '%s' failed: %s", request.method, chain)
            error = MCPError.from_code(
                MCPErrorCode.REQUEST_FAILED,
                f"Request failed: {chain}",
                data=chain,
            )
            return MCPResponse.failure(request.id, error)
        except Exception as e:
            logger.exception("Unexpected error processing '%s'", request.method)
            chain = error_chain(e)
            error = MCPError.from_code(
                MCPErrorCode.REQUEST_FAILED,
                f"Request failed: {chain}",
                data=chain,
            )
            return MCPResponse.failure(request.id, error)

    def handle_notification(self, notification: MCPNotification) -> None:
        """Handle a notification. Never produces a response."""
        if notification.method in INITIALIZED_NOTIFICATIONS:
            if not self.session.initialized:
                logger.error(
                    "Notification '%s' failed: received initialized "
                    "notification before initialize request",
                    notification.method,
                )
                return
            logger.info("Client initialized")
            return

        logger.debug("Ignoring unknown notification: %s", notification.method)

    def handle_message(self, raw: Union[str, bytes]) -> Optional[MCPResponse]:
        """Handle one raw message. Returns None for notifications."""
        try:
            message = parse_message(raw)
        except MessageParseError as e:
            logger.error("Failed to parse JSON-RPC message: %s", e)
            error = MCPError.from_code(MCPErrorCode.PARSE_ERROR, "Parse error", data=str(e))
            return MCPResponse.failure(None, error)
        except InvalidRequestError as e:
            logger.error("%s", e)
            error = MCPError.from_code(MCPErrorCode.INVALID_REQUEST, str(e))
            return MCPResponse.failure(e.id if e.has_id else None, error)

        if isinstance(message, MCPRequest):
            return self.process_request(message)

        try:
            self.handle_notification(message)
        except Exception:
            logger.exception("Notification '%s' failed", message.method)
        return None

    def handle_line(self, raw: Union[str, bytes]) -> Optional[str]:
        """
        Handle one input line and return the serialized response, if any.

        Blank lines are skipped.
        """
        if not raw.strip():
            return None

        response = self.handle_message(raw)
        if response is None:
            return None
        return response.to_json()

    def run(self, transport: Optional[Transport] = None) -> None:
        """
        Run the server main loop until EOF.

        Raises:
            TransportError: reading or writing the stream failed.
        """
        transport = transport or StdioTransport()

        logger.info("MCP Server %s v%s starting", self.config.name, self.config.version)

        with transport:
            while True:
                line = transport.receive()
                if line is None:
                    logger.info("EOF received, shutting down")
                    break

                response = self.handle_line(line)
                if response is not None:
                    transport.send(response)

        logger.info("Server stopped")


def create_server(
    config: Optional[ServerConfig] = None,
    store: Optional[ConfigStore] = None,
    extractors: Optional[Mapping[str, TextExtractor]] = None,
) -> MCPServer:
    """
    Create an MCP server with its collaborators wired together.

    Args:
        config: Server configuration
        store: Config store; defaults to the JSON file store
        extractors: Extension to extractor table; defaults to PDF only

    Returns:
        Configured MCPServer instance
    """
    config = config or ServerConfig()
    store = store or FileConfigStore(config.config_path)

    return MCPServer(
        config=config,
        store=store,
        registry=ToolRegistry.create_default(store, extractors),
        resolver=ResourceResolver(store, extractors),
    )
