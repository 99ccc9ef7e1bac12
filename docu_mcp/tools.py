"""
MCP Tools implementation.

Provides the document directory tools: choosing and listing document
directories, listing directory contents, and extracting text from files.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .config import ConfigStore
from .errors import (
    DirectoryReadError,
    DocuMCPError,
    InvalidArgumentsError,
    NoActiveDirectoryError,
    NotADirectoryPathError,
    NotAFilePathError,
    PathNotFoundError,
    UnreadableDirectoryError,
    error_chain,
)
from .extractors import (
    DEFAULT_EXTRACTORS,
    TextExtractor,
    extract_file,
    file_extension,
    get_extractor,
)
from .protocol import Tool, ToolParameter, ToolResult


logger = logging.getLogger(__name__)

JSON_TYPES = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
}


class BaseTool(ABC):
    """Base class for MCP tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> List[ToolParameter]:
        """Tool parameters."""
        pass

    @abstractmethod
    def execute(self, **kwargs) -> ToolResult:
        """
        Execute the tool with decoded parameters.

        Raises:
            DocuMCPError: the operation failed.
        """
        pass

    def get_definition(self) -> Tool:
        """Get the MCP tool definition."""
        return Tool(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    def decode_arguments(self, arguments: Any) -> Dict[str, Any]:
        """
        Check ``arguments`` against the declared parameters and return the
        keyword arguments for :meth:`execute`. Unknown keys are dropped and
        ``null`` counts as absent. Tools without parameters accept any
        arguments.

        Raises:
            InvalidArgumentsError
        """
        if not self.parameters:
            return {}

        if not isinstance(arguments, dict):
            raise InvalidArgumentsError(
                f"Failed to parse {self.name} params: arguments must be an object"
            )

        decoded = {}
        for param in self.parameters:
            value = arguments.get(param.name)
            if value is None:
                if param.required:
                    raise InvalidArgumentsError(
                        f"Failed to parse {self.name} params: "
                        f"missing required parameter: {param.name}"
                    )
                continue

            expected = JSON_TYPES.get(param.type, (object,))
            # bool is an int subclass; JSON keeps them apart.
            is_bool_mismatch = isinstance(value, bool) and bool not in expected
            if is_bool_mismatch or not isinstance(value, expected):
                raise InvalidArgumentsError(
                    f"Failed to parse {self.name} params: "
                    f"parameter {param.name} must be of type {param.type}"
                )
            decoded[param.name] = value

        return decoded


def _require_directory(path: str) -> None:
    if not os.path.exists(path):
        raise PathNotFoundError(f"Directory does not exist: {path}")
    if not os.path.isdir(path):
        raise NotADirectoryPathError(f"Path is not a directory: {path}")


class SetDocumentDirectoryTool(BaseTool):
    """Validate a directory, remember it and make it active."""

    def __init__(self, store: ConfigStore):
        self.store = store

    @property
    def name(self) -> str:
        return "set_document_directory"

    @property
    def description(self) -> str:
        return (
            "Set the active document directory. Validates directory exists and is "
            "readable, adds to directories list if not present, sets as "
            "active_directory, and saves config."
        )

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="directory",
                type="string",
                description="Path to directory",
                required=True,
            ),
        ]

    def execute(self, directory: str) -> ToolResult:
        _require_directory(directory)

        try:
            os.listdir(directory)
        except OSError as e:
            raise UnreadableDirectoryError(f"Directory is not readable: {directory}") from e

        canonical = os.path.realpath(directory)

        config = self.store.load()
        if config.add_directory(canonical):
            logger.info("Added document directory: %s", canonical)
        config.active_directory = canonical
        self.store.save(config)

        return ToolResult(
            success=True,
            content={
                "message": f"Directory set as active: {canonical}",
                "active_directory": canonical,
            },
            content_type="json",
        )


class ListDocumentDirectoriesTool(BaseTool):
    """Report the known directories and the active one."""

    def __init__(self, store: ConfigStore):
        self.store = store

    @property
    def name(self) -> str:
        return "list_document_directories"

    @property
    def description(self) -> str:
        return "List all document directories and the active directory."

    @property
    def parameters(self) -> List[ToolParameter]:
        return []

    def execute(self) -> ToolResult:
        config = self.store.load()
        return ToolResult(
            success=True,
            content={
                "directories": list(config.directories),
                "active_directory": config.active_directory,
            },
            content_type="json",
        )


class ExtractTextFromFileTool(BaseTool):
    """
    Extract text from any file on disk.

    Unlike resource reads this is not confined to the active directory.
    """

    def __init__(self, extractors: Optional[Mapping[str, TextExtractor]] = None):
        self.extractors = extractors if extractors is not None else DEFAULT_EXTRACTORS

    @property
    def name(self) -> str:
        return "extract_text_from_file"

    @property
    def description(self) -> str:
        return "Extract text from a document file using the appropriate extractor."

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="file_path",
                type="string",
                description="Path to the file to extract text from",
                required=True,
            ),
        ]

    def execute(self, file_path: str) -> ToolResult:
        if not os.path.exists(file_path):
            raise PathNotFoundError(f"File does not exist: {file_path}")
        if not os.path.isfile(file_path):
            raise NotAFilePathError(f"Path is not a file: {file_path}")

        extractor = get_extractor(file_path, self.extractors)
        text = extract_file(file_path, extractor)

        return ToolResult(
            success=True,
            content=text,
            metadata={"path": file_path, "extractor": extractor.extractor_type},
        )


class ListFilesInDirectoryTool(BaseTool):
    """List the direct children of a directory."""

    def __init__(self, store: ConfigStore):
        self.store = store

    @property
    def name(self) -> str:
        return "list_files_in_directory"

    @property
    def description(self) -> str:
        return (
            "List all files and subdirectories in a directory. If no directory "
            "is provided, uses the active directory."
        )

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="directory",
                type="string",
                description="Optional directory path. If not provided, uses the active directory.",
            ),
        ]

    def execute(self, directory: Optional[str] = None) -> ToolResult:
        if directory is None:
            directory = self.store.load().active_directory
            if not directory:
                raise NoActiveDirectoryError(
                    "No active directory set. Use set_document_directory tool "
                    "first, or provide a directory parameter."
                )

        _require_directory(directory)

        files = []
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    files.append({
                        "name": entry.name,
                        "path": os.path.join(directory, entry.name),
                        "is_file": entry.is_file(),
                        "extension": file_extension(entry.name),
                    })
        except OSError as e:
            raise DirectoryReadError(f"Failed to read directory: {directory}") from e

        files.sort(key=lambda f: f["name"])

        return ToolResult(
            success=True,
            content={"directory": directory, "files": files},
            content_type="json",
            metadata={"count": len(files)},
        )


@dataclass
class ToolRegistry:
    """Registry for managing tools. Listing order is registration order."""
    tools: Dict[str, BaseTool] = field(default_factory=dict)

    def register(self, tool: BaseTool) -> None:
        """Register a tool."""
        self.tools[tool.name] = tool

    def get(self, name: str) -> Optional[BaseTool]:
        """Get a tool by name."""
        return self.tools.get(name)

    def list_tools(self) -> List[Tool]:
        """List all registered tools as MCP Tool definitions."""
        return [tool.get_definition() for tool in self.tools.values()]

    def execute(self, name: str, arguments: Any) -> ToolResult:
        """
        Execute a tool by name. Domain failures, including bad arguments,
        come back as an unsuccessful ToolResult.
        """
        tool = self.get(name)
        if tool is None:
            return ToolResult(
                success=False,
                content="",
                error=f"Unknown tool: {name}",
            )

        try:
            params = tool.decode_arguments(arguments)
            return tool.execute(**params)
        except DocuMCPError as e:
            return ToolResult(
                success=False,
                content="",
                error=error_chain(e),
            )

    @classmethod
    def create_default(
        cls,
        store: ConfigStore,
        extractors: Optional[Mapping[str, TextExtractor]] = None,
    ) -> "ToolRegistry":
        """Create a registry with the four document tools."""
        registry = cls()
        registry.register(SetDocumentDirectoryTool(store))
        registry.register(ListDocumentDirectoriesTool(store))
        registry.register(ExtractTextFromFileTool(extractors))
        registry.register(ListFilesInDirectoryTool(store))
        return registry
