"""
Domain failures raised by the resolver, tools, config store and extractors.

The session engine catches these at its dispatch boundary and turns them
into JSON-RPC error responses.
"""

from typing import List, Optional


class DocuMCPError(Exception):
    """Base class for all recoverable domain failures."""


class NoActiveDirectoryError(DocuMCPError):
    """No active directory has been configured yet."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message or "No active directory set. Use set_document_directory tool first."
        )


class PathNotFoundError(DocuMCPError):
    pass


class NotADirectoryPathError(DocuMCPError):
    pass


class NotAFilePathError(DocuMCPError):
    pass


class UnreadableDirectoryError(DocuMCPError):
    pass


class DirectoryReadError(DocuMCPError):
    pass


class ConfigError(DocuMCPError):
    """Base class for config persistence failures."""


class ConfigLoadError(ConfigError):
    pass


class ConfigSaveError(ConfigError):
    pass


class UnsupportedFormatError(DocuMCPError):
    pass


class ExtractionError(DocuMCPError):
    pass


class MalformedURIError(DocuMCPError):
    pass


class TraversalError(DocuMCPError):
    """A resource URI resolved to a path outside the active directory."""


class InvalidArgumentsError(DocuMCPError):
    pass


def error_chain(exc: BaseException) -> str:
    """
    Render an exception and its causes as ``outer: cause: root``.

    Follows ``__cause__`` first, then ``__context__`` unless it was
    suppressed. Repeated messages are collapsed.
    """
    parts: List[str] = []
    seen = set()
    current: Optional[BaseException] = exc

    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current) or type(current).__name__
        if not parts or parts[-1] != text:
            parts.append(text)

        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None

    return ": ".join(parts)
