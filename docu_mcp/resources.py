"""
MCP resources: documents in the active directory, addressed as
``<extension>://<filename>``.

Resources are derived from the directory contents on every call; nothing
is cached.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .config import ConfigStore
from .errors import (
    DirectoryReadError,
    MalformedURIError,
    NoActiveDirectoryError,
    NotAFilePathError,
    PathNotFoundError,
    TraversalError,
)
from .extractors import (
    DEFAULT_EXTRACTORS,
    TextExtractor,
    extract_file,
    file_extension,
    get_extractor,
    get_mime_type,
)


logger = logging.getLogger(__name__)


@dataclass
class Resource:
    """A listed document."""
    uri: str
    name: str
    description: Optional[str] = None
    mime_type: Optional[str] = None

    def to_dict(self) -> dict:
        result = {"uri": self.uri, "name": self.name}
        if self.description is not None:
            result["description"] = self.description
        if self.mime_type is not None:
            result["mimeType"] = self.mime_type
        return result


@dataclass
class ResourceContent:
    """Extracted text of one resource."""
    uri: str
    text: str
    mime_type: Optional[str] = None

    def to_dict(self) -> dict:
        result = {"uri": self.uri, "text": self.text}
        if self.mime_type is not None:
            result["mimeType"] = self.mime_type
        return result


def _is_within(path: str, directory: str) -> bool:
    try:
        return os.path.commonpath([path, directory]) == directory
    except ValueError:
        # Different drives on Windows.
        return False


class ResourceResolver:
    """
    Lists and reads resources under the active directory.

    Reads are confined to the active directory: the requested filename is
    resolved and canonicalized (symlinks included) and must stay below the
    canonical active directory before anything is opened.
    """

    def __init__(
        self,
        store: ConfigStore,
        extractors: Optional[Mapping[str, TextExtractor]] = None,
    ):
        self.store = store
        self.extractors = extractors if extractors is not None else DEFAULT_EXTRACTORS

    @property
    def schemes(self) -> List[str]:
        return [f"{ext}://" for ext in self.extractors]

    def parse_uri(self, uri: str) -> str:
        """
        Return the filename part of ``uri``.

        Raises:
            MalformedURIError: unknown scheme or empty filename.
        """
        for scheme in self.schemes:
            if uri.startswith(scheme):
                filename = uri[len(scheme):]
                if not filename:
                    raise MalformedURIError(f"URI contains no filename: {uri}")
                if "\x00" in filename:
                    raise MalformedURIError(f"URI contains a null byte: {uri!r}")
                return filename

        raise MalformedURIError(
            f"Invalid URI format. Expected one of: {', '.join(self.schemes)}, got: {uri}"
        )

    def _active_directory(self) -> str:
        config = self.store.load()
        if not config.active_directory:
            raise NoActiveDirectoryError()

        active_dir = config.active_directory
        if not os.path.isdir(active_dir):
            raise PathNotFoundError(f"Active directory does not exist: {active_dir}")
        return active_dir

    def resolve(self, uri: str) -> str:
        """
        Map a resource URI to a canonical file path inside the active directory.

        Raises:
            MalformedURIError, NoActiveDirectoryError, TraversalError,
            PathNotFoundError, NotAFilePathError
        """
        filename = self.parse_uri(uri)
        active_dir = self._active_directory()

        canonical_dir = os.path.realpath(active_dir)
        candidate = os.path.join(active_dir, filename)
        canonical_file = os.path.realpath(candidate)

        if canonical_file == canonical_dir or not _is_within(canonical_file, canonical_dir):
            logger.warning("Rejected resource outside active directory: %s", uri)
            raise TraversalError(
                f"File is not in active directory (security check failed): {filename}"
            )

        if not os.path.exists(canonical_file):
            raise PathNotFoundError(
                f"File not found in active directory: {filename}. "
                f"Active directory: {active_dir}"
            )

        if not os.path.isfile(canonical_file):
            raise NotAFilePathError(f"Path is not a file: {filename}")

        return canonical_file

    def list(self) -> List[Resource]:
        """
        List supported documents directly inside the active directory,
        sorted by filename.
        """
        active_dir = self._active_directory()

        resources = []
        try:
            with os.scandir(active_dir) as entries:
                for entry in entries:
                    ext = file_extension(entry.name)
                    if ext is None or ext.lower() not in self.extractors:
                        continue
                    if not entry.is_file():
                        continue

                    ext = ext.lower()
                    resources.append(Resource(
                        uri=f"{ext}://{entry.name}",
                        name=entry.name,
                        description=f"Document: {entry.name}",
                        mime_type=get_mime_type(ext),
                    ))
        except OSError as e:
            raise DirectoryReadError(f"Failed to read active directory: {active_dir}") from e

        resources.sort(key=lambda r: r.name)
        return resources

    def read(self, uri: str) -> ResourceContent:
        """Resolve ``uri`` and extract its text."""
        path = self.resolve(uri)
        extractor = get_extractor(path, self.extractors)

        text = extract_file(path, extractor)

        ext = file_extension(path)
        return ResourceContent(
            uri=uri,
            text=text,
            mime_type=get_mime_type(ext) if ext else None,
        )
