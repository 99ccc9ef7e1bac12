"""Shared fixtures: in-memory config store, fake extractor, sample documents."""

import json
from typing import List, Optional

import pytest

from docu_mcp.config import Config, ConfigStore
from docu_mcp.errors import ConfigLoadError, ExtractionError
from docu_mcp.extractors import TextExtractor
from docu_mcp.server import MCPServer, ServerConfig, create_server


class MemoryConfigStore(ConfigStore):
    """Config store that keeps the config in memory."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.loads = 0
        self.saves = 0

    def load(self) -> Config:
        self.loads += 1
        return Config(
            directories=list(self.config.directories),
            active_directory=self.config.active_directory,
        )

    def save(self, config: Config) -> None:
        self.saves += 1
        self.config = Config(
            directories=list(config.directories),
            active_directory=config.active_directory,
        )


class ExplodingConfigStore(ConfigStore):
    """Config store that fails on any access."""

    def load(self) -> Config:
        raise ConfigLoadError("config store must not be touched")

    def save(self, config: Config) -> None:
        raise AssertionError("config store must not be touched")


class FakeExtractor(TextExtractor):
    """Treats file bytes as UTF-8 text; bytes starting with BAD fail."""

    def __init__(self):
        self.calls: List[bytes] = []

    @property
    def extractor_type(self) -> str:
        return "FakeExtractor"

    def extract(self, data: bytes) -> str:
        self.calls.append(data)
        if data.startswith(b"BAD"):
            raise ExtractionError("corrupt document")
        return data.decode("utf-8")


def make_pdf(text: str) -> bytes:
    """Build a one-page PDF showing ``text`` in Helvetica."""
    stream = f"BT /F1 24 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n"
        + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture
def store():
    return MemoryConfigStore()


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def extractors(fake_extractor):
    return {"pdf": fake_extractor}


@pytest.fixture
def docs_dir(tmp_path):
    """A document directory with two PDFs, a text file and a subdirectory."""
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "report.pdf").write_bytes(b"quarterly report")
    (docs / "Alpha.PDF").write_bytes(b"alpha text")
    (docs / "notes.txt").write_text("plain notes")
    (docs / "archive").mkdir()
    return docs


@pytest.fixture
def active_store(docs_dir):
    return MemoryConfigStore(
        Config(directories=[str(docs_dir)], active_directory=str(docs_dir))
    )


@pytest.fixture
def server(store, extractors) -> MCPServer:
    return create_server(ServerConfig(), store=store, extractors=extractors)


def rpc(server: MCPServer, message) -> Optional[dict]:
    """Send one message (dict or raw line) and decode the response."""
    line = message if isinstance(message, (str, bytes)) else json.dumps(message)
    response = server.handle_line(line)
    return None if response is None else json.loads(response)


def initialize(server: MCPServer, version: str = "2024-11-05") -> dict:
    response = rpc(server, {
        "jsonrpc": "2.0",
        "id": 0,
        "method": "initialize",
        "params": {"protocolVersion": version},
    })
    assert "result" in response
    return response
