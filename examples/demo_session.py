#!/usr/bin/env python3
"""
Demo: docu-mcp session

Drives an in-process server through the MCP handshake, points it at a
directory and lists and reads the PDF documents found there.

Usage: python examples/demo_session.py /path/to/pdfs
"""

import json
import sys
import tempfile

from docu_mcp import FileConfigStore, ServerConfig, create_server


def send(server, message):
    print(f">>> {json.dumps(message)}")
    response = server.handle_line(json.dumps(message))
    if response is None:
        print("<<< (no response)")
        return None
    decoded = json.loads(response)
    print(f"<<< {json.dumps(decoded, indent=2)[:800]}")
    return decoded


def main():
    if len(sys.argv) != 2:
        print(__doc__)
        return 2

    with tempfile.TemporaryDirectory() as config_dir:
        store = FileConfigStore(f"{config_dir}/config.json")
        server = create_server(ServerConfig(), store=store)

        send(server, {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {
                "protocolVersion": "2024-11-05",
                "clientInfo": {"name": "demo", "version": "0.1"},
            },
        })
        send(server, {"jsonrpc": "2.0", "method": "notifications/initialized"})
        send(server, {
            "jsonrpc": "2.0",
            "id": 2,
            "method": "tools/call",
            "params": {
                "name": "set_document_directory",
                "arguments": {"directory": sys.argv[1]},
            },
        })

        listing = send(server, {"jsonrpc": "2.0", "id": 3, "method": "resources/list"})
        resources = (listing or {}).get("result", {}).get("resources", [])
        for i, resource in enumerate(resources[:3], start=4):
            send(server, {
                "jsonrpc": "2.0",
                "id": i,
                "method": "resources/read",
                "params": {"uri": resource["uri"]},
            })

    return 0


if __name__ == "__main__":
    sys.exit(main())
