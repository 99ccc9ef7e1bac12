"""
Command line entry point: serve MCP over stdin/stdout.

Logging goes to stderr; stdout carries protocol messages only.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .errors import error_chain
from .server import ServerConfig, create_server
from .transport import TransportError


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docu-mcp",
        description="MCP server exposing document directories and text extraction over stdio",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path of the JSON config file (default: platform config dir, or $DOCU_MCP_CONFIG)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Diagnostic log level (default: $DOCU_MCP_LOG_LEVEL or INFO)",
    )
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = ServerConfig.from_env()
    if args.config:
        config.config_path = args.config
    if args.log_level:
        config.log_level = args.log_level

    setup_logging(config.log_level)

    server = create_server(config)
    logger.debug("Using config store %r", server.store)

    try:
        server.run()
    except TransportError as e:
        logger.critical("Server crashed: %s", error_chain(e), exc_info=True)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130

    return 0
