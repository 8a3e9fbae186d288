"""
Command-line entry point for the Agent Standards MCP Server.

Usage:
    agent-standards-mcp [--config PATH] [--folder DIR] [--log-level LEVEL]
    python -m agent_standards_mcp --version
"""

from __future__ import annotations

import asyncio
import signal
import sys

import yaml
from pydantic import ValidationError

from agent_standards_mcp import __version__
from agent_standards_mcp.audit import AuditLogger, set_audit_logger
from agent_standards_mcp.config import ConfigError, load_config, prepare_standards_folder
from agent_standards_mcp.logging import get_logger, setup_logging
from agent_standards_mcp.server import MCPServer, create_server

logger = get_logger(__name__)

STARTUP_CLIENT_ID = "startup"


async def run_server(server: MCPServer) -> None:
    """
    Run the server until stdin closes or a shutdown signal arrives.

    Args:
        server: The server to run.
    """
    loop = asyncio.get_event_loop()
    task = asyncio.create_task(server.run())

    def signal_handler() -> None:
        logger.info("Received shutdown signal")
        server.stop()
        task.cancel()

    try:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler)
    except (ValueError, NotImplementedError):
        # Signal handling not supported on this platform
        pass

    try:
        await task
    except asyncio.CancelledError:
        logger.info("Server task cancelled")


def main(argv: list[str] | None = None) -> int:
    """
    Start the server.

    Args:
        argv: Command-line arguments. If None, uses sys.argv.

    Returns:
        Process exit code.
    """
    # Errors raised before the configuration is known still reach stderr
    setup_logging(level="ERROR")

    try:
        config = load_config(cli_args=argv)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        return 1

    try:
        folder = prepare_standards_folder(config.standards)
    except ConfigError as e:
        logger.error("Invalid standards folder", extra={"error": str(e)})
        return 1

    setup_logging(config)

    audit_logger = AuditLogger.from_config(config.logging)
    set_audit_logger(audit_logger)
    audit_logger.log_client_request(
        STARTUP_CLIENT_ID, "startup", {"version": __version__}
    )

    logger.info(
        "Starting agent standards MCP server",
        extra={
            "version": __version__,
            "folder": str(folder),
            "max_standards": config.standards.max_standards,
            "max_standard_size": config.standards.max_standard_size,
        },
    )

    server = create_server(config, audit=audit_logger)
    asyncio.run(run_server(server))
    return 0


if __name__ == "__main__":
    sys.exit(main())
