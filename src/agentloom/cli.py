"""Command-line interface for agentloom."""

import argparse
import sys

import uvicorn

from agentloom import __version__


def main(args: list[str] | None = None) -> int:
    """Run the agentloom server.

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        prog="agentloom",
        description="agentloom - Agent execution and evolution engine",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Uvicorn log level (application logging follows LOG_LEVEL)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parsed = parser.parse_args(args)

    print(f"Starting agentloom server at http://{parsed.host}:{parsed.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "agentloom.server.app:app",
        host=parsed.host,
        port=parsed.port,
        reload=parsed.reload,
        log_level=parsed.log_level,
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
