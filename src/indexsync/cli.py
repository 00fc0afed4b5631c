"""CLI entry point for the indexsync server."""

from __future__ import annotations

import argparse
import os
import socket
import sys
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="indexsync",
        description="indexsync — Product store with a mirrored full-text search index",
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument("--host", type=str, default=None, help="Server bind address (overrides config)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Server port (overrides config)")
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Number of worker processes (the in-memory store is per process)",
    )
    parser.add_argument(
        "--index-adapter",
        choices=["memory", "opensearch"],
        default=None,
        help="Search index backend (overrides config)",
    )
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument("--version", action="version", version=f"indexsync {_get_version()}")
    return parser


def main() -> None:
    """Main CLI entry point for the indexsync server."""
    args = _build_parser().parse_args()

    from indexsync.config.settings import CONFIG_ENV_VAR, Settings
    from indexsync.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        # The app factory runs in the server process and re-reads this path
        os.environ[CONFIG_ENV_VAR] = str(config_path.resolve())
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Overrides the server process must also see go through the environment
    if args.index_adapter:
        settings.index.adapter = args.index_adapter
        os.environ["INDEXSYNC_INDEX__ADAPTER"] = args.index_adapter
    if args.log_level:
        settings.observability.log_level = args.log_level
        os.environ["INDEXSYNC_OBSERVABILITY__LOG_LEVEL"] = args.log_level
    host = args.host or settings.server.host
    port = args.port or settings.server.port
    workers = args.workers or settings.server.workers

    setup_logging(settings.observability)
    _check_port(host, port)

    import uvicorn

    uvicorn.run(
        "indexsync.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        workers=1 if args.reload else workers,
        reload=args.reload,
        log_level=settings.observability.log_level.lower(),
        log_config=None,
    )


def _check_port(host: str, port: int) -> None:
    """Exit with a readable message if the port is already taken."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host if host != "0.0.0.0" else "127.0.0.1", port))
    except OSError as e:
        print(f"Error: cannot bind {host}:{port} ({e.strerror}).", file=sys.stderr)
        print(f"  Run 'lsof -i :{port}' to find the process using it, or pass --port.", file=sys.stderr)
        sys.exit(1)
    finally:
        sock.close()


def _get_version() -> str:
    from indexsync import __version__

    return __version__


if __name__ == "__main__":
    main()
