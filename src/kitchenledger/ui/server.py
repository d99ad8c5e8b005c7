"""
kitchenledger.ui.server
~~~~~~~~~~~~~~~~~~~~~~~
Uvicorn launcher for the kitchenledger HTTP API.

Called by the CLI via ``kitchenledger --ui`` or directly::

    python -m kitchenledger.ui.server
    python -m kitchenledger.ui.server --port 8080
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def launch(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    reload: bool = False,
    log_level: str = "warning",
) -> None:
    """
    Start the kitchenledger API server.

    Args:
        host:      Bind address (default 127.0.0.1).
        port:      TCP port (default 8000).
        reload:    Enable uvicorn hot-reload (dev mode only).
        log_level: Uvicorn log level.
    """
    url = f"http://{host}:{port}"
    print(f"\n  kitchenledger API  →  {url}")
    print(f"  API docs           →  {url}/docs")
    print("  Press Ctrl+C to stop.\n")

    uvicorn.run(
        "kitchenledger.ui.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Start the kitchenledger API server.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--host",       default=DEFAULT_HOST,
                   help="Bind address.")
    p.add_argument("--port", "-p", default=DEFAULT_PORT, type=int,
                   help="TCP port.")
    p.add_argument("--reload",     action="store_true",
                   help="Enable hot-reload (development mode).")
    p.add_argument("--log-level",  default="warning",
                   choices=["debug", "info", "warning", "error"],
                   help="Uvicorn log level.")
    return p


def main() -> None:
    args = _build_parser().parse_args()
    logging.basicConfig(level=logging.WARNING)
    launch(
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
