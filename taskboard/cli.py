from __future__ import annotations

import argparse
import os
import sys

import uvicorn

from taskboard.observability import get_json_logger


def _default_port() -> int:
    raw = os.getenv("TASKBOARD_PORT", "8000").strip()
    try:
        return int(raw)
    except Exception:
        return 8000


def serve(host: str, port: int) -> None:
    # Import late so `taskboard client` never builds the server app
    from taskboard.api.asgi import app

    server = uvicorn.Server(
        uvicorn.Config(app, host=host, port=port, log_level=os.getenv("LOG_LEVEL", "info").lower())
    )
    server.run()


def check_ready() -> int:
    """Connect to the store once and report. Returns 0 when reachable."""
    from taskboard.store.connector import get_connector

    result = get_connector().ensure_connected()
    if result.ok:
        get_json_logger("taskboard").info("store ready", extra={"event": "store_ready"})
        return 0
    sys.stderr.write(f"store unavailable: {result.error}\n")
    return 1


def launch_client(argv: list[str] | None = None) -> None:
    from taskboard.client.cli import main as client_main

    client_main(argv)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser("taskboard")
    sub = parser.add_subparsers(dest="cmd")

    p_serve = sub.add_parser("serve", help="Run the task API with uvicorn")
    p_serve.add_argument("--host", default=os.getenv("TASKBOARD_HOST", "127.0.0.1"))
    p_serve.add_argument("--port", type=int, default=_default_port())

    sub.add_parser("ready", help="Check that the configured store is reachable")

    # Remaining args pass through to the client (e.g. --base-url)
    sub.add_parser("client", help="Launch the interactive task client")

    args, extra = parser.parse_known_args(argv)
    cmd = str(getattr(args, "cmd", None) or "")

    if cmd == "serve":
        serve(str(args.host), int(args.port))
        return

    if cmd == "ready":
        raise SystemExit(check_ready())

    if cmd == "client":
        launch_client(extra)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
