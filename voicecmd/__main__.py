"""Command line entry: serve the HTTP surface or probe backends."""

from __future__ import annotations

import argparse
import json

from .errors import BackendUnavailable
from .recognition.selector import BackendSelector
from .settings import configure_logging, get_settings


def main() -> int:
    parser = argparse.ArgumentParser(prog="voicecmd", description="Voice command recognition pipeline.")
    sub = parser.add_subparsers(dest="command", required=True)
    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    sub.add_parser("probe", help="Select a recognition backend and print the outcome.")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    if args.command == "serve":
        import uvicorn

        from .api.app import create_app

        uvicorn.run(create_app(settings), host=args.host, port=args.port)
        return 0

    selector = BackendSelector.from_settings(settings)
    try:
        backend = selector.select()
    except BackendUnavailable as exc:
        print(json.dumps({"active": False, "error": str(exc)}))
        return 1
    print(json.dumps({"active": True, **backend.describe(), "failures": selector.failures}))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
