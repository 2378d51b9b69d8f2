# -*- coding: utf-8 -*-
"""
Command line entry point.

Usage:
    python -m hydro.cli serve [--host 127.0.0.1] [--port 8000] [--reload]
    python -m hydro.cli init-db
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API with uvicorn."""
    import uvicorn

    from .logging_setup import setup_logging

    setup_logging()
    uvicorn.run("hydro.api:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create the SQLite tables."""
    from .app_db import init_app_db
    from .config import settings

    init_app_db(settings.db_path)
    print(f"Initialized database: {settings.db_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="hydro", description="Hydration tracking backend")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve_parser.set_defaults(func=cmd_serve)

    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(func=cmd_init_db)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
