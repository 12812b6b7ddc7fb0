#!/usr/bin/env python3
"""
Start the Goldboard Admin API under uvicorn.

    python run_api.py
    python run_api.py --port 9000 --debug
    python run_api.py --api-base-url https://admin.example.com
"""

import argparse
import os
import sys

from core.config import Config
from core.constants import API_BASE_URL_ENV
from core.logging_setup import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Goldboard Admin API server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Listen port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes, ignored with --reload (default: 1)",
    )
    parser.add_argument(
        "--api-base-url",
        help=f"Upstream admin API root; overrides config and ${API_BASE_URL_ENV}",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="uvicorn log level (default: info)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="DEBUG application logging (also enabled by logging.debug in the config file)",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Run: pip install uvicorn")
        sys.exit(1)

    # Worker processes build their own Config, so the override travels by env
    if args.api_base_url:
        os.environ[API_BASE_URL_ENV] = args.api_base_url

    config = Config()
    log_file = setup_logging(debug=args.debug or config.debug_logging)

    print(f"Goldboard Admin API on http://{args.host}:{args.port} (docs at /docs)")
    print(f"Upstream: {config.api_base_url}")
    print(f"Log file: {log_file}")

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1 if args.reload else args.workers,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
