#!/usr/bin/env python3
"""
Fleet & Waste Analytics — launch the API server.

Usage:
    python main.py                          # http://localhost:8000/docs
    python main.py --port 9000              # http://localhost:9000/docs
    python main.py --host 127.0.0.1         # bind to localhost only
    python main.py --source ./sheets.xlsx   # load a workbook instead of the published sheets
    python main.py --source ./csv_dir       # load <dataset>.csv files from a directory
    python main.py --reload                 # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import sys
import webbrowser
from pathlib import Path


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Launch the Fleet & Waste Analytics API.",
    )
    parser.add_argument(
        "--host", default="0.0.0.0",
        help="Bind address (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("APP_PORT", "8000")),
        help="Port to listen on (default: 8000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--source", default=None,
        help="'remote', a directory of CSV files, or an .xlsx workbook "
             "(default: remote or APP_DATA_SOURCE env var)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Don't open the API docs in a browser automatically",
    )
    args = parser.parse_args()

    # The app reads its configuration from the environment at import time
    if args.source is not None:
        os.environ["APP_DATA_SOURCE"] = args.source

    source = os.getenv("APP_DATA_SOURCE", "remote")
    if source != "remote" and not Path(source).expanduser().exists():
        print(f"Error: data source not found: {source}")
        print("  Pass --source remote, a directory of CSV files, or an .xlsx workbook")
        sys.exit(1)

    import uvicorn

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}/docs"
    print(f"Starting Fleet & Waste Analytics at {url}")
    print(f"Data source: {source}")
    print()

    if not args.no_browser:
        # Open browser after a short delay to let the server start
        import threading
        threading.Timer(1.5, webbrowser.open, args=(url,)).start()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
