#!/usr/bin/env python
"""
Run the quote API with uvicorn.

Usage:
    python scripts/run_api.py [--port 8000] [--catalog-root PATH] [--no-reload]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the Field Quote API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--catalog-root", help="Directory holding one catalog per tenant")
    parser.add_argument("--no-reload", action="store_true")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    env = os.environ.copy()
    if args.catalog_root:
        env["FIELD_QUOTE_CATALOG_ROOT"] = str(Path(args.catalog_root).resolve())

    cmd = [
        sys.executable, "-m", "uvicorn",
        "field_quote.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if not args.no_reload:
        cmd.append("--reload")

    print(f"Starting Field Quote API on {args.host}:{args.port}...")
    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
