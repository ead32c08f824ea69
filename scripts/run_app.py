#!/usr/bin/env python
"""
Run the Streamlit quote builder.

Usage:
    python scripts/run_app.py [--port 8501] [--catalog-root PATH] [--tenant NAME] [--headless]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
UI_PATH = PROJECT_ROOT / 'src' / 'field_quote' / 'ui' / 'app_streamlit.py'


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the Field Quote Streamlit UI")
    parser.add_argument("--port", type=int, default=8501)
    parser.add_argument("--catalog-root", help="Directory holding one catalog per tenant")
    parser.add_argument("--tenant", help="Tenant selected when the page opens")
    parser.add_argument("--headless", action="store_true", help="Do not open a browser")
    return parser.parse_args(argv)


def build_command(args) -> tuple[list[str], dict]:
    """Streamlit command line and environment for ``args``."""
    env = os.environ.copy()
    if args.catalog_root:
        env["FIELD_QUOTE_CATALOG_ROOT"] = str(Path(args.catalog_root).resolve())
    if args.tenant:
        env["FIELD_QUOTE_DEFAULT_TENANT"] = args.tenant

    cmd = [
        sys.executable, "-m", "streamlit", "run", str(UI_PATH),
        "--server.port", str(args.port),
    ]
    if args.headless:
        cmd += ["--server.headless", "true"]
    return cmd, env


def main(argv=None):
    args = parse_args(argv)
    if not UI_PATH.exists():
        print(f"ERROR: UI module not found at {UI_PATH}")
        sys.exit(1)

    cmd, env = build_command(args)
    print(f"Starting quote builder on port {args.port}...")
    try:
        subprocess.run(cmd, cwd=str(PROJECT_ROOT), env=env)
    except KeyboardInterrupt:
        print("\nQuote builder stopped.")


if __name__ == "__main__":
    main()
