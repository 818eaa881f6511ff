#!/usr/bin/env python3
"""CLI entry point for the live score feed.

Usage:
    python serve_scores.py --json-dir "JSON Files" --port 3000
"""

import argparse
import asyncio
import os
import sys

# Add parent directory to path for imports (skip when frozen by PyInstaller)
if not getattr(sys, 'frozen', False):
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bandscores.core.broadcast import serve
from bandscores.core.models import ServerConfig


def main():
    parser = argparse.ArgumentParser(description='Push band score JSON files to dashboard clients')
    parser.add_argument('--json-dir', default='JSON Files',
                        help='Directory holding the score JSON files')
    parser.add_argument('--host', default='localhost', help='Interface to listen on')
    parser.add_argument('--port', type=int, default=int(os.environ.get('PORT', 3000)),
                        help='Port to listen on (default: $PORT or 3000)')
    parser.add_argument('--debounce', type=int, default=300,
                        help='Milliseconds to group file changes before re-sending')

    args = parser.parse_args()

    config = ServerConfig(
        json_dir=args.json_dir,
        host=args.host,
        port=args.port,
        debounce_ms=args.debounce,
    )

    if not os.path.isdir(config.json_dir):
        print(f"Warning: JSON directory not found: {config.json_dir}")

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == '__main__':
    main()
