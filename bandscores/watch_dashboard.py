#!/usr/bin/env python3
"""CLI dashboard client: follow the live score feed and print a summary.

Usage:
    python watch_dashboard.py --url ws://localhost:3000
"""

import argparse
import asyncio
import os
import sys

# Add parent directory to path for imports (skip when frozen by PyInstaller)
if not getattr(sys, 'frozen', False):
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed

from bandscores.core.analysis import summarize
from bandscores.core.data_store import ClientDataStore


RECONNECT_DELAY = 3


def print_summary(store):
    print('\n'.join(summarize(store)))
    print()


async def follow(url: str, store: ClientDataStore):
    """Feed every message into the store, reconnecting when the server goes away."""
    while True:
        try:
            async with connect(url) as ws:
                print("WebSocket connection established.")
                async for message in ws:
                    store.apply_message(message)
        except (ConnectionClosed, OSError) as e:
            print(f"WebSocket error: {e}")
        print(f"WebSocket connection closed. Reconnecting in {RECONNECT_DELAY} seconds...")
        await asyncio.sleep(RECONNECT_DELAY)


def main():
    parser = argparse.ArgumentParser(description='Follow the live band score feed')
    parser.add_argument('--url', default=f"ws://localhost:{os.environ.get('PORT', 3000)}",
                        help='Score feed WebSocket URL')
    parser.add_argument('--band', nargs='+', default=None,
                        help='School names to follow (default: the Orem names)')

    args = parser.parse_args()

    if args.band:
        store = ClientDataStore(band_names=args.band, band_label=args.band[0],
                                on_ready=print_summary)
    else:
        store = ClientDataStore(on_ready=print_summary)

    try:
        asyncio.run(follow(args.url, store))
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == '__main__':
    main()
