"""Per-connection broadcast of the JSON sources over a WebSocket.

Every connection gets its own BroadcastSession and its own ChangeWatcher.
Nothing is shared between sessions, so a failing watcher or socket only
affects its own client.
"""

import asyncio
import json
import os
import sys

from websockets.asyncio.server import serve as ws_serve
from websockets.exceptions import ConnectionClosed, ConnectionClosedError
from websockets.protocol import State

from .change_watcher import ChangeWatcher
from .errors import SourceNotFound, SourceParseError, SourceReadError, TransportError
from .models import SOURCES_BY_NAME, Payload, ServerConfig
from .source_reader import read_source


class BroadcastSession:
    """Send every source on connect, then re-send whichever source changes."""

    def __init__(self, connection, config: ServerConfig, watcher_factory=ChangeWatcher):
        self.connection = connection
        self.config = config
        self.watcher = watcher_factory(config.source_paths(), config.debounce_ms)
        self._sources = {source.name: source for source in config.sources}
        self._watch_task = None

    async def run(self):
        """Serve this client until the connection goes away."""
        try:
            await self.send_initial()
            self._watch_task = asyncio.create_task(self._watch())
            # Clients never send application messages; drain until close
            async for _ in self.connection:
                pass
        except ConnectionClosedError as e:
            print(f"[WS] {TransportError(e)}", file=sys.stderr)
        finally:
            await self.close()

    async def send_initial(self):
        for source in self._sources.values():
            await self.publish(source.path_in(self.config.json_dir))

    async def _watch(self):
        async for event in self.watcher.events():
            name = os.path.basename(event.path)
            if event.kind == 'add':
                print(f"File {name} has been added.")
            else:
                print(f"File {name} has changed.")
            await self.publish(event.path)

    async def publish(self, path: str):
        """Read one source and push it to the client.

        Missing, unreadable or malformed sources are logged and not sent,
        except a missing comments file, which is sent as an empty list.
        """
        name = os.path.basename(path)
        source = self._sources.get(name) or SOURCES_BY_NAME.get(name)
        if source is None:
            return

        try:
            data = await asyncio.to_thread(read_source, path)
        except SourceNotFound:
            print(f"{name} not found, skipping.")
            if source.kind == 'comments':
                await self.send(Payload('comments', []))
            return
        except (SourceReadError, SourceParseError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return

        if await self.send(Payload(source.kind, data)):
            print(f"Sent {name} data to client.")

    async def send(self, payload: Payload) -> bool:
        """Send a payload if the connection is open. Returns whether it was sent."""
        if self.connection.state is not State.OPEN:
            return False
        try:
            await self.connection.send(json.dumps(payload.to_message()))
        except ConnectionClosed:
            return False
        return True

    async def close(self):
        """Stop this session's watcher. Safe to call more than once."""
        self.watcher.close()
        task, self._watch_task = self._watch_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                print(f"Error: watcher for client failed: {e}", file=sys.stderr)


async def serve(config: ServerConfig, watcher_factory=ChangeWatcher):
    """Run the live score feed until cancelled."""

    async def handler(connection):
        print(f"[WS] Client connected ({connection.remote_address})")
        session = BroadcastSession(connection, config, watcher_factory)
        await session.run()
        print("[WS] Client disconnected")

    async with ws_serve(handler, config.host, config.port) as server:
        print(f"[WS] Server listening on ws://{config.host}:{config.port}")
        print(f"Watching for JSON changes in: {os.path.abspath(config.json_dir)}")
        await server.serve_forever()
