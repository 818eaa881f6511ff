"""Watch the fixed set of JSON sources for changes.

The directory holding the sources is watched rather than the files themselves,
so a source that does not exist yet still produces an "add" event once it is
created. Only the fixed source names pass the filter. If the directory itself
is missing, its nearest existing parent is watched until it appears.
"""

import asyncio
import os
import sys
from contextlib import aclosing
from dataclasses import dataclass

from watchfiles import Change, awatch


EVENT_NAMES = {
    Change.added: 'add',
    Change.modified: 'change',
}


@dataclass(frozen=True)
class ChangeEvent:
    kind: str                 # "add" or "change"
    path: str


def merge_changes(changes) -> list[ChangeEvent]:
    """One event per path from a watchfiles batch; "add" beats "change".

    An editor save can report added+modified for one path in one batch.
    """
    seen = {}
    for change, path in sorted(changes, key=lambda c: c[0]):
        if change in EVENT_NAMES:
            seen.setdefault(os.path.abspath(path), EVENT_NAMES[change])
    return [ChangeEvent(kind, path) for path, kind in seen.items()]


def nearest_existing_dir(path: str) -> str:
    while not os.path.isdir(path):
        parent = os.path.dirname(path)
        if parent == path:
            break
        path = parent
    return path


class ChangeWatcher:
    """Emit add/change events for a fixed set of paths until closed."""

    def __init__(self, paths: list[str], debounce_ms: int = 300):
        self.paths = [os.path.abspath(p) for p in paths]
        self.debounce_ms = debounce_ms
        self._watched = set(self.paths)
        self._stop_event = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._stop_event.is_set()

    def _directories(self) -> list[str]:
        dirs = []
        for path in self.paths:
            d = os.path.dirname(path)
            if d not in dirs and os.path.isdir(d):
                dirs.append(d)
        return dirs

    def accepts(self, change: Change, path: str) -> bool:
        return change in EVENT_NAMES and os.path.abspath(path) in self._watched

    async def events(self):
        """Yield ChangeEvents, one per path per filesystem batch."""
        dirs = self._directories()
        if not dirs:
            if not await self._wait_for_directory():
                return
            dirs = self._directories()
            # Sources written before the directory watch started
            for path in self.paths:
                if os.path.isfile(path):
                    yield ChangeEvent('add', path)

        async for changes in awatch(*dirs,
                                    watch_filter=self.accepts,
                                    debounce=self.debounce_ms,
                                    stop_event=self._stop_event,
                                    recursive=False):
            for event in merge_changes(changes):
                yield event

    async def _wait_for_directory(self) -> bool:
        """Watch the nearest existing parent until a source directory exists.

        Returns False if the watcher was closed first.
        """
        missing = {os.path.dirname(p) for p in self.paths}
        pending = set()
        for d in missing:
            while d not in pending and not os.path.isdir(d):
                pending.add(d)
                d = os.path.dirname(d)

        while not self.closed and not self._directories():
            parent = nearest_existing_dir(next(iter(missing)))
            print(f"Warning: {sorted(missing)} not found, watching {parent} until it appears",
                  file=sys.stderr)

            def created(change: Change, path: str) -> bool:
                return change == Change.added and os.path.abspath(path) in pending

            async with aclosing(awatch(parent,
                                       watch_filter=created,
                                       debounce=self.debounce_ms,
                                       stop_event=self._stop_event,
                                       recursive=False)) as batches:
                async for _ in batches:
                    break
        return not self.closed

    def close(self):
        self._stop_event.set()
