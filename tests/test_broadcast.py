"""Tests for the live score feed: source reading, sessions, watcher, server."""

import asyncio
import json
import os
import socket
import sys

import pytest
from watchfiles import Change
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosedError
from websockets.protocol import State

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from bandscores.core.broadcast import BroadcastSession, serve
from bandscores.core.change_watcher import ChangeEvent, ChangeWatcher, merge_changes
from bandscores.core.errors import SourceNotFound, SourceParseError, SourceReadError
from bandscores.core.models import Payload, ServerConfig
from bandscores.core.source_reader import read_source


SCORES = [{
    'dateStr': '2025-10-04',
    'compName': 'Region Finals',
    'rows': [{'school': 'Orem High', 'cells': list(range(24))}],
}]
ADJUDICATION = {'Music Ensemble': {'Tone': ['Balance and blend']}}
COMMENTS = [{'comment': 'Great energy', 'judge': 'J. Smith', 'caption': 'Music'}]


class FakeConnection:
    """Stands in for a websockets ServerConnection."""

    def __init__(self, error=None):
        self.state = State.OPEN
        self.sent = []
        self.error = error
        self._closed = asyncio.Event()

    async def send(self, message):
        self.sent.append(json.loads(message))

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.error is not None:
            raise self.error
        await self._closed.wait()
        raise StopAsyncIteration

    def close(self):
        self.state = State.CLOSED
        self._closed.set()


class FakeWatcher:
    """Plays back a script of ChangeEvents and callables, then closes the client."""

    def __init__(self, script, connection):
        self.script = script
        self.connection = connection
        self.closed = False

    async def events(self):
        for step in self.script:
            if callable(step):
                step()
            else:
                yield step
        self.connection.close()

    def close(self):
        self.closed = True


def write_json(path, data):
    with open(path, 'w') as f:
        json.dump(data, f)


def run_session(json_dir, script=(), connection=None):
    async def go():
        conn = connection or FakeConnection()
        watchers = []

        def factory(paths, debounce_ms):
            watchers.append(FakeWatcher(list(script), conn))
            return watchers[-1]

        session = BroadcastSession(conn, ServerConfig(json_dir=str(json_dir)), factory)
        await session.run()
        return conn, watchers

    return asyncio.run(go())


# ─── JsonSourceReader ────────────────────────────────────────────────

class TestSourceReader:
    def test_reads_json(self, tmp_path):
        path = str(tmp_path / 'Data Collection.json')
        write_json(path, SCORES)
        assert read_source(path) == SCORES

    def test_missing(self, tmp_path):
        with pytest.raises(SourceNotFound):
            read_source(str(tmp_path / 'Data Collection.json'))

    def test_missing_is_a_read_error(self):
        assert issubclass(SourceNotFound, SourceReadError)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'Data Collection.json'
        path.write_text('{"rows": [1, 2,')
        with pytest.raises(SourceParseError):
            read_source(str(path))

    def test_directory_is_read_error(self, tmp_path):
        with pytest.raises(SourceReadError):
            read_source(str(tmp_path))


# ─── BroadcastSession ────────────────────────────────────────────────

class TestInitialLoad:
    def test_all_sources_sent(self, tmp_path):
        write_json(tmp_path / 'Data Collection.json', SCORES)
        write_json(tmp_path / 'AdjudicationSheets.json', ADJUDICATION)
        write_json(tmp_path / '2025_judge_comments.json', COMMENTS)
        write_json(tmp_path / 'historical_judge_comments.json', COMMENTS)

        conn, _ = run_session(tmp_path)
        assert conn.sent == [
            {'type': 'scores', 'data': SCORES},
            {'type': 'adjudication', 'data': ADJUDICATION},
            {'type': 'comments', 'data': COMMENTS},
            {'type': 'historical_comments', 'data': COMMENTS},
        ]

    def test_missing_comments_sent_empty(self, tmp_path):
        write_json(tmp_path / 'Data Collection.json', SCORES)

        conn, _ = run_session(tmp_path)
        comments = [m for m in conn.sent if m['type'] == 'comments']
        assert comments == [{'type': 'comments', 'data': []}]
        assert [m['type'] for m in conn.sent] == ['scores', 'comments']

    def test_invalid_json_not_sent(self, tmp_path):
        (tmp_path / 'Data Collection.json').write_text('not json')
        write_json(tmp_path / 'AdjudicationSheets.json', ADJUDICATION)

        conn, _ = run_session(tmp_path)
        assert [m['type'] for m in conn.sent] == ['adjudication', 'comments']


class TestChangeEvents:
    def test_change_resends_new_content(self, tmp_path):
        path = tmp_path / 'Data Collection.json'
        write_json(path, SCORES)
        updated = SCORES + [{'dateStr': '2025-10-11', 'compName': 'State', 'rows': []}]

        script = [lambda: write_json(path, updated), ChangeEvent('change', str(path))]
        conn, _ = run_session(tmp_path, script)
        scores = [m['data'] for m in conn.sent if m['type'] == 'scores']
        assert scores == [SCORES, updated]

    def test_added_file_sent(self, tmp_path):
        path = tmp_path / 'AdjudicationSheets.json'
        script = [lambda: write_json(path, ADJUDICATION), ChangeEvent('add', str(path))]
        conn, _ = run_session(tmp_path, script)
        assert conn.sent[-1] == {'type': 'adjudication', 'data': ADJUDICATION}

    def test_broken_change_dropped(self, tmp_path):
        path = tmp_path / 'Data Collection.json'
        write_json(path, SCORES)
        script = [lambda: path.write_text('{"half'), ChangeEvent('change', str(path))]
        conn, _ = run_session(tmp_path, script)
        assert [m['data'] for m in conn.sent if m['type'] == 'scores'] == [SCORES]

    def test_unknown_file_ignored(self, tmp_path):
        other = tmp_path / 'notes.json'
        write_json(other, {'a': 1})
        conn, _ = run_session(tmp_path, [ChangeEvent('change', str(other))])
        assert [m['type'] for m in conn.sent] == ['comments']


class TestTeardown:
    def test_watcher_closed_on_disconnect(self, tmp_path):
        _, watchers = run_session(tmp_path)
        assert len(watchers) == 1
        assert watchers[0].closed

    def test_watcher_closed_on_transport_error(self, tmp_path):
        conn = FakeConnection(error=ConnectionClosedError(None, None))
        _, watchers = run_session(tmp_path, connection=conn)
        assert watchers[0].closed

    def test_send_to_closed_connection_dropped(self, tmp_path):
        conn = FakeConnection()
        conn.state = State.CLOSED
        session = BroadcastSession(conn, ServerConfig(json_dir=str(tmp_path)),
                                   lambda paths, debounce_ms: FakeWatcher([], conn))
        assert asyncio.run(session.send(Payload('comments', []))) is False
        assert conn.sent == []


# ─── ChangeWatcher ───────────────────────────────────────────────────

class TestChangeWatcher:
    def test_filter_accepts_sources_only(self, tmp_path):
        source = str(tmp_path / 'Data Collection.json')
        watcher = ChangeWatcher([source])
        assert watcher.accepts(Change.modified, source)
        assert watcher.accepts(Change.added, source)
        assert not watcher.accepts(Change.deleted, source)
        assert not watcher.accepts(Change.modified, str(tmp_path / 'other.json'))

    def test_close(self, tmp_path):
        watcher = ChangeWatcher([str(tmp_path / 'Data Collection.json')])
        assert not watcher.closed
        watcher.close()
        assert watcher.closed

    def test_closed_watcher_yields_nothing(self, tmp_path):
        watcher = ChangeWatcher([str(tmp_path / 'missing' / 'Data Collection.json')])
        watcher.close()
        assert asyncio.run(collect(watcher.events())) == []

    def test_merge_changes(self, tmp_path):
        source = str(tmp_path / 'Data Collection.json')
        other = str(tmp_path / 'AdjudicationSheets.json')
        batch = {(Change.modified, source), (Change.added, source), (Change.deleted, other)}
        assert merge_changes(batch) == [ChangeEvent('add', source)]


# ─── Live filesystem and socket ──────────────────────────────────────

WAIT = 10


def free_port():
    with socket.socket() as sock:
        sock.bind(('127.0.0.1', 0))
        return sock.getsockname()[1]


async def connect_when_ready(url):
    for _ in range(50):
        try:
            return await connect(url)
        except OSError:
            await asyncio.sleep(0.1)
    return await connect(url)


async def next_event(events):
    return await events.__anext__()


async def collect(events):
    return [event async for event in events]


class TestChangeWatcherLive:
    def test_added_source_then_close(self, tmp_path):
        path = tmp_path / 'Data Collection.json'

        async def go():
            watcher = ChangeWatcher([str(path)], debounce_ms=50)
            events = watcher.events()
            pending = asyncio.create_task(next_event(events))
            await asyncio.sleep(0.5)
            write_json(path, SCORES)
            event = await asyncio.wait_for(pending, WAIT)

            watcher.close()
            await asyncio.wait_for(collect(events), WAIT)
            return event, watcher

        event, watcher = asyncio.run(go())
        assert event == ChangeEvent('add', os.path.abspath(str(path)))
        assert watcher.closed

    def test_missing_directory_watched_until_created(self, tmp_path, capsys):
        json_dir = tmp_path / 'JSON Files'
        path = json_dir / 'Data Collection.json'

        async def go():
            watcher = ChangeWatcher([str(path)], debounce_ms=50)
            events = watcher.events()
            pending = asyncio.create_task(next_event(events))
            await asyncio.sleep(0.5)
            json_dir.mkdir()
            await asyncio.sleep(0.5)
            write_json(path, SCORES)
            event = await asyncio.wait_for(pending, WAIT)

            watcher.close()
            await asyncio.wait_for(collect(events), WAIT)
            return event

        event = asyncio.run(go())
        assert event == ChangeEvent('add', os.path.abspath(str(path)))
        assert 'not found, watching' in capsys.readouterr().err


class TestServe:
    def test_client_gets_initial_load_and_updates(self, tmp_path):
        write_json(tmp_path / 'Data Collection.json', SCORES)
        port = free_port()
        config = ServerConfig(json_dir=str(tmp_path), host='127.0.0.1', port=port, debounce_ms=50)

        async def go():
            server = asyncio.create_task(serve(config))
            try:
                client = await connect_when_ready(f'ws://127.0.0.1:{port}')
                async with client:
                    received = [json.loads(await asyncio.wait_for(client.recv(), WAIT))
                                for _ in range(2)]
                    await asyncio.sleep(0.5)
                    write_json(tmp_path / 'AdjudicationSheets.json', ADJUDICATION)
                    received.append(json.loads(await asyncio.wait_for(client.recv(), WAIT)))
                return received
            finally:
                server.cancel()
                try:
                    await server
                except asyncio.CancelledError:
                    pass

        assert asyncio.run(go()) == [
            {'type': 'scores', 'data': SCORES},
            {'type': 'comments', 'data': []},
            {'type': 'adjudication', 'data': ADJUDICATION},
        ]
