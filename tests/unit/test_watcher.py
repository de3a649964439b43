import asyncio
import time
from pathlib import Path

from domains.file_watch.watcher import DirectoryWatcher, DropZoneEventHandler


class Event:
    def __init__(self, src: Path, dest: Path | None = None, is_directory: bool = False):
        self.src_path = str(src)
        self.dest_path = str(dest) if dest else None
        self.is_directory = is_directory


def test_handler_forwards_file_events(tmp_path):
    seen = []
    handler = DropZoneEventHandler(tmp_path, seen.append)
    path = tmp_path / "batch.csv"

    handler.on_created(Event(path))
    handler.on_modified(Event(path))

    assert seen == [path, path]


def test_handler_ignores_directories_and_foreign_paths(tmp_path):
    seen = []
    handler = DropZoneEventHandler(tmp_path, seen.append)

    handler.on_created(Event(tmp_path / "sub", is_directory=True))
    handler.on_modified(Event(tmp_path, is_directory=True))
    handler.on_created(Event(tmp_path / "sub" / "deep.csv"))

    assert seen == []


def test_handler_follows_moves_into_the_zone(tmp_path):
    seen = []
    zone = tmp_path / "input"
    handler = DropZoneEventHandler(zone, seen.append)

    handler.on_moved(Event(zone / "batch.csv.tmp", zone / "batch.csv"))
    handler.on_moved(Event(zone / "batch.csv", tmp_path / "elsewhere.csv"))

    assert seen == [zone / "batch.csv"]


def test_watcher_runs_sync_and_async_handlers_on_loop(tmp_path):
    calls = []

    async def async_handler(path):
        await asyncio.sleep(0)
        calls.append(("async", path))

    async def scenario():
        loop = asyncio.get_running_loop()
        sync_watcher = DirectoryWatcher(tmp_path, lambda p: calls.append(("sync", p)), loop)
        async_watcher = DirectoryWatcher(tmp_path, async_handler, loop)

        sync_watcher._dispatch(tmp_path / "a.csv")
        async_watcher._dispatch(tmp_path / "b.csv")
        for _ in range(5):
            await asyncio.sleep(0)

    asyncio.run(scenario())

    assert calls == [("sync", tmp_path / "a.csv"), ("async", tmp_path / "b.csv")]


def test_watcher_notifications_are_debounced(tmp_path):
    calls = []
    path = tmp_path / "batch.csv"
    path.write_text("id\n1\n")

    async def scenario():
        loop = asyncio.get_running_loop()
        watcher = DirectoryWatcher(
            tmp_path, calls.append, loop, settle_delay=0.01, debounce_window=0.05
        )
        for _ in range(3):
            watcher._notify_threadsafe(path)
        await asyncio.sleep(0.2)

    asyncio.run(scenario())

    assert calls == [path]


def test_watcher_with_real_observer(tmp_path):
    zone = tmp_path / "input"
    calls = []

    async def scenario():
        loop = asyncio.get_running_loop()
        watcher = DirectoryWatcher(
            zone, calls.append, loop, settle_delay=0.05, debounce_window=0.3, name="input"
        )
        watcher.start()
        try:
            assert watcher.is_running
            await asyncio.sleep(0.1)
            (zone / "batch.csv").write_text("id,amount\n1,100\n")

            deadline = time.monotonic() + 5.0
            while not calls and time.monotonic() < deadline:
                await asyncio.sleep(0.05)
            await asyncio.sleep(0.2)
        finally:
            watcher.stop()

        assert not watcher.is_running

    asyncio.run(scenario())

    assert [p.name for p in calls] == ["batch.csv"]


def test_async_handler_tasks_are_held_until_done(tmp_path):
    release = None
    finished = []

    async def handler(path):
        await release.wait()
        finished.append(path)

    async def scenario():
        nonlocal release
        release = asyncio.Event()
        watcher = DirectoryWatcher(tmp_path, handler, asyncio.get_running_loop())

        watcher._dispatch(tmp_path / "a.csv")
        await asyncio.sleep(0)
        assert watcher.pending_tasks == 1

        release.set()
        for _ in range(3):
            await asyncio.sleep(0)
        assert watcher.pending_tasks == 0

    asyncio.run(scenario())

    assert finished == [tmp_path / "a.csv"]


def test_stop_cancels_handler_tasks_in_flight(tmp_path, log_messages):
    cancelled = []

    async def handler(path):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(path)
            raise

    async def scenario():
        watcher = DirectoryWatcher(tmp_path, handler, asyncio.get_running_loop())
        watcher._dispatch(tmp_path / "a.csv")
        await asyncio.sleep(0)

        watcher.stop()
        for _ in range(3):
            await asyncio.sleep(0)
        assert watcher.pending_tasks == 0

    asyncio.run(scenario())

    assert cancelled == [tmp_path / "a.csv"]
    assert not any(level == "ERROR" for level, _ in log_messages)
