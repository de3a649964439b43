from pathlib import Path

import pytest

from domains.file_watch.debounce import PathDebouncer, PathState


class ManualScheduler:
    """Deterministic stand-in for the event loop's timers."""

    def __init__(self):
        self.now = 0.0
        self._timers = []
        self._seq = 0

    def call_later(self, delay, callback, *args):
        self._seq += 1
        self._timers.append((self.now + delay, self._seq, callback, args))

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = sorted(t for t in self._timers if t[0] <= target)
            if not due:
                break
            timer = due[0]
            self._timers.remove(timer)
            self.now = timer[0]
            timer[2](*timer[3])
        self.now = target


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def dispatched():
    return []


@pytest.fixture
def debouncer(scheduler, dispatched):
    return PathDebouncer(scheduler, dispatched.append, settle_delay=0.2, debounce_window=0.5)


def test_burst_collapses_to_one_dispatch(tmp_path, scheduler, debouncer, dispatched):
    path = tmp_path / "batch.csv"
    path.write_text("id\n1\n")

    assert debouncer.notify(path) is True
    scheduler.advance(0.05)
    assert debouncer.notify(path) is False
    scheduler.advance(0.05)
    assert debouncer.notify(path) is False

    scheduler.advance(1.0)

    assert dispatched == [path]


def test_dispatch_waits_for_settle_delay(tmp_path, scheduler, debouncer, dispatched):
    path = tmp_path / "batch.csv"
    path.write_text("id\n1\n")

    debouncer.notify(path)
    scheduler.advance(0.15)
    assert dispatched == []
    assert debouncer.state(path) is PathState.PENDING_SETTLE

    scheduler.advance(0.1)
    assert dispatched == [path]
    assert debouncer.state(path) is PathState.DISPATCHED


def test_events_inside_window_after_dispatch_are_ignored(tmp_path, scheduler, debouncer, dispatched):
    path = tmp_path / "batch.csv"
    path.write_text("id\n1\n")

    debouncer.notify(path)
    scheduler.advance(0.3)
    assert debouncer.notify(path) is False

    scheduler.advance(1.0)
    assert dispatched == [path]


def test_new_write_after_window_triggers_again(tmp_path, scheduler, debouncer, dispatched):
    path = tmp_path / "batch.csv"
    path.write_text("id\n1\n")

    debouncer.notify(path)
    scheduler.advance(0.5)
    assert debouncer.state(path) is PathState.IDLE

    assert debouncer.notify(path) is True
    scheduler.advance(0.5)

    assert dispatched == [path, path]


def test_file_deleted_before_settle_is_skipped(tmp_path, scheduler, debouncer, dispatched):
    path = tmp_path / "batch.csv"
    path.write_text("id\n1\n")

    debouncer.notify(path)
    path.unlink()
    scheduler.advance(1.0)

    assert dispatched == []
    assert debouncer.state(path) is PathState.IDLE


def test_directory_is_ignored(tmp_path, scheduler, debouncer, dispatched):
    folder = tmp_path / "nested.csv"
    folder.mkdir()

    debouncer.notify(folder)
    scheduler.advance(1.0)

    assert dispatched == []


def test_paths_are_debounced_independently(tmp_path, scheduler, debouncer, dispatched):
    first = tmp_path / "a.csv"
    second = tmp_path / "b.csv"
    first.write_text("id\n1\n")
    second.write_text("id\n2\n")

    debouncer.notify(first)
    debouncer.notify(second)
    debouncer.notify(first)
    scheduler.advance(1.0)

    assert sorted(dispatched) == [first, second]


def test_debouncers_do_not_share_state(tmp_path, scheduler):
    path = tmp_path / "shared.csv"
    path.write_text("id\n1\n")
    seen_a, seen_b = [], []

    a = PathDebouncer(scheduler, seen_a.append)
    b = PathDebouncer(scheduler, seen_b.append)

    assert a.notify(path) is True
    assert b.notify(path) is True
    scheduler.advance(1.0)

    assert seen_a == [path]
    assert seen_b == [path]


def test_handler_failure_is_logged_and_contained(tmp_path, scheduler, log_messages):
    path = tmp_path / "boom.csv"
    path.write_text("id\n1\n")

    def explode(p):
        raise RuntimeError("handler exploded")

    debouncer = PathDebouncer(scheduler, explode)
    debouncer.notify(path)
    scheduler.advance(1.0)

    assert any(level == "ERROR" and "handler exploded" in msg for level, msg in log_messages)
    assert debouncer.notify(path) is True


def test_window_shorter_than_settle_is_rejected(scheduler):
    with pytest.raises(ValueError):
        PathDebouncer(scheduler, lambda p: None, settle_delay=1.0, debounce_window=0.5)


def test_notify_accepts_strings(tmp_path, scheduler, debouncer, dispatched):
    path = tmp_path / "batch.csv"
    path.write_text("id\n1\n")

    debouncer.notify(str(path))
    scheduler.advance(1.0)

    assert dispatched == [Path(path)]
