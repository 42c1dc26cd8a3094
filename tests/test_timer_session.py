from __future__ import annotations

import os
import re
import signal
import threading
from pathlib import Path

import pytest

from ttrack.config import Options, TrackerSettings
from ttrack.storage import FileStore, TrackedFile, TrackedFileError
from ttrack.timer import (
    ClockReading,
    SessionStatus,
    TimerSession,
    install_signal_handlers,
)

START = 1704099600


class FakeClock:
    def __init__(self, start: int = START) -> None:
        self.current = start
        self.reads = 0

    def now(self) -> ClockReading:
        self.reads += 1
        return ClockReading(epoch_seconds=self.current)


class RecordingDisplay:
    """Advances the clock one second per redraw and cancels after ``cancel_after`` redraws."""

    def __init__(self, clock: FakeClock, cancel: threading.Event | None = None, cancel_after: int | None = None) -> None:
        self.clock = clock
        self.cancel = cancel
        self.cancel_after = cancel_after
        self.lines: list[str] = []
        self.finished = 0

    def replace_line(self, text: str) -> None:
        self.lines.append(text)
        self.clock.current += 1
        if self.cancel is not None and len(self.lines) == self.cancel_after:
            self.cancel.set()

    def finish(self) -> None:
        self.finished += 1


class CountingStore(FileStore):
    def __init__(self) -> None:
        super().__init__(TrackerSettings())
        self.writes = 0

    def write(self, tracked: TrackedFile) -> None:
        self.writes += 1
        super().write(tracked)


class FailingStore(FileStore):
    def __init__(self) -> None:
        super().__init__(TrackerSettings())

    def write(self, tracked: TrackedFile) -> None:
        raise TrackedFileError("disk full")


def test_interrupted_run_saves_exactly_one_entry(tmp_path: Path) -> None:
    path = tmp_path / "log.tt"
    store = CountingStore()
    seeded = store.read(path)
    seeded.append("  00:10:00 | earlier")
    store.write(seeded)

    tracked = store.read(path)
    clock = FakeClock()
    cancel = threading.Event()
    display = RecordingDisplay(clock, cancel=cancel, cancel_after=2)
    session = TimerSession(tracked, store=store, clock=clock, display=display, cancel=cancel)

    session.run()

    on_disk = store.read(path)
    start = ClockReading(START)
    options = Options()
    expected = (
        f"  00:00:02 | {start.format(options.format_date)} | {start.format(options.format_time)}"
        f" - {ClockReading(START + 2).format(options.format_time)}"
    )
    assert on_disk.entries == ["  00:10:00 | earlier", expected]
    assert session.status is SessionStatus.TERMINATED
    assert display.lines[-1] == expected
    assert display.finished == 1
    assert store.writes == 2


def test_tick_updates_state_and_last_entry(tmp_path: Path) -> None:
    clock = FakeClock()
    tracked = TrackedFile(path=tmp_path / "log.tt", options=Options(format_entry="%{duration}|%{last_secs}|%{curr_secs}"))
    session = TimerSession(tracked, store=CountingStore(), clock=clock)

    session.start()
    clock.current += 75
    rendered = session.tick()

    assert rendered == f"00:01:15|{START}|{START + 75}"
    assert tracked.entries == [rendered]
    assert session.state.duration == "00:01:15"


def test_tick_requires_running_session(tmp_path: Path) -> None:
    session = TimerSession(TrackedFile(path=tmp_path / "log.tt"), store=CountingStore(), clock=FakeClock())

    with pytest.raises(RuntimeError):
        session.tick()


def test_finalize_runs_once(tmp_path: Path) -> None:
    store = CountingStore()
    session = TimerSession(TrackedFile(path=tmp_path / "log.tt"), store=store, clock=FakeClock())
    session.start()

    session.finalize()
    session.finalize()

    assert store.writes == 1


def test_save_failure_is_surfaced(tmp_path: Path) -> None:
    cancel = threading.Event()
    cancel.set()
    session = TimerSession(
        TrackedFile(path=tmp_path / "log.tt"),
        store=FailingStore(),
        clock=FakeClock(),
        cancel=cancel,
    )

    with pytest.raises(TrackedFileError):
        session.run()
    assert session.status is SessionStatus.TERMINATED


def test_manual_entry_skips_live_loop(tmp_path: Path) -> None:
    path = tmp_path / "log.tt"
    store = CountingStore()
    clock = FakeClock()
    display = RecordingDisplay(clock)
    session = TimerSession(store.read(path), store=store, clock=clock, display=display)

    session.record("lunch")

    assert store.read(path).entries == ["lunch"]
    assert session.status is SessionStatus.TERMINATED
    assert clock.reads == 0
    assert display.lines == []
    with pytest.raises(RuntimeError):
        session.start()


def test_signal_handlers_set_event_and_restore() -> None:
    previous = signal.getsignal(signal.SIGUSR1)
    event = threading.Event()

    restore = install_signal_handlers(event, signals=(signal.SIGUSR1,))
    signal.raise_signal(signal.SIGUSR1)
    signal.raise_signal(signal.SIGUSR1)
    restore()

    assert event.is_set()
    assert signal.getsignal(signal.SIGUSR1) == previous


def test_signal_stops_live_run(tmp_path: Path) -> None:
    path = tmp_path / "log.tt"
    store = FileStore(TrackerSettings())
    tracked = store.read(path)
    tracked.options = Options(refresh_time="0.05")
    session = TimerSession(tracked, store=store)
    restore = install_signal_handlers(session.cancel, signals=(signal.SIGUSR1,))
    timer = threading.Timer(0.2, os.kill, args=(os.getpid(), signal.SIGUSR1))
    timer.start()
    try:
        session.run()
    finally:
        timer.cancel()
        restore()

    entries = store.read(path).entries
    assert len(entries) == 1
    assert re.fullmatch(r"  \d{2}:\d{2}:\d{2} \| .+ \| .+ - .+", entries[0])
