"""Live timer state machine."""

from __future__ import annotations

import logging
import signal
import threading
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Iterable

from ..storage import FileStore, TrackedFile, TrackedFileError
from ..templating import render
from .clock import Clock, ClockReading, DurationCodec, SystemClock
from .display import Display, NullDisplay

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass(slots=True)
class SessionState:
    """Variables available to ``format_entry`` while a timer runs."""

    last_date: str = ""
    last_time: str = ""
    last_secs: str = ""
    curr_date: str = ""
    curr_time: str = ""
    curr_secs: str = ""
    duration: str = ""

    def as_variables(self) -> dict[str, str]:
        return asdict(self)


class TimerSession:
    """Runs one timer against a tracked file.

    ``start`` opens a new entry slot, ``tick`` re-renders it, and ``finalize``
    persists the file exactly once. ``run`` drives the loop until the
    cancellation event is set, typically by a signal handler.
    """

    def __init__(
        self,
        tracked: TrackedFile,
        *,
        store: FileStore,
        clock: Clock | None = None,
        codec: DurationCodec | None = None,
        display: Display | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self._tracked = tracked
        self._store = store
        self._clock = clock or SystemClock()
        self._codec = codec or DurationCodec()
        self._display = display or NullDisplay()
        self._cancel = cancel or threading.Event()
        self._status = SessionStatus.IDLE
        self._state = SessionState()
        self._start_secs = 0
        self._index: int | None = None

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def cancel(self) -> threading.Event:
        return self._cancel

    @property
    def tracked(self) -> TrackedFile:
        return self._tracked

    def start(self) -> None:
        if self._status is not SessionStatus.IDLE:
            raise RuntimeError(f"Cannot start a timer session in state {self._status.value}")

        options = self._tracked.options
        reading = self._clock.now()
        self._start_secs = reading.epoch_seconds
        self._state.last_date = reading.format(options.format_date)
        self._state.last_time = reading.format(options.format_time)
        self._state.last_secs = str(reading.epoch_seconds)
        self._index = self._tracked.append("")
        self._status = SessionStatus.RUNNING
        logger.info(
            "Started timer",
            extra={"path": str(self._tracked.path), "entry_index": self._index},
        )

    def tick(self) -> str:
        """Refresh the current entry from the clock and show it."""

        if self._status is not SessionStatus.RUNNING or self._index is None:
            raise RuntimeError("Timer session is not running")

        options = self._tracked.options
        reading: ClockReading = self._clock.now()
        self._state.curr_date = reading.format(options.format_date)
        self._state.curr_time = reading.format(options.format_time)
        self._state.curr_secs = str(reading.epoch_seconds)
        self._state.duration = self._codec.format(
            reading.epoch_seconds - self._start_secs, options.format_duration
        )

        rendered = render(options.format_entry, self._state.as_variables())
        self._tracked.entries[self._index] = rendered
        self._display.replace_line(rendered)
        return rendered

    def run(self) -> TrackedFile:
        """Tick every ``refresh_time`` seconds until cancelled, then persist."""

        self.start()
        interval = self._tracked.options.refresh_seconds
        while True:
            self.tick()
            if self._cancel.wait(interval):
                break
        self.tick()
        self.finalize()
        return self._tracked

    def finalize(self) -> None:
        """Persist the tracked file; later calls are no-ops."""

        if self._status is SessionStatus.TERMINATED:
            return
        self._status = SessionStatus.TERMINATED
        self._display.finish()
        try:
            self._store.write(self._tracked)
        except TrackedFileError:
            logger.error("Failed to save timer entry", extra={"path": str(self._tracked.path)})
            raise
        logger.info(
            "Saved timer entry",
            extra={"path": str(self._tracked.path), "duration": self._state.duration},
        )

    def record(self, text: str) -> TrackedFile:
        """Append ``text`` as a finished entry and persist without running the timer."""

        if self._status is not SessionStatus.IDLE:
            raise RuntimeError(f"Cannot record a manual entry in state {self._status.value}")
        self._index = self._tracked.append(text)
        self._status = SessionStatus.TERMINATED
        self._store.write(self._tracked)
        logger.info("Recorded manual entry", extra={"path": str(self._tracked.path)})
        return self._tracked


def install_signal_handlers(
    event: threading.Event,
    signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> Callable[[], None]:
    """Route terminating signals to ``event`` and return a callable restoring the old handlers."""

    def _handler(signum, _frame) -> None:
        event.set()

    previous = {sig: signal.signal(sig, _handler) for sig in signals}

    def restore() -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return restore


__all__ = ["SessionState", "SessionStatus", "TimerSession", "install_signal_handlers"]
