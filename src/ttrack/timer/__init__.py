"""Live timer session exports."""

from .clock import Clock, ClockReading, DurationCodec, SystemClock
from .display import Display, NullDisplay, TerminalDisplay
from .session import SessionState, SessionStatus, TimerSession, install_signal_handlers

__all__ = [
    "Clock",
    "ClockReading",
    "Display",
    "DurationCodec",
    "NullDisplay",
    "SessionState",
    "SessionStatus",
    "SystemClock",
    "TerminalDisplay",
    "TimerSession",
    "install_signal_handlers",
]
