"""Upload progress reporting.

ProgressTracker owns the byte counter for one upload. The counter is guarded
by a lock because the transfer loop writes it while a renderer's ticker
thread reads it. Drawing is delegated to a ProgressRenderer:

    NullRenderer    : draws nothing (tests, --no-progress).
    TerminalRenderer: percentage/rate/ETA bar for known sizes, a spinner for
                      unknown sizes; redraws on a timer when attached to a TTY.
"""

from __future__ import annotations

import sys
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TextIO

from media_transcriber.utils.units import format_bytes, format_duration

RUNNING = "running"
FINISHED = "finished"
ABANDONED = "abandoned"


@dataclass(frozen=True)
class ProgressSnapshot:
    """A consistent point-in-time view of a tracker."""

    transferred: int
    total: int
    elapsed_seconds: float
    state: str

    @property
    def determinate(self) -> bool:
        return self.total > 0

    @property
    def fraction(self) -> float:
        if not self.determinate:
            return 0.0
        return min(self.transferred / self.total, 1.0)

    @property
    def rate(self) -> float:
        """Bytes per second since the tracker was created."""
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.transferred / self.elapsed_seconds

    @property
    def eta_seconds(self) -> float | None:
        if not self.determinate or self.rate <= 0:
            return None
        return max(self.total - self.transferred, 0) / self.rate


class ProgressRenderer(ABC):
    """Abstract base class for progress display implementations."""

    @abstractmethod
    def start(self, tracker: ProgressTracker) -> None:
        """Called once when the tracker is created."""

    @abstractmethod
    def refresh(self, tracker: ProgressTracker) -> None:
        """Called after every counter update."""

    @abstractmethod
    def finish(self, tracker: ProgressTracker) -> None:
        """Freeze the display in the success state."""

    @abstractmethod
    def abandon(self, tracker: ProgressTracker) -> None:
        """Freeze the display in the failure state."""


class NullRenderer(ProgressRenderer):
    """Renderer that discards all updates."""

    def start(self, tracker: ProgressTracker) -> None:
        pass

    def refresh(self, tracker: ProgressTracker) -> None:
        pass

    def finish(self, tracker: ProgressTracker) -> None:
        pass

    def abandon(self, tracker: ProgressTracker) -> None:
        pass


class TerminalRenderer(ProgressRenderer):
    """Single-line progress display written to a terminal stream.

    On a TTY the line is redrawn in place by a daemon ticker thread and after
    every counter update. On a non-interactive stream only the final line is
    written.

    Args:
        stream: Output stream (default sys.stderr).
        tick_interval: Seconds between timer-driven redraws.
        bar_width: Width of the determinate bar in characters.
        interactive: Force TTY behaviour on or off (default: stream.isatty()).
    """

    SPINNER_FRAMES = "|/-\\"

    def __init__(
        self,
        stream: TextIO | None = None,
        tick_interval: float = 0.1,
        bar_width: int = 30,
        interactive: bool | None = None,
    ) -> None:
        self._stream = stream or sys.stderr
        self._tick_interval = tick_interval
        self._bar_width = bar_width
        if interactive is None:
            isatty = getattr(self._stream, "isatty", None)
            interactive = bool(isatty and isatty())
        self._interactive = interactive
        self._draw_lock = threading.Lock()
        self._stop = threading.Event()
        self._ticker: threading.Thread | None = None
        self._frame = 0
        self._last_width = 0

    def start(self, tracker: ProgressTracker) -> None:
        if not self._interactive:
            return
        self._draw(tracker)
        self._ticker = threading.Thread(
            target=self._tick, args=(tracker,), name="progress-ticker", daemon=True
        )
        self._ticker.start()

    def refresh(self, tracker: ProgressTracker) -> None:
        if self._interactive:
            self._draw(tracker)

    def finish(self, tracker: ProgressTracker) -> None:
        self._stop_ticker()
        snap = tracker.snapshot()
        self._write_final(
            f"[ok] {tracker.label} uploaded ({format_bytes(snap.transferred)}) "
            f"in {snap.elapsed_seconds:.1f}s"
        )

    def abandon(self, tracker: ProgressTracker) -> None:
        self._stop_ticker()
        snap = tracker.snapshot()
        self._write_final(
            f"[failed] Upload of {tracker.label} was interrupted after "
            f"{format_bytes(snap.transferred)}"
        )

    def render_line(self, tracker: ProgressTracker) -> str:
        """Build the in-progress line for the tracker's current state."""
        snap = tracker.snapshot()
        elapsed = format_duration(snap.elapsed_seconds)
        if not snap.determinate:
            frame = self.SPINNER_FRAMES[self._frame % len(self.SPINNER_FRAMES)]
            return (
                f"{frame} [{elapsed}] Uploading {tracker.label} "
                f"{format_bytes(snap.transferred)} ({format_bytes(snap.rate)}/s)"
            )
        filled = int(self._bar_width * snap.fraction)
        bar = "#" * filled + "-" * (self._bar_width - filled)
        eta = snap.eta_seconds
        eta_text = format_duration(eta) if eta is not None else "?"
        return (
            f"[{elapsed}] [{bar}] {snap.fraction * 100:5.1f}% "
            f"{format_bytes(snap.transferred)}/{format_bytes(snap.total)} "
            f"({format_bytes(snap.rate)}/s, ETA {eta_text})"
        )

    def _tick(self, tracker: ProgressTracker) -> None:
        while not self._stop.wait(self._tick_interval):
            self._frame += 1
            self._draw(tracker)

    def _draw(self, tracker: ProgressTracker) -> None:
        line = self.render_line(tracker)
        with self._draw_lock:
            if self._stop.is_set():
                return
            padding = " " * max(self._last_width - len(line), 0)
            self._stream.write(f"\r{line}{padding}")
            self._stream.flush()
            self._last_width = len(line)

    def _stop_ticker(self) -> None:
        self._stop.set()
        if self._ticker is not None and self._ticker is not threading.current_thread():
            self._ticker.join(timeout=1.0)
        self._ticker = None

    def _write_final(self, message: str) -> None:
        with self._draw_lock:
            if self._interactive:
                padding = " " * max(self._last_width - len(message), 0)
                self._stream.write(f"\r{message}{padding}\n")
            else:
                self._stream.write(f"{message}\n")
            self._stream.flush()


class ProgressTracker:
    """Thread-safe byte counter for a single upload.

    Args:
        total_bytes: Expected size; 0 selects indeterminate mode.
        label: Short name shown in the display (usually the file name).
        renderer: Display implementation (default TerminalRenderer on stderr).
    """

    def __init__(
        self,
        total_bytes: int,
        label: str,
        renderer: ProgressRenderer | None = None,
    ) -> None:
        if total_bytes < 0:
            raise ValueError("total_bytes must not be negative")
        self.total = total_bytes
        self.label = label
        self._renderer = renderer if renderer is not None else TerminalRenderer()
        self._lock = threading.Lock()
        self._transferred = 0
        self._state = RUNNING
        self._started = time.monotonic()
        self._stopped: float | None = None
        self._renderer.start(self)

    @property
    def determinate(self) -> bool:
        return self.total > 0

    @property
    def transferred(self) -> int:
        with self._lock:
            return self._transferred

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    def snapshot(self) -> ProgressSnapshot:
        """Read counter, state and elapsed time under a single lock acquisition."""
        with self._lock:
            end = self._stopped if self._stopped is not None else time.monotonic()
            return ProgressSnapshot(
                transferred=self._transferred,
                total=self.total,
                elapsed_seconds=end - self._started,
                state=self._state,
            )

    def advance(self, num_bytes: int) -> int:
        """Add ``num_bytes`` to the counter and redraw.

        Returns:
            The new cumulative byte count.

        Raises:
            ValueError: If num_bytes is negative.
        """
        if num_bytes < 0:
            raise ValueError("progress can only move forward")
        with self._lock:
            self._transferred += num_bytes
            current = self._transferred
        self._renderer.refresh(self)
        return current

    def finish(self) -> None:
        """Mark the upload successful and freeze the display."""
        if self._transition(FINISHED):
            self._renderer.finish(self)

    def abandon(self) -> None:
        """Mark the upload failed and freeze the display."""
        if self._transition(ABANDONED):
            self._renderer.abandon(self)

    def _transition(self, state: str) -> bool:
        with self._lock:
            if self._state != RUNNING:
                return False
            self._state = state
            self._stopped = time.monotonic()
            return True
