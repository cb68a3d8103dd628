"""Tests for media_transcriber.observability.progress module."""

import io
import threading

import pytest

from media_transcriber.observability.progress import (
    ABANDONED,
    FINISHED,
    RUNNING,
    NullRenderer,
    ProgressTracker,
    TerminalRenderer,
)


def _tracker(total: int = 100) -> ProgressTracker:
    return ProgressTracker(total, "clip.mp4", renderer=NullRenderer())


class TestProgressTracker:
    """Counter behaviour, independent of any display."""

    def test_determinate_when_total_known(self) -> None:
        assert _tracker(100).determinate is True

    def test_indeterminate_when_total_zero(self) -> None:
        assert _tracker(0).determinate is False

    def test_negative_total_rejected(self) -> None:
        with pytest.raises(ValueError):
            _tracker(-1)

    def test_advance_accumulates(self) -> None:
        tracker = _tracker(100)
        tracker.advance(30)
        assert tracker.advance(20) == 50
        assert tracker.transferred == 50

    def test_advance_rejects_negative(self) -> None:
        tracker = _tracker(100)
        tracker.advance(10)
        with pytest.raises(ValueError):
            tracker.advance(-5)
        assert tracker.transferred == 10

    def test_finish_sets_state_once(self) -> None:
        tracker = _tracker()
        tracker.finish()
        tracker.abandon()
        assert tracker.state == FINISHED

    def test_abandon_sets_state(self) -> None:
        tracker = _tracker()
        assert tracker.state == RUNNING
        tracker.abandon()
        assert tracker.state == ABANDONED

    def test_elapsed_frozen_after_finish(self) -> None:
        tracker = _tracker()
        tracker.finish()
        first = tracker.snapshot().elapsed_seconds
        second = tracker.snapshot().elapsed_seconds
        assert first == second

    def test_concurrent_advances_are_not_lost(self) -> None:
        tracker = _tracker(0)
        workers = [
            threading.Thread(target=lambda: [tracker.advance(1) for _ in range(1000)])
            for _ in range(8)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert tracker.transferred == 8000


class TestSnapshot:
    """Derived values on ProgressSnapshot."""

    def test_fraction_for_determinate(self) -> None:
        tracker = _tracker(200)
        tracker.advance(50)
        assert tracker.snapshot().fraction == 0.25

    def test_fraction_and_eta_for_indeterminate(self) -> None:
        tracker = _tracker(0)
        tracker.advance(50)
        snap = tracker.snapshot()
        assert snap.fraction == 0.0
        assert snap.eta_seconds is None


class TestTerminalRenderer:
    """Rendering to a non-interactive stream."""

    def test_non_interactive_writes_only_final_line(self) -> None:
        stream = io.StringIO()
        tracker = ProgressTracker(
            10, "clip.mp4", renderer=TerminalRenderer(stream=stream, interactive=False)
        )
        tracker.advance(10)
        tracker.finish()

        output = stream.getvalue()
        assert output.count("\n") == 1
        assert "clip.mp4 uploaded" in output

    def test_abandon_writes_failure_marker(self) -> None:
        stream = io.StringIO()
        tracker = ProgressTracker(
            10, "clip.mp4", renderer=TerminalRenderer(stream=stream, interactive=False)
        )
        tracker.advance(4)
        tracker.abandon()

        assert "[failed]" in stream.getvalue()
        assert "interrupted" in stream.getvalue()

    def test_interactive_redraws_and_stops_ticker(self) -> None:
        stream = io.StringIO()
        renderer = TerminalRenderer(stream=stream, tick_interval=0.01, interactive=True)
        tracker = ProgressTracker(100, "clip.mp4", renderer=renderer)
        tracker.advance(50)
        tracker.finish()

        output = stream.getvalue()
        assert "50.0%" in output
        assert output.endswith("\n")
        assert renderer._ticker is None

    def test_indeterminate_line_shows_spinner_and_bytes(self) -> None:
        renderer = TerminalRenderer(stream=io.StringIO(), interactive=False)
        tracker = ProgressTracker(0, "clip.mp4", renderer=renderer)
        tracker.advance(2048)

        line = renderer.render_line(tracker)
        assert line[0] in TerminalRenderer.SPINNER_FRAMES
        assert "2.0 KiB" in line

    def test_determinate_line_shows_percentage(self) -> None:
        renderer = TerminalRenderer(stream=io.StringIO(), interactive=False)
        tracker = ProgressTracker(1024, "clip.mp4", renderer=renderer)
        tracker.advance(256)

        assert "25.0%" in renderer.render_line(tracker)
