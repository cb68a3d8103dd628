"""Tests for media_transcriber.utils.units module."""

from media_transcriber.utils.units import format_bytes, format_duration


class TestFormatBytes:
    def test_units(self) -> None:
        assert format_bytes(512) == "512 B"
        assert format_bytes(1536) == "1.5 KiB"
        assert format_bytes(8 * 1024 * 1024) == "8.0 MiB"
        assert format_bytes(3 * 1024**3) == "3.0 GiB"

    def test_beyond_gib_stays_in_gib(self) -> None:
        assert format_bytes(2048 * 1024**3) == "2048.0 GiB"


class TestFormatDuration:
    def test_minutes_and_seconds(self) -> None:
        assert format_duration(0) == "0:00"
        assert format_duration(75.9) == "1:15"

    def test_hours(self) -> None:
        assert format_duration(3 * 3600 + 61) == "3:01:01"

    def test_negative_clamps_to_zero(self) -> None:
        assert format_duration(-5) == "0:00"
