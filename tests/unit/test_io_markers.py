"""Tests for run completion markers."""

from __future__ import annotations

import threading

from pywasa.io.markers import (
    MARKER_FILE,
    clear_marker,
    is_complete,
    mark_complete,
    wait_for_marker,
)


class TestMarkers:
    """Tests for marker creation and lookup."""

    def test_mark_and_check(self, tmp_path):
        run_dir = tmp_path / "A" / "2001" / "r1"
        assert is_complete(run_dir) is False
        path = mark_complete(run_dir)
        assert path == run_dir / MARKER_FILE
        assert is_complete(run_dir) is True

    def test_clear(self, tmp_path):
        mark_complete(tmp_path)
        clear_marker(tmp_path)
        assert is_complete(tmp_path) is False
        clear_marker(tmp_path)  # Should not raise

    def test_wait_times_out(self, tmp_path):
        assert wait_for_marker(tmp_path, timeout=0.05, poll_interval=0.01) is False

    def test_wait_sees_marker(self, tmp_path):
        timer = threading.Timer(0.05, mark_complete, args=(tmp_path,))
        timer.start()
        try:
            assert wait_for_marker(tmp_path, timeout=5.0, poll_interval=0.01) is True
        finally:
            timer.cancel()
