"""Tests for progress tracking."""

import logging
from unittest.mock import patch

from gphotos_migrate.media_migrator.progress import ProgressTracker


class TestProgressTracker:
    """Tests for ProgressTracker."""

    def test_initial_state(self):
        tracker = ProgressTracker(log_interval=10)
        assert tracker.files_processed == 0
        assert tracker.get_progress()["files_processed"] == 0

    def test_increment(self):
        tracker = ProgressTracker()
        tracker.increment()
        tracker.increment(4)
        assert tracker.files_processed == 5

    def test_logs_every_interval(self):
        tracker = ProgressTracker(log_interval=3)
        with patch.object(tracker, "_log_progress") as log_progress:
            for _ in range(7):
                tracker.increment()
        assert log_progress.call_count == 2

    def test_batch_increment_crossing_interval_logs_once(self):
        tracker = ProgressTracker(log_interval=10)
        with patch.object(tracker, "_log_progress") as log_progress:
            tracker.increment(9)
            tracker.increment(5)
        assert log_progress.call_count == 1

    def test_rate(self):
        with patch("gphotos_migrate.media_migrator.progress.time.time", return_value=100.0):
            tracker = ProgressTracker()
        tracker.files_processed = 50
        with patch("gphotos_migrate.media_migrator.progress.time.time", return_value=110.0):
            progress = tracker.get_progress()
        assert progress["elapsed_seconds"] == 10.0
        assert progress["rate_files_per_sec"] == 5.0

    def test_format_time(self):
        assert ProgressTracker._format_time(0) == "0s"
        assert ProgressTracker._format_time(59) == "59s"
        assert ProgressTracker._format_time(3600) == "1h"
        assert ProgressTracker._format_time(8130) == "2h 15m 30s"

    def test_final_summary_logged(self, caplog):
        tracker = ProgressTracker()
        tracker.increment(3)
        with caplog.at_level(logging.INFO):
            tracker.log_final_summary()
        assert "'files_processed': 3" in caplog.text
