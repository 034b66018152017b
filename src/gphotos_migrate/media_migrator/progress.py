"""Progress tracking for media migration.

The number of files is not known up front (discovery runs alongside the
migration), so progress is reported as counts and rates, not ETA.
"""

import logging
import time

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Tracks migration progress.

    Features:
    - Files processed count
    - Processing rate (files/sec), average and since the last log line
    - Periodic logging (every N files)
    """

    def __init__(self, log_interval: int = 100):
        """Initialize progress tracker.

        Args:
            log_interval: Log progress every N files
        """
        self.log_interval = log_interval

        self.files_processed = 0
        self.start_time = time.time()
        self.last_log_time = self.start_time
        self.last_log_count = 0

    def increment(self, count: int = 1) -> None:
        """Increment files processed counter.

        Args:
            count: Number of files to add to counter
        """
        previous = self.files_processed
        self.files_processed += count

        if self.files_processed // self.log_interval > previous // self.log_interval:
            self._log_progress()

    def get_progress(self) -> dict:
        """Get current progress statistics.

        Returns:
            Dict with progress metrics
        """
        elapsed_time = time.time() - self.start_time
        rate = self.files_processed / elapsed_time if elapsed_time > 0 else 0.0

        return {
            "files_processed": self.files_processed,
            "elapsed_seconds": elapsed_time,
            "rate_files_per_sec": rate,
        }

    def _log_progress(self) -> None:
        progress = self.get_progress()

        current_time = time.time()
        time_delta = current_time - self.last_log_time
        count_delta = self.files_processed - self.last_log_count
        instant_rate = count_delta / time_delta if time_delta > 0 else 0.0

        logger.info(
            f"Progress: {{'files_processed': {self.files_processed}, "
            f"'rate_avg': {progress['rate_files_per_sec']:.1f}, 'rate_current': {instant_rate:.1f}, "
            f"'elapsed': {self._format_time(progress['elapsed_seconds'])!r}}}"
        )

        self.last_log_time = current_time
        self.last_log_count = self.files_processed

    @staticmethod
    def _format_time(seconds: float) -> str:
        """Format seconds as human-readable time.

        Args:
            seconds: Time in seconds

        Returns:
            Formatted string (e.g., "2h 15m 30s")
        """
        if seconds <= 0:
            return "0s"

        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = int(seconds % 60)

        parts = []
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        if secs > 0 or not parts:
            parts.append(f"{secs}s")

        return " ".join(parts)

    def log_final_summary(self) -> None:
        """Log final progress summary."""
        elapsed_time = time.time() - self.start_time
        rate = self.files_processed / elapsed_time if elapsed_time > 0 else 0.0

        logger.info(
            f"Migration finished: {{'files_processed': {self.files_processed}, "
            f"'elapsed': {self._format_time(elapsed_time)!r}, 'rate_avg': {rate:.1f}}}"
        )
