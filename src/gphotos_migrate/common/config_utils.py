"""Configuration utilities."""

import os


def get_cpu_count() -> int:
    """Get number of CPU cores, with fallback."""
    return os.cpu_count() or 4


def auto_detect_io_workers(multiplier: float = 1.0, min_workers: int = 2) -> int:
    """Pick a worker-thread count for I/O and subprocess-bound work.

    Args:
        multiplier: Multiplier for CPU count
        min_workers: Minimum number of workers

    Returns:
        Number of worker threads
    """
    return max(min_workers, int(get_cpu_count() * multiplier))
