"""Parallel migration components.

This package contains the threading infrastructure:
- Producer thread: Runs discovery and feeds the work queue
- Worker threads: Migrate one candidate at a time
- Queue manager: Queue creation and backpressure
"""

from .producer_thread import producer_thread_main
from .queue_manager import QueueManager, WorkerDone
from .worker_thread import worker_thread_main

__all__ = [
    "producer_thread_main",
    "QueueManager",
    "WorkerDone",
    "worker_thread_main",
]
