"""Queue management for parallel media migration.

Manages work and results queues with backpressure control.
"""

import logging
from dataclasses import dataclass
from queue import Queue
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerDone:
    """Posted on the results queue by a worker after its last result."""
    thread_id: int


class QueueManager:
    """Manages queues for parallel migration with backpressure.

    Creates and manages:
    - Work queue: MediaCandidate objects for worker threads, then one
      None sentinel per worker
    - Results queue: MigrationResult objects for the consumer, then one
      WorkerDone marker per worker

    Backpressure is provided by maxsize limits on queues: discovery
    stalls while workers are busy, and workers stall while the consumer
    does not pull results.
    """

    def __init__(self, work_queue_maxsize: int = 1000, results_queue_maxsize: int = 1000):
        """Initialize queue manager.

        Args:
            work_queue_maxsize: Maximum size of work queue (backpressure limit)
            results_queue_maxsize: Maximum size of results queue (backpressure limit)
        """
        self.work_queue_maxsize = work_queue_maxsize
        self.results_queue_maxsize = results_queue_maxsize

        self.work_queue: Optional[Queue] = None
        self.results_queue: Optional[Queue] = None

        logger.debug(
            f"QueueManager initialized: {{'work_maxsize': {work_queue_maxsize}, "
            f"'results_maxsize': {results_queue_maxsize}}}"
        )

    def create_queues(self) -> Tuple[Queue, Queue]:
        """Create work and results queues.

        Returns:
            Tuple of (work_queue, results_queue)
        """
        self.work_queue = Queue(maxsize=self.work_queue_maxsize)
        self.results_queue = Queue(maxsize=self.results_queue_maxsize)
        return self.work_queue, self.results_queue
