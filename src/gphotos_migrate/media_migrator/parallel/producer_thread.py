"""Producer thread: feeds discovered candidates to the workers."""

import logging
import threading
from queue import Full, Queue
from typing import Any, Callable, Iterable, List

logger = logging.getLogger(__name__)

# How often a blocked put re-checks the shutdown event
PUT_POLL_SECONDS = 0.1


def producer_thread_main(
    candidates: Iterable[Any],
    work_queue: Queue,
    worker_count: int,
    shutdown_event: threading.Event,
    errors: List[BaseException],
) -> None:
    """Put every candidate on the work queue, then one sentinel per worker.

    Sentinels are posted even if discovery fails or shutdown is requested,
    so the workers always terminate.

    Args:
        candidates: Lazy iterable of MediaCandidate (the walker)
        work_queue: Bounded work queue
        worker_count: Number of worker threads to release
        shutdown_event: Stop feeding new work when set
        errors: Receives the exception if discovery crashes
    """
    produced = 0
    try:
        for candidate in candidates:
            if not _put(work_queue, candidate, shutdown_event.is_set):
                logger.info(f"Producer stopped early: {{'produced': {produced}}}")
                break
            produced += 1
    except Exception as e:
        logger.error(f"Discovery failed: {{'error': {str(e)!r}, 'produced': {produced}}}", exc_info=True)
        errors.append(e)
    finally:
        for _ in range(worker_count):
            work_queue.put(None)
        logger.debug(f"Producer finished: {{'produced': {produced}}}")


def _put(work_queue: Queue, item: Any, stopped: Callable[[], bool]) -> bool:
    while not stopped():
        try:
            work_queue.put(item, timeout=PUT_POLL_SECONDS)
            return True
        except Full:
            continue
    return False
