"""Worker thread for parallel media migration.

Worker threads:
1. Pull MediaCandidate from work queue
2. Run the per-file migrator (copy, exiftool write, rename)
3. Put the MigrationResult in results queue

Exiftool serializes the writes itself; the threads overlap file copies,
sidecar parsing and renames with it.
"""

import logging
import threading
from queue import Queue

from ..errors import classify_error
from ..file_migrator import FileMigrator
from ..models import Failure
from .queue_manager import WorkerDone

logger = logging.getLogger(__name__)


def worker_thread_main(
    thread_id: int,
    work_queue: Queue,
    results_queue: Queue,
    migrator: FileMigrator,
    shutdown_event: threading.Event,
) -> None:
    """Main function for worker thread.

    Runs until it receives the None sentinel. After shutdown is requested,
    remaining candidates are skipped without touching their files.

    Args:
        thread_id: Unique identifier for this worker thread
        work_queue: Queue of MediaCandidate, terminated by None
        results_queue: Queue for MigrationResult objects
        migrator: Shared per-file migrator
        shutdown_event: Event to signal cancellation
    """
    logger.debug(f"Worker thread {thread_id} started")

    migrated_count = 0
    failed_count = 0
    skipped_count = 0

    try:
        while True:
            candidate = work_queue.get()
            try:
                if candidate is None:
                    logger.debug(f"Worker thread {thread_id} received shutdown sentinel")
                    break

                if shutdown_event.is_set():
                    skipped_count += 1
                    continue

                try:
                    result = migrator.migrate(candidate)
                except Exception as e:
                    # migrate() reports its own failures; this is a bug guard
                    logger.error(f"Worker {thread_id} failed to migrate {candidate.path}: {e}", exc_info=True)
                    result = Failure(
                        source_path=candidate.path,
                        sidecar_path=candidate.sidecar_path,
                        kind=classify_error(e),
                        detail=str(e),
                    )

                if result.ok:
                    migrated_count += 1
                else:
                    failed_count += 1
                results_queue.put(result)
            finally:
                work_queue.task_done()
    finally:
        results_queue.put(WorkerDone(thread_id))
        logger.debug(
            f"Worker thread {thread_id} shutting down "
            f"(migrated={migrated_count}, failed={failed_count}, skipped={skipped_count})"
        )
