"""Lazy stream of migration results for a whole Takeout tree.

Architecture:
- 1 producer thread running discovery, feeding a bounded work queue
- N worker threads running the per-file migrator
- the caller's thread draining the bounded results queue

Results come out in completion order. The stream starts its threads on
the first pull and cannot be restarted. Closing it early lets every
remaining candidate finish and discards the results, so no temporary
file is left behind; only then is exiftool shut down. `cancel()` stops
feeding new candidates so an interrupted run finishes quickly with the
unprocessed files left untouched in the source tree.

An owned exiftool is stopped as soon as the stream is exhausted. A
stream dropped before that is finalized as if cancelled and closed.
"""

import logging
import threading
import weakref
from pathlib import Path
from queue import Empty, Queue
from typing import Iterator, List, Optional

from .config import MigrationConfig
from .discovery import MediaDiscovery
from .exiftool import ExifToolProcess
from .file_migrator import FileMigrator
from .metadata_writer import MetadataWriter
from .models import MigrationResult
from .parallel import QueueManager, WorkerDone, producer_thread_main, worker_thread_main
from .sidecar_registry import SidecarRegistry

logger = logging.getLogger(__name__)

# How often an abandoned stream re-checks its threads while draining
DRAIN_POLL_SECONDS = 0.1


class MigrationStream:
    """Iterator of MigrationResult over one source tree.

    Usage:
        with MigrationStream(google_dir, output_dir, error_dir) as stream:
            for result in stream:
                ...

    Args:
        google_dir: Source tree (Takeout "Google Photos" folder or any parent)
        output_dir: Flat directory for migrated files
        error_dir: Flat directory for diverted files and their sidecars
        config: Pipeline settings; defaults when omitted
        exiftool: Shared exiftool; when omitted the stream starts its own
            and stops it on close
    """

    def __init__(
        self,
        google_dir: Path,
        output_dir: Path,
        error_dir: Path,
        config: Optional[MigrationConfig] = None,
        exiftool=None,
    ):
        self.google_dir = google_dir
        self.output_dir = output_dir
        self.error_dir = error_dir
        self.config = config or MigrationConfig()

        self._owns_exiftool = exiftool is None
        if exiftool is None:
            exiftool = ExifToolProcess(
                executable=self.config.exiftool_path,
                task_timeout_ms=self.config.task_timeout_ms,
            )
        self.exiftool = exiftool

        self.registry = SidecarRegistry()
        self.discovery = MediaDiscovery(google_dir, self.registry, exclude={output_dir, error_dir})
        self.migrator = FileMigrator(
            output_dir,
            error_dir,
            MetadataWriter(exiftool, ignore_minor_errors=self.config.ignore_minor_errors),
            registry=self.registry,
            fix_extensions=self.config.fix_extensions,
        )

        self.queue_manager = QueueManager(self.config.queue_maxsize, self.config.queue_maxsize)
        self._results_queue: Optional[Queue] = None
        self._shutdown_event = threading.Event()
        self._threads: List[threading.Thread] = []
        self._producer_errors: List[BaseException] = []
        self._workers_done = 0
        self._started = False
        self._finished = False
        self._closed = False
        self._finalizer: Optional[weakref.finalize] = None

    @property
    def worker_count(self) -> int:
        return self.config.worker_threads

    def __iter__(self) -> Iterator[MigrationResult]:
        return self

    def __next__(self) -> MigrationResult:
        if self._closed or self._finished:
            raise StopIteration
        if not self._started:
            self._start()

        result = self._next_result()
        if result is None:
            self._finished = True
            try:
                self._join_threads()
                self._raise_producer_error()
            finally:
                self.close()
            raise StopIteration
        return result

    def __enter__(self) -> "MigrationStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is KeyboardInterrupt:
            self.cancel()
        self.close()

    def cancel(self) -> None:
        """Stop feeding new candidates; in-flight migrations still finish."""
        if not self._shutdown_event.is_set():
            logger.warning("Migration cancelled: finishing in-flight files")
            self._shutdown_event.set()

    def close(self) -> None:
        """Drain and discard remaining results, join threads, stop exiftool."""
        if self._closed:
            return
        if self._finalizer is not None:
            self._finalizer.detach()

        try:
            if self._started and not self._finished:
                discarded = 0
                while self._next_result() is not None:
                    discarded += 1
                self._finished = True
                self._join_threads()
                if discarded:
                    logger.info(f"Stream closed early: {{'discarded_results': {discarded}}}")
        finally:
            self._closed = True
            if self._owns_exiftool:
                self.exiftool.close()
            logger.info(f"Migration stream closed: {{'google_dir': {str(self.google_dir)!r}}}")

    def _start(self) -> None:
        self._started = True
        work_queue, self._results_queue = self.queue_manager.create_queues()

        logger.info(
            f"Migration stream started: {{'google_dir': {str(self.google_dir)!r}, "
            f"'workers': {self.worker_count}, 'task_timeout_ms': {self.config.task_timeout_ms}}}"
        )

        producer = threading.Thread(
            target=producer_thread_main,
            args=(self.discovery.walk(), work_queue, self.worker_count, self._shutdown_event, self._producer_errors),
            name="migrate-producer",
            daemon=True,
        )
        self._threads.append(producer)

        for thread_id in range(self.worker_count):
            worker = threading.Thread(
                target=worker_thread_main,
                args=(thread_id, work_queue, self._results_queue, self.migrator, self._shutdown_event),
                name=f"migrate-worker-{thread_id}",
                daemon=True,
            )
            self._threads.append(worker)

        for thread in self._threads:
            thread.start()

        self._finalizer = weakref.finalize(
            self,
            _finish_abandoned,
            self._shutdown_event,
            self._results_queue,
            list(self._threads),
            self.exiftool if self._owns_exiftool else None,
        )

    def _next_result(self) -> Optional[MigrationResult]:
        """Next result in completion order, or None once every worker is done."""
        while self._workers_done < self.worker_count:
            item = self._results_queue.get()
            if isinstance(item, WorkerDone):
                self._workers_done += 1
                continue
            return item
        return None

    def _join_threads(self) -> None:
        for thread in self._threads:
            thread.join()

    def _raise_producer_error(self) -> None:
        if self._producer_errors:
            raise self._producer_errors[0]


def _finish_abandoned(
    shutdown_event: threading.Event,
    results_queue: Queue,
    threads: List[threading.Thread],
    exiftool,
) -> None:
    """Finalizer for a stream dropped before it finished.

    Stops feeding new candidates, lets in-flight files finish and
    discards their results, then stops an owned exiftool.
    """
    logger.warning("Migration stream dropped unfinished: finishing in-flight files")
    shutdown_event.set()
    while any(thread.is_alive() for thread in threads):
        try:
            results_queue.get(timeout=DRAIN_POLL_SECONDS)
        except Empty:
            continue
    if exiftool is not None:
        exiftool.close()


def migrate_google_dir(
    google_dir: Path,
    output_dir: Path,
    error_dir: Path,
    config: Optional[MigrationConfig] = None,
    exiftool=None,
) -> Iterator[MigrationResult]:
    """
    Migrate a Takeout tree, yielding one result per media file as it completes.

    Closing the generator early (or dropping it) finishes the remaining
    files before exiftool is stopped.
    """
    stream = MigrationStream(google_dir, output_dir, error_dir, config=config, exiftool=exiftool)
    try:
        yield from stream
    finally:
        stream.close()
