"""Long-lived ExifTool process.

ExifTool is started once with ``-stay_open True -@ -`` and fed one
argument per line on stdin. Each request ends with ``-executeN``; the
answer on stdout, and on stderr via ``-echo4``, ends with ``{readyN}``.

Requests are serialized by a single-thread executor: exiftool handles
one command at a time anyway, and a single reader per pipe keeps the
framing intact. The per-task deadline starts when the request is written
to exiftool, so time spent waiting behind other requests does not count.

A request that times out kills the process tree; the in-flight read
then hits EOF, and the next request starts a fresh process.
"""

import itertools
import logging
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import IO, List, Optional, Sequence

import psutil

from .errors import ExifToolCrashedError, TaskTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TASK_TIMEOUT_MS = 30000

# Seconds to wait for exiftool to exit after "-stay_open False"
SHUTDOWN_GRACE_SECONDS = 5.0


@dataclass
class ExifToolResponse:
    """Raw answer to one request."""
    stdout: str
    stderr: str

    @property
    def errors(self) -> List[str]:
        return [line.strip() for line in self.stderr.splitlines() if line.strip().startswith("Error")]

    @property
    def warnings(self) -> List[str]:
        return [line.strip() for line in self.stderr.splitlines() if line.strip().startswith("Warning")]


class ExifToolProcess:
    """One exiftool process shared by all worker threads.

    Usage:
        with ExifToolProcess(task_timeout_ms=30000) as exiftool:
            response = exiftool.execute("-overwrite_original", "-XMP:Rating=5", "/path/IMG.jpg")
    """

    def __init__(
        self,
        executable: str = "exiftool",
        task_timeout_ms: int = DEFAULT_TASK_TIMEOUT_MS,
        common_args: Sequence[str] = ("-charset", "filename=utf8"),
    ) -> None:
        self.executable = executable
        self.task_timeout_ms = task_timeout_ms
        self.common_args = list(common_args)

        self._process: Optional[subprocess.Popen] = None
        self._executor: Optional[ThreadPoolExecutor] = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="exiftool"
        )
        self._sequence = itertools.count(1)
        # Guards _process and _running_task against the killing caller
        self._state_lock = threading.Lock()
        self._running_task: Optional[int] = None
        self._closed = False

    @property
    def task_timeout_seconds(self) -> float:
        return self.task_timeout_ms / 1000.0

    @property
    def pid(self) -> Optional[int]:
        with self._state_lock:
            return self._process.pid if self._process is not None else None

    def __enter__(self) -> "ExifToolProcess":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def execute(self, *args: str) -> ExifToolResponse:
        """
        Run one exiftool command and wait for its answer.

        Args:
            *args: exiftool arguments, one per element, no newlines

        Returns:
            The stdout and stderr of the command

        Raises:
            TaskTimeoutError: If no answer arrived within the task timeout
            ExifToolCrashedError: If the process died during the request
            RuntimeError: If the process has been closed
        """
        if self._closed or self._executor is None:
            raise RuntimeError("ExifTool process is closed")

        for arg in args:
            if "\n" in arg or "\r" in arg:
                raise ValueError(f"exiftool argument contains a line break: {arg!r}")

        task_id = next(self._sequence)
        sent = threading.Event()
        future = self._executor.submit(self._run_task, task_id, list(args), sent)

        # Queued behind a hung request: that request's caller kills the process
        sent.wait()
        try:
            return future.result(timeout=self.task_timeout_seconds)
        except FutureTimeoutError:
            self._kill_if_running(task_id)
            raise TaskTimeoutError(
                f"exiftool did not answer within {self.task_timeout_ms} ms",
                task_id=task_id,
            )

    def close(self) -> None:
        """Let queued requests finish, then stop the process."""
        if self._closed:
            return
        self._closed = True

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

        with self._state_lock:
            process = self._process
            self._process = None

        if process is not None:
            self._stop_process(process)

    def _run_task(self, task_id: int, args: List[str], sent: threading.Event) -> ExifToolResponse:
        try:
            return self._send_and_read(task_id, args, sent)
        finally:
            sent.set()

    def _send_and_read(self, task_id: int, args: List[str], sent: threading.Event) -> ExifToolResponse:
        with self._state_lock:
            self._running_task = task_id
        try:
            process = self._ensure_process()
        except OSError as e:
            with self._state_lock:
                self._running_task = None
            raise ExifToolCrashedError(f"Cannot start exiftool: {e}", executable=self.executable) from e

        marker = f"{{ready{task_id}}}"
        payload = "\n".join([*self.common_args, *args, "-echo4", marker, f"-execute{task_id}"]) + "\n"
        logger.debug(f"exiftool request: {{'task': {task_id}, 'args': {args!r}}}")

        try:
            process.stdin.write(payload.encode("utf-8"))
            process.stdin.flush()
            sent.set()
            stdout = self._read_until(process.stdout, marker)
            stderr = self._read_until(process.stderr, marker)
        except (OSError, ValueError, ExifToolCrashedError) as e:
            self._discard_process(process)
            if isinstance(e, ExifToolCrashedError):
                raise
            raise ExifToolCrashedError(f"exiftool pipe failed: {e}", task_id=task_id) from e
        finally:
            with self._state_lock:
                self._running_task = None

        logger.debug(f"exiftool response: {{'task': {task_id}, 'stdout': {stdout!r}, 'stderr': {stderr!r}}}")
        return ExifToolResponse(stdout=stdout, stderr=stderr)

    def _ensure_process(self) -> subprocess.Popen:
        with self._state_lock:
            if self._process is not None and self._process.poll() is None:
                return self._process

            command = [self.executable, "-stay_open", "True", "-@", "-"]
            self._process = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
            logger.info(f"Started exiftool: {{'pid': {self._process.pid}, 'executable': {self.executable!r}}}")
            return self._process

    @staticmethod
    def _read_until(stream: IO[bytes], marker: str) -> str:
        lines = []
        while True:
            line = stream.readline()
            if not line:
                raise ExifToolCrashedError("exiftool exited before answering")
            text = line.decode("utf-8", errors="replace")
            if text.strip() == marker:
                return "".join(lines)
            lines.append(text)

    def _kill_if_running(self, task_id: int) -> None:
        """Kill the process only if the timed-out task is the one it is working on."""
        with self._state_lock:
            if self._running_task != task_id or self._process is None:
                return
            process = self._process
        logger.warning(f"Killing exiftool after task timeout: {{'task': {task_id}, 'pid': {process.pid}}}")
        _kill_process_tree(process.pid)

    def _discard_process(self, process: subprocess.Popen) -> None:
        with self._state_lock:
            if self._process is process:
                self._process = None
        _kill_process_tree(process.pid)
        try:
            process.wait(timeout=SHUTDOWN_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.error(f"exiftool did not exit after kill: {{'pid': {process.pid}}}")
        _close_pipes(process)

    def _stop_process(self, process: subprocess.Popen) -> None:
        try:
            process.stdin.write(b"-stay_open\nFalse\n")
            process.stdin.flush()
            process.stdin.close()
            process.wait(timeout=SHUTDOWN_GRACE_SECONDS)
            logger.info(f"Stopped exiftool: {{'pid': {process.pid}}}")
        except (OSError, ValueError, subprocess.TimeoutExpired) as e:
            logger.warning(f"exiftool did not stop cleanly, killing: {{'pid': {process.pid}, 'error': {str(e)!r}}}")
            _kill_process_tree(process.pid)
            try:
                process.wait(timeout=SHUTDOWN_GRACE_SECONDS)
            except subprocess.TimeoutExpired:
                logger.error(f"exiftool did not exit after kill: {{'pid': {process.pid}}}")
        finally:
            _close_pipes(process)


def _kill_process_tree(pid: int) -> None:
    """Kill a process and its children (the Windows exiftool.exe starts perl)."""
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return
    for child in parent.children(recursive=True):
        try:
            child.kill()
        except psutil.NoSuchProcess:
            pass
    try:
        parent.kill()
    except psutil.NoSuchProcess:
        pass


def _close_pipes(process: subprocess.Popen) -> None:
    for stream in (process.stdin, process.stdout, process.stderr):
        if stream is not None:
            try:
                stream.close()
            except OSError:
                pass
