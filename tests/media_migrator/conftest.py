"""Shared fixtures for media migrator tests."""

import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest
from PIL import Image

from gphotos_migrate.media_migrator.exiftool import ExifToolResponse

UPDATED = ExifToolResponse(stdout="    1 image files updated\n", stderr="")


class FakeExifTool:
    """Stands in for ExifToolProcess: records calls, returns canned responses.

    `respond` may be a response, an exception to raise, or a callable
    taking the argument list and returning either.
    """

    def __init__(self, respond: Any = UPDATED):
        self.respond = respond
        self.calls: List[List[str]] = []
        self.closed = False
        self._lock = threading.Lock()

    def execute(self, *args: str) -> ExifToolResponse:
        with self._lock:
            self.calls.append(list(args))
        outcome = self.respond(list(args)) if callable(self.respond) else self.respond
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True

    def written_paths(self) -> List[str]:
        return [call[-1] for call in self.calls]


@pytest.fixture
def make_exiftool():
    """FakeExifTool class, for tests that need a custom response."""
    return FakeExifTool


@pytest.fixture
def fake_exiftool():
    return FakeExifTool()


@pytest.fixture
def dirs(tmp_path):
    """google, output and error directories."""
    google = tmp_path / "google"
    output = tmp_path / "output"
    errors = tmp_path / "errors"
    for path in (google, output, errors):
        path.mkdir()
    return google, output, errors


def sidecar_data(
    title: str = "",
    taken: Optional[int] = 1577836800,
    created: Optional[int] = None,
    **extra: Any,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {"title": title}
    if taken is not None:
        data["photoTakenTime"] = {"timestamp": str(taken), "formatted": "Jan 1, 2020, 12:00:00 AM UTC"}
    if created is not None:
        data["creationTime"] = {"timestamp": str(created)}
    data.update(extra)
    return data


@pytest.fixture
def write_sidecar() -> Callable[..., Path]:
    def _write(path: Path, title: str = "", **kwargs: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(sidecar_data(title=title, **kwargs)), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def make_jpeg() -> Callable[..., Path]:
    """Write a small real JPEG; `color` makes the bytes distinct."""
    def _make(path: Path, color=(200, 30, 30)) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", (16, 16), color).save(path, format="JPEG")
        return path
    return _make


@pytest.fixture
def make_png() -> Callable[..., Path]:
    def _make(path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", (8, 8), (0, 0, 255)).save(path, format="PNG")
        return path
    return _make
