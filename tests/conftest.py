"""
Shared fixtures for refstore tests.

Assets are real SQLite files built in a temporary directory. The only stand-in
is failing_copy, which makes destination writes fail part way through a copy.
"""

from __future__ import annotations

import builtins
import tempfile
from pathlib import Path
from typing import Callable, Iterator

import pytest

import refstore.provision.copier as copier_module
from refstore.paths import DatabaseDescriptor, PathResolver
from refstore.provision import Provisioner, RecordingObserver
from refstore.schema import get_registry, reset_registry
from refstore.store import ReferenceDatabase


@pytest.fixture(autouse=True)
def fresh_registry() -> Iterator[None]:
    """Drop the process-wide schema registry after each test."""
    yield
    reset_registry()


@pytest.fixture
def workdir() -> Iterator[Path]:
    """Create temporary directory holding assets/ and app/databases/."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def asset_dir(workdir: Path) -> Path:
    path = workdir / "assets"
    path.mkdir()
    return path


@pytest.fixture
def data_dir(workdir: Path) -> Path:
    # Not created: provisioning must create the directory chain
    return workdir / "app" / "databases"


@pytest.fixture
def paths(asset_dir: Path, data_dir: Path) -> PathResolver:
    return PathResolver(asset_dir, data_dir)


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def provisioner(observer: RecordingObserver) -> Provisioner:
    # Small buffer so every copy takes several chunks
    return Provisioner(buffer_size=64, observer=observer)


@pytest.fixture
def make_database(paths: PathResolver) -> Iterator:
    """Factory for ReferenceDatabase instances, closed after the test."""
    created: list[ReferenceDatabase] = []

    def factory(identifier: str, expected_version: int) -> ReferenceDatabase:
        database = ReferenceDatabase(
            DatabaseDescriptor(identifier, expected_version),
            paths,
            registry=get_registry(),
        )
        created.append(database)
        return database

    yield factory

    for database in created:
        database.close()


class FailingTarget:
    """Destination stream whose write() fails once fail_after chunks are written."""

    def __init__(self, stream, fail_after: int) -> None:
        self._stream = stream
        self.fail_after = fail_after
        self.writes = 0

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def write(self, data: bytes) -> int:
        if self.writes >= self.fail_after:
            raise OSError(28, "No space left on device")
        self.writes += 1
        return self._stream.write(data)

    def flush(self) -> None:
        self._stream.flush()

    def __enter__(self) -> FailingTarget:
        return self

    def __exit__(self, *exc_info) -> None:
        self._stream.close()


@pytest.fixture
def failing_copy(monkeypatch) -> Callable[[int], dict]:
    """Make the copier's destination writes fail after N chunks.

    Returns a function taking N. It returns a dict of the streams the copier
    opens, keyed by mode ("rb" for the asset, "wb" for the
    destination).
    """
    opened: dict = {}

    def arm(fail_after: int) -> dict:
        def fake_open(path, mode="r", *args, **kwargs):
            stream = builtins.open(path, mode, *args, **kwargs)
            if mode == "wb":
                stream = FailingTarget(stream, fail_after)
            opened[mode] = stream
            return stream

        monkeypatch.setattr(copier_module, "open", fake_open, raising=False)
        return opened

    return arm
