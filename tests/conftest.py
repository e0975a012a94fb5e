from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path
from typing import Iterator

import pytest

from signoff.backends.memory import MemoryBackend
from signoff.store import ApprovalStore


@pytest.fixture(scope="session", autouse=True)
def _isolated_signoff_home() -> Iterator[None]:
    """Point SIGNOFF_HOME at a throwaway directory so tests never touch ~/.signoff."""
    temp_root = Path(os.environ.get("TEMP", Path.cwd()))
    root = temp_root / "signoff_test_runs" / f"home_{uuid.uuid4().hex}"
    root.mkdir(parents=True, exist_ok=True)
    previous = os.environ.get("SIGNOFF_HOME")
    os.environ["SIGNOFF_HOME"] = str(root)
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop("SIGNOFF_HOME", None)
        else:
            os.environ["SIGNOFF_HOME"] = previous
        shutil.rmtree(root, ignore_errors=True)


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> Iterator[ApprovalStore]:
    with ApprovalStore(backend) as approvals:
        yield approvals


class ChangeCounter:
    """Listener that counts notifications."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


@pytest.fixture
def counter() -> ChangeCounter:
    return ChangeCounter()
