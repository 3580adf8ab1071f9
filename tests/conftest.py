"""Shared fixtures for the ranlog tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from tests.samples import BOARD_ONLY, CAPTURE


@pytest.fixture
def capture_text() -> str:
    return CAPTURE


@pytest.fixture
def capture_dir(tmp_path: Path) -> Path:
    """A documents directory with two captures and one non-capture file."""
    (tmp_path / "CS0AT1041_sdir.log").write_text(CAPTURE, encoding="utf-8")
    (tmp_path / "site_b.txt").write_text(BOARD_ONLY, encoding="utf-8")
    (tmp_path / "notes.md").write_text(BOARD_ONLY, encoding="utf-8")
    return tmp_path
