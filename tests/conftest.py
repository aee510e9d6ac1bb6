"""Shared fixtures: the sample C/H/O ffield on disk and its parameter tables."""

from __future__ import annotations

from pathlib import Path

import pytest

from reaxpot.core.parameters import ParameterRepository
from reaxpot.io.handlers.ffield_handler import FFieldHandler

from ffield_samples import ffield_text, write_text


@pytest.fixture
def ffield_path(tmp_path: Path) -> Path:
    return write_text(tmp_path / "ffield", ffield_text())


@pytest.fixture
def params(ffield_path: Path) -> ParameterRepository:
    return ParameterRepository.from_ffield(FFieldHandler(ffield_path))
