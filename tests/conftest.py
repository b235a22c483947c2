# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest
from openpyxl import Workbook

from dttools.logging.init import reset_logging

ION_COLUMNS = [
    "NO₃⁻(μg/m³)",
    "SO₄²⁻(μg/m³)",
    "NH₄⁺(μg/m³)",
    "Cl⁻(μg/m³)",
    "K⁺(μg/m³)",
    "Na⁺(μg/m³)",
    "Mg²⁺(μg/m³)",
    "Ca²⁺(μg/m³)",
]


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def ion_header() -> list[str]:
    # 日期 | 时间 | 8 ions | 备注 (not mapped)
    return ["日期", "时间", *ION_COLUMNS, "备注"]


@pytest.fixture()
def make_workbook() -> Callable[[Path, dict[str, list[list[object]]]], Path]:
    """Write a workbook with openpyxl so cell types (date/time/number) are kept as given."""
    def _make(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
        wb = Workbook()
        wb.remove(wb.active)
        for name, rows in sheets.items():
            ws = wb.create_sheet(title=name)
            for row in rows:
                ws.append(row)
        wb.save(path)
        return path
    return _make
