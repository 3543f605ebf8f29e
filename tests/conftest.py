# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from patrimony.config.loader import ItemDefaults
from patrimony.logging.init import reset_logging
from patrimony.models.item import ItemStatus, PatrimonyItem


@pytest.fixture(autouse=True)
def _fresh_logging():
    # handlers bind sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "files").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """storage:
  backend: local
  local_directory: ./data
import:
  batch_size: 2
defaults:
  category: Other
  location: To be defined
  responsible: To be defined
  status: active
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "patrimony.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def defaults() -> ItemDefaults:
    return ItemDefaults()


@pytest.fixture()
def write_csv(temp_workdir: Path) -> Callable[[str, str], Path]:
    def _write(name: str, text: str) -> Path:
        p = temp_workdir / "files" / name
        p.write_text(text, encoding="utf-8")
        return p
    return _write


@pytest.fixture()
def make_workbook(temp_workdir: Path) -> Callable[..., Path]:
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        p = temp_workdir / "files" / name
        with pd.ExcelWriter(p, engine="openpyxl") as writer:
            for sheet, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
        return p
    return _make


def make_item(
    asset_tag: int,
    name: str = "Notebook",
    *,
    acquisition_date: str = "2024-03-15",
    location: str = "Room 1",
    responsible: str = "Ana",
    item_id: str = "",
    value: float = 0.0,
    status: ItemStatus = ItemStatus.ACTIVE,
) -> PatrimonyItem:
    return PatrimonyItem(
        id=item_id,
        asset_tag=asset_tag,
        name=name,
        category="Other",
        location=location,
        acquisition_date=acquisition_date,
        value=value,
        status=status,
        description="",
        responsible=responsible,
    )


@pytest.fixture()
def item_factory() -> Callable[..., PatrimonyItem]:
    return make_item
