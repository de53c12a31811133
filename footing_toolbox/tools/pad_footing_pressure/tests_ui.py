from __future__ import annotations

import os

import pytest

QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from openpyxl import load_workbook  # noqa: E402

from footing_toolbox.core.paths import HOME_ENV  # noqa: E402

from .models import EXAMPLE_VALUES  # noqa: E402
from .ui_app import FootingPressureWindow  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def window(qapp, tmp_path, monkeypatch):
    monkeypatch.setenv(HOME_ENV, str(tmp_path / "home"))
    monkeypatch.setattr(QtWidgets.QMessageBox, "information", lambda *a, **k: None)
    win = FootingPressureWindow(export_dir=tmp_path)
    yield win
    win.close()


def _answer_save_dialog(monkeypatch, path: str) -> None:
    monkeypatch.setattr(QtWidgets.QFileDialog, "getSaveFileName", lambda *a, **k: (path, ""))


def test_every_window_starts_from_examples(window, tmp_path):
    window._edits["P"].setText("7")
    assert window.session.raw["P"] == "7"
    window.close()

    again = FootingPressureWindow(export_dir=tmp_path)
    try:
        assert again.session.raw == EXAMPLE_VALUES
        assert {k: e.text() for k, e in again._edits.items()} == EXAMPLE_VALUES
    finally:
        again.close()
    assert not list((tmp_path / "home").rglob("*.json"))


def test_invalid_field_shows_error(window):
    window._edits["D"].setText("abc")
    assert window.error_lbl.text() == "Please enter valid positive numbers for all fields"
    assert window.qmax_lbl.text() == ""
    assert not window.save_btn.isEnabled()


def test_csv_export_writes_chosen_path(window, tmp_path, monkeypatch):
    assert not window.export_csv_btn.isEnabled()
    window._save_result()
    assert window.export_csv_btn.isEnabled()
    assert window.results_table.rowCount() == 1

    target = tmp_path / "out" / "site_a.csv"
    _answer_save_dialog(monkeypatch, str(target))
    window._export_csv()

    export = window.session.export_csv()
    assert export is not None
    assert target.read_bytes() == export.content.encode("utf-8")
    assert window._export_dir == target.parent


def test_excel_export_writes_chosen_path(window, tmp_path, monkeypatch):
    window._save_result()
    target = tmp_path / "site_a.xlsx"
    _answer_save_dialog(monkeypatch, str(target))
    window._export_xlsx()

    wb = load_workbook(target)
    assert wb["Results"].cell(row=2, column=7).value == "23.9"


def test_cancelled_excel_dialog_writes_nothing(window, tmp_path, monkeypatch):
    window._save_result()
    _answer_save_dialog(monkeypatch, "")
    window._export_xlsx()
    assert not list(tmp_path.glob("*.xlsx"))
