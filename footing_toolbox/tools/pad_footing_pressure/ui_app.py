from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional

from loguru import logger
from PySide6 import QtCore, QtWidgets

from .exports import export_excel
from .models import EXAMPLE_VALUES, INPUT_FIELDS, TOOLTIPS, UNITS
from .result_log import CSV_HEADER
from .session import FootingSession

FORMULA_TEXT = (
    "Case A / B (e ≤ ek):   qmax = P/(B·D) + 6M/(B·D²)\n"
    "Case C (e > ek):       qmax = P / (1.5·B·(D/2 − e))\n"
    "ek = M/P"
)
XLSX_DEFAULT_NAME = "footing_pressure_results.xlsx"


class FootingPressureWindow(QtWidgets.QMainWindow):
    """Form for P, M, B, D, e with live qmax, result log and CSV/Excel export."""

    def __init__(
        self,
        initial_inputs: Optional[Mapping[str, str]] = None,
        export_dir: Optional[Path] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ):
        super().__init__(parent)
        self.setWindowTitle("Pad Footing Bearing Pressure")
        self.setMinimumSize(820, 620)

        # Every window starts from the example values unless the host passes inputs.
        self.session = FootingSession(raw=initial_inputs)
        self._export_dir = export_dir or Path.home()
        self._edits: Dict[str, QtWidgets.QLineEdit] = {}

        self._build_ui()
        self._load_fields(self.session.raw)
        self._refresh()

    def _build_ui(self) -> None:
        central = QtWidgets.QWidget()
        self.setCentralWidget(central)
        layout = QtWidgets.QVBoxLayout(central)
        layout.setContentsMargins(10, 10, 10, 10)
        layout.setSpacing(10)

        fbox = QtWidgets.QGroupBox("Formulas")
        fl = QtWidgets.QVBoxLayout(fbox)
        formula = QtWidgets.QLabel(FORMULA_TEXT)
        formula.setTextInteractionFlags(QtCore.Qt.TextInteractionFlag.TextSelectableByMouse)
        fl.addWidget(formula)
        layout.addWidget(fbox)

        ibox = QtWidgets.QGroupBox("Inputs")
        grid = QtWidgets.QGridLayout(ibox)
        for row, key in enumerate(INPUT_FIELDS):
            label = QtWidgets.QLabel(f"{key}  ⓘ")
            label.setToolTip(TOOLTIPS[key])
            edit = QtWidgets.QLineEdit()
            edit.setPlaceholderText(f"Example: {EXAMPLE_VALUES[key]}")
            edit.setToolTip(TOOLTIPS[key])
            edit.textChanged.connect(lambda text, k=key: self._on_input_changed(k, text))
            grid.addWidget(label, row, 0)
            grid.addWidget(edit, row, 1)
            grid.addWidget(QtWidgets.QLabel(f"({UNITS[key]})"), row, 2)
            self._edits[key] = edit
        layout.addWidget(ibox)

        rbox = QtWidgets.QGroupBox("Results")
        rl = QtWidgets.QGridLayout(rbox)
        self.qmax_lbl = QtWidgets.QLabel("")
        self.case_lbl = QtWidgets.QLabel("")
        self.error_lbl = QtWidgets.QLabel("")
        self.error_lbl.setStyleSheet("color: #b91c1c;")
        self.error_lbl.setWordWrap(True)
        self.save_btn = QtWidgets.QPushButton("Save Result")
        self.export_csv_btn = QtWidgets.QPushButton("Export to CSV")
        self.export_xlsx_btn = QtWidgets.QPushButton("Export Excel (.xlsx)")
        self.example_btn = QtWidgets.QPushButton("Load Example")
        self.clear_btn = QtWidgets.QPushButton("Clear Log")
        rl.addWidget(self.qmax_lbl, 0, 0, 1, 3)
        rl.addWidget(self.case_lbl, 1, 0, 1, 3)
        rl.addWidget(self.error_lbl, 2, 0, 1, 3)
        rl.addWidget(self.save_btn, 3, 0)
        rl.addWidget(self.export_csv_btn, 3, 1)
        rl.addWidget(self.export_xlsx_btn, 3, 2)
        rl.addWidget(self.example_btn, 4, 0)
        rl.addWidget(self.clear_btn, 4, 1)
        layout.addWidget(rbox)

        tbox = QtWidgets.QGroupBox("Saved Results")
        tl = QtWidgets.QVBoxLayout(tbox)
        self.results_table = QtWidgets.QTableWidget()
        self.results_table.setColumnCount(len(CSV_HEADER))
        self.results_table.setHorizontalHeaderLabels(["Time", *CSV_HEADER[1:]])
        self.results_table.horizontalHeader().setSectionResizeMode(QtWidgets.QHeaderView.ResizeMode.Stretch)
        self.results_table.setEditTriggers(QtWidgets.QAbstractItemView.EditTrigger.NoEditTriggers)
        self.results_table.setAlternatingRowColors(True)
        tl.addWidget(self.results_table)
        layout.addWidget(tbox, 1)

        self.save_btn.clicked.connect(self._save_result)
        self.export_csv_btn.clicked.connect(self._export_csv)
        self.export_xlsx_btn.clicked.connect(self._export_xlsx)
        self.example_btn.clicked.connect(self._load_example)
        self.clear_btn.clicked.connect(self._clear_log)

    # ----- inputs -----

    def _load_fields(self, raw: Mapping[str, str]) -> None:
        for key, edit in self._edits.items():
            edit.blockSignals(True)
            edit.setText(raw.get(key, ""))
            edit.blockSignals(False)

    def _on_input_changed(self, key: str, text: str) -> None:
        self.session.set_input(key, text)
        self._refresh()

    def _load_example(self) -> None:
        self.session.reset_to_examples()
        self._load_fields(self.session.raw)
        self._refresh()

    # ----- display -----

    def _refresh(self) -> None:
        s = self.session
        if s.error:
            self.qmax_lbl.setText("")
            self.case_lbl.setText("")
            self.error_lbl.setText(s.error)
        else:
            self.qmax_lbl.setText(f"qmax = {s.display_qmax}")
            self.case_lbl.setText(s.case.value if s.case else "")
            self.error_lbl.setText("")
        self.save_btn.setEnabled(s.can_save)
        self.export_csv_btn.setEnabled(s.can_export)
        self.export_xlsx_btn.setEnabled(s.can_export)
        self.clear_btn.setEnabled(s.can_export)
        self._populate_table()

    def _populate_table(self) -> None:
        rows = self.session.log.rows()
        self.results_table.setRowCount(len(rows))
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                self.results_table.setItem(r, c, QtWidgets.QTableWidgetItem(value))

    # ----- log + exports -----

    def _save_result(self) -> None:
        if self.session.save_result() is None:
            return
        self._refresh()

    def _clear_log(self) -> None:
        self.session.clear_log()
        self._refresh()

    def _ask_save_path(self, title: str, default_name: str, file_filter: str) -> Optional[Path]:
        path, _ = QtWidgets.QFileDialog.getSaveFileName(self, title, str(self._export_dir / default_name), file_filter)
        if not path:
            return None
        p = Path(path)
        self._export_dir = p.parent
        return p

    def _export_csv(self) -> None:
        export = self.session.export_csv()
        if export is None:
            QtWidgets.QMessageBox.information(self, "Export", "Save a result first.")
            return
        target = self._ask_save_path("Export to CSV", export.filename, "CSV files (*.csv)")
        if target is None:
            return
        p = export.write(target.parent, target.name)
        logger.info(f"Exported {len(self.session.log)} result(s) to {p}")
        QtWidgets.QMessageBox.information(self, "Export", f"CSV saved to:\n{p}")

    def _export_xlsx(self) -> None:
        if not self.session.can_export:
            QtWidgets.QMessageBox.information(self, "Export", "Save a result first.")
            return
        target = self._ask_save_path("Export Excel", XLSX_DEFAULT_NAME, "Excel workbooks (*.xlsx)")
        if target is None:
            return
        p = export_excel(self.session.log, target.parent, filename=target.name)
        logger.info(f"Exported {len(self.session.log)} result(s) to {p}")
        QtWidgets.QMessageBox.information(self, "Export", f"Excel saved to:\n{p}")
