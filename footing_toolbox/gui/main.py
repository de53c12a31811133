from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Type

from loguru import logger
from PySide6.QtCore import Qt
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSplitter,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from pydantic import BaseModel

from footing_toolbox.core.loader import discover_tools
from footing_toolbox.core.logging import configure_logging
from footing_toolbox.core.schema_utils import validate_inputs

APP_STYLESHEET = """
QWidget {
    color: #1f2933;
}
QListWidget#ToolList {
    background: rgba(255, 255, 255, 0.75);
    border: 1px solid rgba(17, 24, 39, 0.12);
    border-radius: 14px;
    padding: 6px;
}
QListWidget#ToolList::item {
    padding: 8px 10px;
    margin: 2px 4px;
    border-radius: 8px;
}
QListWidget#ToolList::item:selected {
    background: #1f4b6e;
    color: #f8fafc;
}
QLabel#TitleLabel {
    font-size: 18px;
    font-weight: 600;
    color: #0f172a;
}
"""


class MainWindow(QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Footing Toolbox")
        self.resize(900, 560)

        self.tools: List[Any] = discover_tools()
        self.tool_by_id: Dict[str, Any] = {t.meta.id: t for t in self.tools}
        self.active_tool_id: Optional[str] = None

        splitter = QSplitter(Qt.Orientation.Horizontal)

        self.list = QListWidget()
        self.list.setObjectName("ToolList")
        self.list.setMinimumWidth(260)
        for t in self.tools:
            item = QListWidgetItem(f"{t.meta.name}\n{t.meta.category} · v{t.meta.version}")
            item.setData(Qt.ItemDataRole.UserRole, t.meta.id)
            self.list.addItem(item)
        self.list.currentItemChanged.connect(self.on_tool_changed)
        splitter.addWidget(self.list)

        right = QWidget()
        rlay = QVBoxLayout(right)
        rlay.setContentsMargins(16, 16, 16, 16)

        self.title = QLabel("Select a tool")
        self.title.setObjectName("TitleLabel")
        self.desc = QLabel("")
        self.desc.setWordWrap(True)

        btn_row = QWidget()
        btn_lay = QHBoxLayout(btn_row)
        btn_lay.setContentsMargins(0, 0, 0, 0)
        self.run_btn = QPushButton("Open")
        self.run_btn.clicked.connect(self.run_active_tool)
        self.run_btn.setEnabled(False)
        self.batch_btn = QPushButton("Run example (calc package)")
        self.batch_btn.clicked.connect(self.run_active_batch)
        self.batch_btn.setEnabled(False)
        btn_lay.addWidget(self.run_btn)
        btn_lay.addWidget(self.batch_btn)
        btn_lay.addStretch(1)

        self.status_label = QLabel("Ready.")
        self.output = QTextEdit()
        self.output.setReadOnly(True)

        rlay.addWidget(self.title)
        rlay.addWidget(self.desc)
        rlay.addWidget(btn_row)
        rlay.addWidget(self.status_label)
        rlay.addWidget(self.output, 1)
        splitter.addWidget(right)
        splitter.setStretchFactor(1, 1)

        self.setCentralWidget(splitter)

        if self.tools:
            self.list.setCurrentRow(0)
        else:
            self.status_label.setText("No tools found.")

    def on_tool_changed(self, current: Optional[QListWidgetItem], _previous: Optional[QListWidgetItem]) -> None:
        if current is None:
            self.active_tool_id = None
            self.run_btn.setEnabled(False)
            self.batch_btn.setEnabled(False)
            return
        self.active_tool_id = str(current.data(Qt.ItemDataRole.UserRole))
        tool = self.tool_by_id[self.active_tool_id]
        self.title.setText(tool.meta.name)
        self.desc.setText(tool.meta.description)
        self.run_btn.setEnabled(True)
        self.batch_btn.setEnabled(hasattr(tool, "run_batch"))

    def _validated_defaults(self, tool: Any) -> Optional[Dict[str, Any]]:
        raw = tool.default_inputs()
        model: Optional[Type[BaseModel]] = getattr(tool, "InputModel", None)
        validated, err = validate_inputs(model, raw)
        if err:
            QMessageBox.warning(self, "Input validation error", err)
            return None
        return validated

    def run_active_tool(self) -> None:
        if not self.active_tool_id:
            return
        tool = self.tool_by_id[self.active_tool_id]
        validated = self._validated_defaults(tool)
        if validated is None:
            return
        try:
            out = tool.run(validated)
        except Exception as e:
            logger.exception(e)
            self.status_label.setText("Failed.")
            QMessageBox.critical(self, "Tool error", str(e))
            return
        self.status_label.setText("Launched.")
        self.output.append(json.dumps(out, indent=2))

    def run_active_batch(self) -> None:
        if not self.active_tool_id:
            return
        tool = self.tool_by_id[self.active_tool_id]
        validated = self._validated_defaults(tool)
        if validated is None:
            return
        try:
            out = tool.run_batch(validated)
        except Exception as e:
            logger.exception(e)
            self.status_label.setText("Failed.")
            QMessageBox.critical(self, "Tool error", str(e))
            return
        self.status_label.setText("Done." if out.get("ok") else "Invalid inputs.")
        self.output.append(json.dumps(out, indent=2, ensure_ascii=False))


def main() -> None:
    configure_logging()
    app = QApplication([])
    font = QFont("Segoe UI", 10)
    font.setHintingPreference(QFont.HintingPreference.PreferFullHinting)
    app.setFont(font)
    app.setStyleSheet(APP_STYLESHEET)
    w = MainWindow()
    w.show()
    w.raise_()
    w.activateWindow()
    app.exec()


if __name__ == "__main__":
    main()
