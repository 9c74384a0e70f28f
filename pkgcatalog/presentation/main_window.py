from PySide6.QtCore import QModelIndex, Qt, QTimer
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QTableView,
    QVBoxLayout,
    QWidget,
)

from pkgcatalog.application.catalog_controller import CatalogController
from pkgcatalog.core.appstream_parser import markup_to_plain_text
from pkgcatalog.core.catalog_types import InstalledPackage, SearchResult, Selected
from pkgcatalog.presentation.table_models import (
    InstalledTableModel,
    SearchResultsTableModel,
    qicon_for,
)

_DETAILS_ICON_SIZE = 128


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, controller: CatalogController) -> None:
        super().__init__()
        self.setWindowTitle("Package Catalog")
        self.resize(960, 640)

        self.catalog = controller
        self.installed_model = InstalledTableModel(self)
        self.search_model = SearchResultsTableModel(self)

        self._build_ui()

        self.catalog.installed_ready.connect(self.on_installed_ready)
        self.catalog.search_results_ready.connect(self.on_search_results_ready)
        self.catalog.search_cleared.connect(self.on_search_cleared)
        self.catalog.selection_ready.connect(self.on_selection_ready)
        self.catalog.selection_cleared.connect(self.on_selection_cleared)
        self.catalog.busy_changed.connect(self.on_busy_changed)

        self.set_details(None)
        QTimer.singleShot(0, self.catalog.start)

    def _build_ui(self) -> None:
        self.search_edit = QLineEdit(self)
        self.search_edit.setPlaceholderText("Search software")
        self.search_edit.textChanged.connect(self.catalog.set_search_input)
        self.search_edit.returnPressed.connect(self.catalog.submit_search)
        self.clear_button = QPushButton("Clear", self)
        self.clear_button.clicked.connect(self.on_search_clear)
        QShortcut(QKeySequence(Qt.Key.Key_Escape), self.search_edit, self.on_search_clear)

        search_row = QHBoxLayout()
        search_row.addWidget(self.search_edit, 1)
        search_row.addWidget(self.clear_button)

        self.table = QTableView(self)
        self.table.setModel(self.installed_model)
        self.table.verticalHeader().setVisible(False)
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        self.table.setWordWrap(False)
        self.table.setAlternatingRowColors(True)
        self.table.setShowGrid(False)
        self.table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.table.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.table.activated.connect(self._on_row_activated)
        self.table.clicked.connect(self._on_row_activated)

        left = QWidget(self)
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(0, 0, 0, 0)
        left_layout.addLayout(search_row)
        left_layout.addWidget(self.table)

        self.back_button = QPushButton("Back", self)
        self.back_button.clicked.connect(self.catalog.select_none)
        self.icon_label = QLabel(self)
        self.icon_label.setFixedSize(_DETAILS_ICON_SIZE, _DETAILS_ICON_SIZE)
        self.name_label = QLabel(self)
        self.name_label.setWordWrap(True)
        self.summary_label = QLabel(self)
        self.summary_label.setWordWrap(True)
        self.components_text = QPlainTextEdit(self)
        self.components_text.setReadOnly(True)

        right = QWidget(self)
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(0, 0, 0, 0)
        right_layout.addWidget(self.back_button, 0, Qt.AlignmentFlag.AlignLeft)
        right_layout.addWidget(self.icon_label)
        right_layout.addWidget(self.name_label)
        right_layout.addWidget(self.summary_label)
        right_layout.addWidget(self.components_text, 1)

        splitter = QSplitter(self)
        splitter.addWidget(left)
        splitter.addWidget(right)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 2)
        self.setCentralWidget(splitter)

    # ---- Installed / search
    def on_installed_ready(self, packages_obj: object) -> None:
        raw = packages_obj if isinstance(packages_obj, list) else []
        packages = [p for p in raw if isinstance(p, InstalledPackage)]
        self.installed_model.set_packages(packages)
        self.statusBar().showMessage(f"{len(packages)} installed packages", 3000)

    def on_search_clear(self) -> None:
        """Drops the results; editing the box down to "" keeps them."""
        self.search_edit.clear()
        self.catalog.clear_search()

    def on_search_results_ready(self, results_obj: object) -> None:
        raw = results_obj if isinstance(results_obj, list) else []
        results = [r for r in raw if isinstance(r, SearchResult)]
        self.search_model.set_results(results)
        self.table.setModel(self.search_model)
        self.statusBar().showMessage(f"{len(results)} results", 3000)

    def on_search_cleared(self) -> None:
        self.search_model.set_results([])
        self.table.setModel(self.installed_model)

    def _on_row_activated(self, index: QModelIndex) -> None:
        if not index.isValid():
            return
        if self.table.model() is self.search_model:
            self.catalog.select_search_result(index.row())
        else:
            self.catalog.select_installed(index.row())

    # ---- Details
    def set_details(self, selected: Selected | None) -> None:
        if selected is None:
            self.back_button.setEnabled(False)
            self.icon_label.clear()
            self.name_label.setText("-")
            self.summary_label.setText("-")
            self.components_text.setPlainText("")
            return

        self.back_button.setEnabled(True)
        self.icon_label.setPixmap(
            qicon_for(selected.icon).pixmap(_DETAILS_ICON_SIZE, _DETAILS_ICON_SIZE)
        )
        self.name_label.setText(selected.name)
        self.summary_label.setText(selected.summary)

        locale = self.catalog.locale
        sections = []
        for component in selected.collection.components:
            lines = [component.name.resolve(locale)]
            if component.summary is not None:
                lines.append(component.summary.resolve(locale))
            if component.description is not None:
                lines.append(markup_to_plain_text(component.description.resolve(locale)))
            sections.append("\n".join(line for line in lines if line))
        self.components_text.setPlainText("\n\n".join(sections))

    def on_selection_ready(self, selected_obj: object) -> None:
        if isinstance(selected_obj, Selected):
            self.set_details(selected_obj)

    def on_selection_cleared(self) -> None:
        self.set_details(None)

    def on_busy_changed(self, busy: bool) -> None:
        if busy:
            self.statusBar().showMessage("Loading...")
        else:
            self.statusBar().clearMessage()
