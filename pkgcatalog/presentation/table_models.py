from PySide6.QtCore import QAbstractTableModel, QModelIndex, QPersistentModelIndex, Qt
from PySide6.QtGui import QIcon

from pkgcatalog.core.catalog_types import (
    PLACEHOLDER_ICON_NAME,
    IconHandle,
    InstalledPackage,
    SearchResult,
)


def qicon_for(handle: IconHandle) -> QIcon:
    """Converts a toolkit-neutral icon handle into a QIcon (GUI thread only)."""
    if handle.path:
        return QIcon(handle.path)
    if handle.theme_name:
        return QIcon.fromTheme(handle.theme_name, QIcon.fromTheme(PLACEHOLDER_ICON_NAME))
    return QIcon.fromTheme(PLACEHOLDER_ICON_NAME)


class _RowsTableModel(QAbstractTableModel):
    """Read-only table over a list of rows; subclasses map rows to columns."""

    _HEADERS: tuple[str, ...] = ()

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._rows: list = []
        self._icons: dict[int, QIcon] = {}

    def rowCount(
        self,
        /,
        parent: QModelIndex | QPersistentModelIndex = QModelIndex(),
    ) -> int:
        if parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(
        self,
        /,
        parent: QModelIndex | QPersistentModelIndex = QModelIndex(),
    ) -> int:
        if parent.isValid():
            return 0
        return len(self._HEADERS)

    def headerData(
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.ItemDataRole.DisplayRole,
    ):
        if role != Qt.ItemDataRole.DisplayRole:
            return None
        if orientation != Qt.Orientation.Horizontal:
            return None
        if 0 <= section < len(self._HEADERS):
            return self._HEADERS[section]
        return None

    def data(
        self,
        index: QModelIndex | QPersistentModelIndex,
        /,
        role: int = Qt.ItemDataRole.DisplayRole,
    ) -> object | None:
        if not index.isValid():
            return None

        row = self._rows[index.row()]
        if role == Qt.ItemDataRole.DecorationRole and index.column() == 0:
            icon = self._icons.get(index.row())
            if icon is None:
                icon = qicon_for(self._icon_of(row))
                self._icons[index.row()] = icon
            return icon
        if role not in (Qt.ItemDataRole.DisplayRole, Qt.ItemDataRole.ToolTipRole):
            return None
        return self._column_text(row, index.column())

    def _icon_of(self, row) -> IconHandle:
        raise NotImplementedError

    def _column_text(self, row, column: int) -> str | None:
        raise NotImplementedError

    def _set_rows(self, rows: list) -> None:
        self.beginResetModel()
        self._rows = list(rows)
        self._icons = {}
        self.endResetModel()


class InstalledTableModel(_RowsTableModel):
    """Installed packages, already naturally sorted by the registry."""

    _HEADERS = ("Name", "Version", "Backend")

    def _icon_of(self, row: InstalledPackage) -> IconHandle:
        return row.package.icon

    def _column_text(self, row: InstalledPackage, column: int) -> str | None:
        if column == 0:
            return row.package.name
        if column == 1:
            return row.package.version
        if column == 2:
            return row.backend_name
        return None

    def set_packages(self, rows: list[InstalledPackage]) -> None:
        self._set_rows(rows)


class SearchResultsTableModel(_RowsTableModel):
    """Ranked search results; row order is the relevance order."""

    _HEADERS = ("Name", "Summary", "Backend")

    def _icon_of(self, row: SearchResult) -> IconHandle:
        return row.icon

    def _column_text(self, row: SearchResult, column: int) -> str | None:
        if column == 0:
            return row.name
        if column == 1:
            return row.summary
        if column == 2:
            return row.backend_name or "-"
        return None

    def set_results(self, rows: list[SearchResult]) -> None:
        self._set_rows(rows)
