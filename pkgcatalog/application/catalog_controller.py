import time
from functools import partial
from typing import Any, Callable, Protocol

from logly import logger
from PySide6.QtCore import QObject, Signal

from pkgcatalog.backends.registry import BackendRegistry, discover_backends
from pkgcatalog.core.catalog_types import InstalledPackage, Package, SearchResult, Selected
from pkgcatalog.core.metadata_store import MetadataStore
from pkgcatalog.core.search_engine import compile_query, search
from pkgcatalog.core.selection import SelectionResolver, selected_from_result
from pkgcatalog.infra.qt_worker import QtTaskRunner

Discover = Callable[[MetadataStore, str], BackendRegistry]


class TaskRunner(Protocol):
    def submit(
        self, task: Callable[[], Any], on_done: Callable[[Any], None], label: str = ""
    ) -> int: ...


class CatalogController(QObject):
    """Coordinates catalog state on the GUI thread and exposes results via Qt signals.

    Slow work (backend discovery, installed listing, search, metadata fetch) is
    dispatched to a task runner. Each task hands back exactly one value which is
    applied here; tasks never touch controller state themselves.

    Every request class carries a monotonic id and completions that are not the
    latest for their class are dropped, so the last request wins even if an older
    worker finishes later.
    """

    backends_ready = Signal(object)  # BackendRegistry
    installed_ready = Signal(object)  # list[InstalledPackage]
    search_results_ready = Signal(object)  # list[SearchResult]
    search_cleared = Signal()
    selection_ready = Signal(object)  # Selected
    selection_cleared = Signal()
    busy_changed = Signal(bool)

    def __init__(
        self,
        store: MetadataStore,
        locale: str,
        discover: Discover | None = None,
        runner: TaskRunner | None = None,
        timeout_sec: int = 60,
        parent: QObject | None = None,
    ):
        """Initializes the controller.

        Args:
            store: Metadata store loaded at startup.
            locale: Locale used for every localized lookup.
            discover: Backend discovery factory; defaults to probing the host.
            runner: Task runner; defaults to a `QtTaskRunner` owned by this object.
            timeout_sec: Backend subprocess timeout passed to discovery.
            parent: Optional Qt parent object.
        """
        super().__init__(parent)
        self._store = store
        self._locale = locale
        self._discover = discover or partial(discover_backends, timeout_sec=timeout_sec)
        if runner is None:
            qt_runner = QtTaskRunner(self)
            qt_runner.busy_changed.connect(self.busy_changed)
            runner = qt_runner
        self._runner = runner

        self._registry = BackendRegistry()
        self._installed: list[InstalledPackage] = []
        self._search_input = ""
        self._search_results: list[SearchResult] | None = None
        self._selected: Selected | None = None

        self._installed_job_id = 0
        self._search_job_id = 0
        self._selection_job_id = 0

    # ---- Read-only state
    @property
    def locale(self) -> str:
        return self._locale

    @property
    def store(self) -> MetadataStore:
        return self._store

    @property
    def registry(self) -> BackendRegistry:
        return self._registry

    @property
    def installed(self) -> list[InstalledPackage]:
        return list(self._installed)

    @property
    def search_input(self) -> str:
        return self._search_input

    @property
    def search_results(self) -> list[SearchResult] | None:
        return self._search_results

    @property
    def selected(self) -> Selected | None:
        return self._selected

    # ---- Backends / installed
    def start(self) -> None:
        """Discovers backends in the background, then lists installed packages."""
        store = self._store
        locale = self._locale
        discover = self._discover

        def load_backends() -> BackendRegistry:
            start = time.perf_counter()
            registry = discover(store, locale)
            elapsed = time.perf_counter() - start
            logger.info(f"Loaded {len(registry)} backends in {elapsed:.3f}s")
            return registry

        self._runner.submit(load_backends, self._on_backends_loaded, label="backends")

    def _on_backends_loaded(self, registry: BackendRegistry | None) -> None:
        if registry is None:
            return
        self._registry = registry
        self.backends_ready.emit(registry)
        self.refresh_installed()

    def refresh_installed(self) -> None:
        """Lists installed packages from every registered backend."""
        self._installed_job_id += 1
        self._runner.submit(
            self._registry.installed,
            partial(self._on_installed_loaded, self._installed_job_id),
            label="installed",
        )

    def _on_installed_loaded(self, job_id: int, installed: list[InstalledPackage] | None) -> None:
        if job_id != self._installed_job_id or installed is None:
            return
        self._installed = installed
        logger.info(f"Installed list updated: {len(installed)} packages")
        self.installed_ready.emit(list(installed))

    # ---- Search
    def set_search_input(self, text: str) -> None:
        self._search_input = text

    def submit_search(self, text: str | None = None) -> None:
        """Runs a search for `text` (or the current input) in the background.

        Empty input does nothing and leaves the current results as they are.
        """
        if text is not None:
            self._search_input = text
        query = self._search_input
        if not query:
            return

        pattern = compile_query(query)
        if pattern is None:
            return

        self._search_job_id += 1
        task = partial(search, self._store, pattern, self._locale, self._registry)
        self._runner.submit(
            task,
            partial(self._on_search_finished, self._search_job_id),
            label=f"search {query!r}",
        )

    def _on_search_finished(self, job_id: int, results: list[SearchResult] | None) -> None:
        if job_id != self._search_job_id or results is None:
            return
        self._search_results = results
        self.search_results_ready.emit(results)

    def clear_search(self) -> None:
        self._search_job_id += 1
        self._search_input = ""
        self._search_results = None
        self.search_cleared.emit()

    # ---- Selection
    def select_installed(self, index: int) -> None:
        if not 0 <= index < len(self._installed):
            logger.error(f"Failed to find installed package with index {index}")
            return
        item = self._installed[index]
        self.select_package(item.backend_name, item.package)

    def select_search_result(self, index: int) -> None:
        results = self._search_results
        if results is None:
            return
        if not 0 <= index < len(results):
            logger.error(f"Failed to find search result with index {index}")
            return
        self._selection_job_id += 1
        self._apply_selected(selected_from_result(results[index]))

    def select_package(self, backend_name: str, package: Package) -> None:
        """Fetches full metadata for `package` from its backend in the background.

        An unknown backend or a failed fetch leaves the current selection as is.
        """
        task = SelectionResolver(self._registry).prepare(backend_name, package)
        if task is None:
            return
        self._selection_job_id += 1
        self._runner.submit(
            task,
            partial(self._on_selection_fetched, self._selection_job_id),
            label=f"appstream {backend_name}:{package.id}",
        )

    def _on_selection_fetched(self, job_id: int, selected: Selected | None) -> None:
        if job_id != self._selection_job_id or selected is None:
            return
        self._apply_selected(selected)

    def _apply_selected(self, selected: Selected) -> None:
        self._selected = selected
        self.selection_ready.emit(selected)

    def select_none(self) -> None:
        self._selection_job_id += 1
        self._selected = None
        self.selection_cleared.emit()
