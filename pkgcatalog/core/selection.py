from functools import partial
from typing import Callable

from logly import logger

from pkgcatalog.backends.base import Backend, BackendError
from pkgcatalog.backends.registry import BackendRegistry

from .catalog_types import Package, SearchResult, Selected


def fetch_selected(backend: Backend, backend_name: str, package: Package) -> Selected | None:
    """Fetches full metadata for `package`; runs on a worker thread.

    Returns:
        The hydrated selection, or None if the backend could not provide metadata.
    """
    try:
        collection = backend.appstream(package)
    except BackendError as e:
        logger.error(f"Failed to get appstream data for {package.id}: {e}")
        return None

    return Selected(
        backend_name=backend_name,
        id=package.id,
        name=package.name,
        summary=package.summary,
        icon=package.icon,
        collection=collection,
    )


def selected_from_result(result: SearchResult) -> Selected:
    """Search results already carry their collection, so no fetch is needed."""
    return Selected(
        backend_name=result.backend_name,
        id=result.id,
        name=result.name,
        summary=result.summary,
        icon=result.icon,
        collection=result.collection,
    )


class SelectionResolver:
    """Turns a (backend name, package) pair into a self-contained fetch task."""

    def __init__(self, registry: BackendRegistry):
        self._registry = registry

    def prepare(
        self, backend_name: str, package: Package
    ) -> Callable[[], Selected | None] | None:
        """Looks up the owning backend.

        Returns:
            A callable to run on a worker thread, or None if the backend is not
            registered (logged; the caller must leave its selection untouched).
        """
        backend = self._registry.get(backend_name)
        if backend is None:
            logger.error(f"Failed to find backend {backend_name!r} for package {package.id}")
            return None
        return partial(fetch_selected, backend, backend_name, package)
