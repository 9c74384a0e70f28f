import time
from types import MappingProxyType
from typing import Iterable, Sequence

from logly import logger

from pkgcatalog.core.catalog_types import Collection, InstalledPackage
from pkgcatalog.core.metadata_store import MetadataStore
from pkgcatalog.core.natural_order import natural_key

from .base import Backend, BackendError
from .flatpak import FlatpakBackend
from .native import DpkgBackend, RpmBackend

DEFAULT_BACKEND_TYPES: tuple[type[Backend], ...] = (DpkgBackend, RpmBackend, FlatpakBackend)


def _installed_sort_key(item: InstalledPackage):
    return (natural_key(item.package.name), item.backend_name, item.package.id)


class BackendRegistry:
    """Read-only set of active backends keyed by backend name.

    Built once at startup; afterwards it is shared with worker threads without
    locking because nothing writes to it.
    """

    def __init__(self, backends: Iterable[Backend] = ()):
        by_name: dict[str, Backend] = {}
        for backend in backends:
            if backend.name in by_name:
                logger.warning(f"Duplicate backend {backend.name!r} ignored")
                continue
            by_name[backend.name] = backend
        self._backends = MappingProxyType(by_name)

    def __len__(self) -> int:
        return len(self._backends)

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def names(self) -> list[str]:
        return list(self._backends)

    def get(self, name: str) -> Backend | None:
        """Looks up a backend; None means it is not registered in this session."""
        return self._backends.get(name)

    def owner_of(self, collection: Collection) -> str:
        """Names the first backend that owns `collection`, or "" if none does."""
        for name, backend in self._backends.items():
            if backend.owns(collection):
                return name
        return ""

    def installed(self) -> list[InstalledPackage]:
        """Lists installed packages from every backend, naturally sorted by name.

        A failing backend is logged and skipped; the others still contribute.
        """
        installed: list[InstalledPackage] = []
        for backend_name, backend in self._backends.items():
            start = time.perf_counter()
            try:
                packages = backend.installed()
            except BackendError as e:
                logger.error(f"Failed to list installed packages from {backend_name}: {e}")
                continue
            except Exception:
                logger.exception(f"Failed to list installed packages from {backend_name}")
                continue
            installed.extend(InstalledPackage(backend_name, package) for package in packages)
            elapsed = time.perf_counter() - start
            logger.info(
                f"Loaded {len(packages)} installed packages from {backend_name} in {elapsed:.3f}s"
            )

        installed.sort(key=_installed_sort_key)
        return installed


def discover_backends(
    store: MetadataStore,
    locale: str,
    timeout_sec: int = 60,
    backend_types: Sequence[type[Backend]] = DEFAULT_BACKEND_TYPES,
) -> BackendRegistry:
    """Probes the host and registers every backend whose tool is installed.

    Args:
        store: Metadata store the backends resolve names and icons from.
        locale: Locale for translated package names.
        timeout_sec: Timeout for each backend subprocess call.
        backend_types: Candidate backend classes, in registration order.

    Returns:
        Registry holding only usable backends.
    """
    backends = []
    for backend_type in backend_types:
        executable = backend_type.find_executable()
        if executable is None:
            logger.info(f"Backend {backend_type.name} unavailable: tool not found")
            continue
        backends.append(
            backend_type(store, locale, executable=executable, timeout_sec=timeout_sec)
        )
        logger.info(f"Backend {backend_type.name} registered ({executable})")
    return BackendRegistry(backends)
