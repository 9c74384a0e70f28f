import time
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Iterable, Iterator, Mapping, Sequence

from logly import logger

from .appstream_parser import AppstreamParseError, is_supported_file, parse_collection_file
from .catalog_types import (
    SCOPE_FLATPAK,
    SCOPE_SYSTEM,
    Collection,
    Component,
    Icon,
    IconHandle,
)


@dataclass(frozen=True, slots=True)
class AppstreamSource:
    """A directory that may hold appstream collection files.

    Attributes:
        root: Directory to scan.
        pattern: Glob (relative to `root`) selecting candidate files.
        scope: Location family assigned to collections found here.
    """

    root: Path
    pattern: str = "*"
    scope: str = SCOPE_SYSTEM


_SYSTEM_CATALOG_DIRS: Final[tuple[str, ...]] = (
    "/usr/share/swcatalog/xml",
    "/usr/share/swcatalog/yaml",
    "/usr/share/app-info/xmls",
    "/usr/share/app-info/yaml",
    "/var/cache/swcatalog/xml",
    "/var/cache/swcatalog/yaml",
    "/var/cache/app-info/xmls",
    "/var/cache/app-info/yaml",
    "/var/lib/app-info/xmls",
    "/var/lib/app-info/yaml",
)

_FLATPAK_APPSTREAM_PATTERN: Final[str] = "*/*/active/appstream.xml*"

# Tried for cached icons that do not declare their size.
_FALLBACK_ICON_SIZES: Final[tuple[str, ...]] = ("128x128", "64x64")


def default_sources(
    extra_dirs: Iterable[Path] = (), include_flatpak: bool = True
) -> list[AppstreamSource]:
    """Returns the well-known appstream locations, most specific first."""
    sources = [AppstreamSource(Path(p)) for p in _SYSTEM_CATALOG_DIRS]
    sources.extend(AppstreamSource(Path(p)) for p in extra_dirs)
    if include_flatpak:
        for root in (
            Path("/var/lib/flatpak/appstream"),
            Path.home() / ".local/share/flatpak/appstream",
        ):
            sources.append(AppstreamSource(root, _FLATPAK_APPSTREAM_PATTERN, SCOPE_FLATPAK))
    return sources


def collection_id_for(path: Path, source: AppstreamSource) -> str:
    """Derives the store key for a collection file.

    Flatpak remotes all ship `appstream.xml.gz`, so they are keyed by remote name.
    """
    if source.scope == SCOPE_FLATPAK:
        remote = path.relative_to(source.root).parts[0]
        return f"flatpak/{remote}"

    name = path.name
    if name.endswith(".gz"):
        name = name[: -len(".gz")]
    return Path(name).stem


def _icon_dirs_for(path: Path, origin: str | None) -> list[Path]:
    candidates = []
    if origin:
        # swcatalog/app-info layout: <root>/xml/<file> -> <root>/icons/<origin>/
        candidates.append(path.parent.parent / "icons" / origin)
    # flatpak layout: <remote>/<arch>/active/appstream.xml.gz -> active/icons/
    candidates.append(path.parent / "icons")
    return [d for d in candidates if d.is_dir()]


def _icon_size_dirs(icon: Icon) -> list[str]:
    if icon.width is None or icon.height is None:
        return list(_FALLBACK_ICON_SIZES)
    size = f"{icon.width}x{icon.height}"
    if icon.scale and icon.scale > 1:
        return [f"{size}@{icon.scale}", size]
    return [size]


def _icon_area(icon: Icon) -> int:
    return (icon.width or 0) * (icon.height or 0) * (icon.scale or 1) ** 2


class MetadataStore:
    """In-memory, read-only index of appstream collections.

    The store is fully built in the constructor and never changes afterwards, so
    worker threads may read it concurrently without locking.
    """

    def __init__(
        self,
        collections: Mapping[str, Collection] | None = None,
        icon_dirs: Mapping[str, Sequence[Path]] | None = None,
    ):
        self._collections: dict[str, Collection] = dict(collections or {})
        self._icon_dirs: dict[str, tuple[Path, ...]] = {
            origin: tuple(dirs) for origin, dirs in (icon_dirs or {}).items()
        }
        self._by_package: dict[str, list[tuple[Collection, Component]]] = {}
        self._by_id: dict[str, list[tuple[Collection, Component]]] = {}
        for collection in self._collections.values():
            for component in collection.components:
                if component.package_name:
                    self._by_package.setdefault(component.package_name, []).append(
                        (collection, component)
                    )
                self._by_id.setdefault(component.id, []).append((collection, component))

    @classmethod
    def load(cls, sources: Iterable[AppstreamSource] | None = None) -> "MetadataStore":
        """Scans appstream locations and parses every collection found.

        Unreadable or malformed files are logged and skipped, so this never fails.

        Args:
            sources: Locations to scan. Defaults to `default_sources()`.

        Returns:
            The populated (possibly empty) store.
        """
        start = time.perf_counter()
        collections: dict[str, Collection] = {}
        icon_dirs: dict[str, list[Path]] = {}

        for source in default_sources() if sources is None else sources:
            if not source.root.is_dir():
                continue
            for path in sorted(source.root.glob(source.pattern)):
                if not path.is_file() or not is_supported_file(path):
                    continue

                collection_id = collection_id_for(path, source)
                if collection_id in collections:
                    logger.debug(f"Skipping {path}: collection {collection_id} already loaded")
                    continue

                try:
                    collection = parse_collection_file(path, source.scope)
                except AppstreamParseError as e:
                    logger.warning(f"Failed to parse appstream file {path}: {e}")
                    continue

                collections[collection_id] = collection
                key = collection.origin or ""
                for icon_dir in _icon_dirs_for(path, collection.origin):
                    dirs = icon_dirs.setdefault(key, [])
                    if icon_dir not in dirs:
                        dirs.append(icon_dir)
                logger.debug(
                    f"Loaded {len(collection.components)} components from {path}"
                )

        elapsed = time.perf_counter() - start
        logger.info(f"Loaded {len(collections)} appstream collections in {elapsed:.3f}s")
        return cls(collections, icon_dirs)

    def __len__(self) -> int:
        return len(self._collections)

    def __contains__(self, collection_id: object) -> bool:
        return collection_id in self._collections

    def get(self, collection_id: str) -> Collection | None:
        return self._collections.get(collection_id)

    def collections(self) -> Iterator[tuple[str, Collection]]:
        """Iterates `(collection id, collection)` pairs in load order."""
        return iter(self._collections.items())

    def components_for_package(self, package_name: str) -> list[tuple[Collection, Component]]:
        return list(self._by_package.get(package_name, ()))

    def components_for_id(self, component_id: str) -> list[tuple[Collection, Component]]:
        """Finds components by id, also trying the legacy `.desktop` suffix variant."""
        matches = list(self._by_id.get(component_id, ()))
        if component_id.endswith(".desktop"):
            alternate = component_id[: -len(".desktop")]
        else:
            alternate = f"{component_id}.desktop"
        matches.extend(self._by_id.get(alternate, ()))
        return matches

    def icon(self, origin: str | None, component: Component) -> IconHandle:
        """Resolves the best available icon for a component.

        File icons (cached, then local) win over stock theme names, larger sizes
        first. Falls back to a generic placeholder; never raises.
        """
        dirs = self._icon_dirs.get(origin or "", ())
        file_icons = sorted(
            (i for i in component.icons if i.kind in ("cached", "local")),
            key=_icon_area,
            reverse=True,
        )
        for icon in file_icons:
            if icon.kind == "local":
                if Path(icon.name).is_absolute() and Path(icon.name).is_file():
                    return IconHandle(path=icon.name)
                continue
            for icon_dir in dirs:
                for size_dir in _icon_size_dirs(icon):
                    candidate = icon_dir / size_dir / icon.name
                    if candidate.is_file():
                        return IconHandle(path=str(candidate))

        for icon in component.icons:
            if icon.kind == "stock":
                return IconHandle(theme_name=icon.name)
        return IconHandle.placeholder()
