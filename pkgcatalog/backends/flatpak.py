from pathlib import Path
from typing import Mapping

from pkgcatalog.core.appstream_parser import AppstreamParseError, parse_collection_file
from pkgcatalog.core.catalog_types import SCOPE_FLATPAK, Collection, Package
from pkgcatalog.core.metadata_store import MetadataStore
from pkgcatalog.core.package_list_parser import parse_flatpak_list
from pkgcatalog.infra.tools import build_flatpak_list_argv

from .base import Backend, BackendError, preferred_component


def default_installations() -> dict[str, Path]:
    return {
        "system": Path("/var/lib/flatpak"),
        "user": Path.home() / ".local/share/flatpak",
    }


class FlatpakBackend(Backend):
    """Flatpak applications from every configured installation."""

    name = "flatpak"
    executable_names = ("flatpak",)

    def __init__(
        self,
        store: MetadataStore,
        locale: str,
        executable: str | None = None,
        timeout_sec: int = 60,
        installations: Mapping[str, Path] | None = None,
    ):
        super().__init__(store, locale, executable, timeout_sec)
        self.installations = dict(
            default_installations() if installations is None else installations
        )

    def installed(self) -> list[Package]:
        result = self._run(build_flatpak_list_argv(self.executable))
        packages: list[Package] = []
        for row in parse_flatpak_list(result.stdout):
            match = preferred_component(self.store.components_for_id(row.id))
            packages.append(self._package(row.id, row.version, row.name, row.summary, match))
        return packages

    def _metainfo_paths(self, app_id: str) -> list[Path]:
        paths = []
        for root in self.installations.values():
            share = root / "app" / app_id / "current" / "active" / "files" / "share"
            paths.append(share / "metainfo" / f"{app_id}.metainfo.xml")
            paths.append(share / "appdata" / f"{app_id}.appdata.xml")
        return paths

    def appstream(self, package: Package) -> Collection:
        """Reads the deployed app's own metainfo, else the remote's catalog entry."""
        for path in self._metainfo_paths(package.id):
            if not path.is_file():
                continue
            try:
                collection = parse_collection_file(path, SCOPE_FLATPAK)
            except AppstreamParseError as e:
                raise BackendError(f"{self.name}: {e}") from e
            if collection.components:
                return collection

        matches = self.store.components_for_id(package.id)
        if not matches:
            raise BackendError(f"{self.name}: no appstream data for {package.id}")
        first_collection = matches[0][0]
        return Collection(
            origin=first_collection.origin,
            components=tuple(component for _, component in matches),
            scope=SCOPE_FLATPAK,
        )

    def owns(self, collection: Collection) -> bool:
        return collection.scope == SCOPE_FLATPAK
