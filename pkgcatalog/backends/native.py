from typing import Callable, ClassVar

from logly import logger

from pkgcatalog.core.catalog_types import SCOPE_SYSTEM, Collection, Package
from pkgcatalog.core.package_list_parser import PackageRow, parse_dpkg_query, parse_rpm_query
from pkgcatalog.infra.tools import build_dpkg_query_argv, build_rpm_query_argv

from .base import Backend, BackendError, preferred_component


class NativeBackend(Backend):
    """Distribution package manager whose metadata lives in system catalogs.

    Only packages that ship appstream components are reported; libraries and
    other plumbing packages have nothing to show in a catalog.
    """

    build_argv: ClassVar[Callable[[str], list[str]]]
    parse_rows: ClassVar[Callable[[str], list[PackageRow]]]

    def installed(self) -> list[Package]:
        result = self._run(self.build_argv(self.executable))
        rows = self.parse_rows(result.stdout)

        packages: list[Package] = []
        for row in rows:
            match = preferred_component(self.store.components_for_package(row.id))
            if match is None:
                continue
            packages.append(self._package(row.id, row.version, row.name, row.summary, match))

        logger.debug(
            f"{self.name}: {len(packages)} of {len(rows)} installed packages have appstream data"
        )
        return packages

    def appstream(self, package: Package) -> Collection:
        matches = self.store.components_for_package(package.id)
        if not matches:
            raise BackendError(f"{self.name}: no appstream data for package {package.id}")

        first_collection = matches[0][0]
        return Collection(
            origin=first_collection.origin,
            components=tuple(component for _, component in matches),
            scope=first_collection.scope,
        )

    def owns(self, collection: Collection) -> bool:
        return collection.scope == SCOPE_SYSTEM


class DpkgBackend(NativeBackend):
    """Debian/Ubuntu packages via `dpkg-query`."""

    name = "dpkg"
    executable_names = ("dpkg-query",)
    build_argv = staticmethod(build_dpkg_query_argv)
    parse_rows = staticmethod(parse_dpkg_query)


class RpmBackend(NativeBackend):
    """Fedora/openSUSE packages via `rpm`."""

    name = "rpm"
    executable_names = ("rpm",)
    build_argv = staticmethod(build_rpm_query_argv)
    parse_rows = staticmethod(parse_rpm_query)
