from abc import ABC, abstractmethod
from typing import ClassVar

from pkgcatalog.core.catalog_types import Collection, Component, Package
from pkgcatalog.core.metadata_store import MetadataStore
from pkgcatalog.infra import tools
from pkgcatalog.infra.subprocess_runner import CommandResult, run_command


class BackendError(RuntimeError):
    """Raised when a backend cannot list packages or provide metadata."""


def preferred_component(
    matches: list[tuple[Collection, Component]],
) -> tuple[Collection, Component] | None:
    """Picks the component that best represents a package: desktop apps first."""
    for collection, component in matches:
        if component.kind == "desktop-application":
            return collection, component
    return matches[0] if matches else None


class Backend(ABC):
    """A package source: lists installed packages and fetches their metadata.

    Implementations may block on subprocess or file I/O and are only ever called
    from worker threads.
    """

    name: ClassVar[str]
    executable_names: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        store: MetadataStore,
        locale: str,
        executable: str | None = None,
        timeout_sec: int = 60,
    ):
        self.store = store
        self.locale = locale
        self.executable = executable or (
            self.executable_names[0] if self.executable_names else ""
        )
        self.timeout_sec = timeout_sec

    @classmethod
    def find_executable(cls) -> str | None:
        """Returns the backend's tool path, or None if it is not usable here."""
        return tools.find_executable(*cls.executable_names)

    @abstractmethod
    def installed(self) -> list[Package]:
        """Lists installed packages.

        Raises:
            BackendError: If the underlying tool fails or its output is unusable.
        """

    @abstractmethod
    def appstream(self, package: Package) -> Collection:
        """Fetches the full appstream collection describing one package.

        Raises:
            BackendError: If no metadata is available for the package.
        """

    def owns(self, collection: Collection) -> bool:
        """Whether collections like this one belong to this backend."""
        return False

    def _run(self, argv: list[str]) -> CommandResult:
        result = run_command(argv, timeout_sec=self.timeout_sec)
        if not result.ok:
            detail = result.stderr.strip() or "no output"
            raise BackendError(
                f"{self.name}: {argv[0]} failed (code={result.returncode}): {detail}"
            )
        return result

    def _package(
        self,
        package_id: str,
        version: str,
        fallback_name: str,
        fallback_summary: str,
        match: tuple[Collection, Component] | None,
    ) -> Package:
        """Builds a Package, preferring appstream name/summary/icon when known."""
        if match is None:
            return Package(
                id=package_id,
                name=fallback_name or package_id,
                version=version,
                summary=fallback_summary,
            )

        collection, component = match
        summary = component.summary.resolve(self.locale) if component.summary else ""
        return Package(
            id=package_id,
            name=component.name.resolve(self.locale) or fallback_name or package_id,
            version=version,
            summary=summary or fallback_summary,
            icon=self.store.icon(collection.origin, component),
        )
