from dataclasses import dataclass, field
from typing import Final, Mapping

SCOPE_SYSTEM: Final[str] = "system"
SCOPE_FLATPAK: Final[str] = "flatpak"

DEFAULT_LOCALE_KEY: Final[str] = "C"
PLACEHOLDER_ICON_NAME: Final[str] = "package-x-generic"


def normalize_locale(locale: str) -> str:
    """Normalizes a locale tag so BCP-47 and POSIX spellings compare equal.

    `en-US`, `en_US` and `en_US.UTF-8` all become `en_US`.
    """
    value = locale.strip()
    for sep in (".", "@"):
        value = value.split(sep, 1)[0]
    return value.replace("-", "_")


@dataclass(frozen=True, slots=True)
class TranslatableString:
    """Localized text keyed by normalized locale; the untranslated value is `C`."""

    values: Mapping[str, str] = field(default_factory=dict)

    def get_for_locale(self, locale: str) -> str | None:
        return self.values.get(normalize_locale(locale))

    def get_default(self) -> str | None:
        return self.values.get(DEFAULT_LOCALE_KEY)

    def resolve(self, locale: str) -> str:
        """Returns the text for `locale`, else the default text, else ""."""
        text = self.get_for_locale(locale)
        if text is None:
            text = self.get_default()
        return text or ""


@dataclass(frozen=True, slots=True)
class Icon:
    """An icon reference as written in appstream metadata.

    Attributes:
        kind: One of "stock", "cached", "local" or "remote".
        name: File name (cached), absolute path (local), theme name (stock)
            or URL (remote).
        width: Pixel width, if declared.
        height: Pixel height, if declared.
        scale: HiDPI scale factor, if declared.
    """

    kind: str
    name: str
    width: int | None = None
    height: int | None = None
    scale: int | None = None


@dataclass(frozen=True, slots=True)
class Component:
    """One describable piece of software inside a collection."""

    id: str
    name: TranslatableString
    kind: str = "generic"
    package_name: str | None = None
    summary: TranslatableString | None = None
    description: TranslatableString | None = None
    icons: tuple[Icon, ...] = ()


@dataclass(frozen=True, slots=True)
class Collection:
    """Components parsed from one appstream source file.

    Instances are shared by the metadata store and every result that refers to
    them, so nothing may mutate them after parsing.
    """

    origin: str | None = None
    components: tuple[Component, ...] = ()
    scope: str = SCOPE_SYSTEM


@dataclass(frozen=True, slots=True)
class IconHandle:
    """Toolkit-neutral icon: a theme icon name or a path to an image file."""

    theme_name: str | None = None
    path: str | None = None

    @classmethod
    def placeholder(cls) -> "IconHandle":
        return cls(theme_name=PLACEHOLDER_ICON_NAME)


@dataclass(frozen=True, slots=True)
class Package:
    """A unit reported by a backend.

    Attributes:
        id: Identifier, unique within the reporting backend.
        name: Display name.
        version: Version string.
        summary: One-line summary (best-effort).
        icon: Resolved icon.
    """

    id: str
    name: str
    version: str = ""
    summary: str = ""
    icon: IconHandle = field(default_factory=IconHandle.placeholder)


@dataclass(frozen=True, slots=True)
class InstalledPackage:
    """A Package tagged with the name of the backend that listed it."""

    backend_name: str
    package: Package


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One ranked match produced by the search engine."""

    backend_name: str
    id: str
    collection_id: str
    name: str
    summary: str
    icon: IconHandle
    collection: Collection
    weight: int


@dataclass(frozen=True, slots=True)
class Selected:
    """Fully hydrated view of the entry the user picked."""

    backend_name: str
    id: str
    name: str
    summary: str
    icon: IconHandle
    collection: Collection
