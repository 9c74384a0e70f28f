from pathlib import Path

import pytest

from pkgcatalog.backends import base
from pkgcatalog.backends.base import BackendError
from pkgcatalog.backends.flatpak import FlatpakBackend
from pkgcatalog.core.catalog_types import (
    SCOPE_FLATPAK,
    SCOPE_SYSTEM,
    Collection,
    Component,
    Package,
    TranslatableString,
)
from pkgcatalog.core.metadata_store import MetadataStore
from pkgcatalog.infra.subprocess_runner import CommandResult

FIREFOX_METAINFO = """<?xml version="1.0" encoding="UTF-8"?>
<component type="desktop-application">
  <id>org.mozilla.firefox</id>
  <name>Firefox</name>
  <summary>Fast, private and safe web browser</summary>
</component>
"""


def _store() -> MetadataStore:
    firefox = Component(
        id="org.mozilla.firefox.desktop",
        name=TranslatableString({"C": "Firefox"}),
        kind="desktop-application",
        summary=TranslatableString({"C": "Web browser"}),
    )
    return MetadataStore(
        {
            "flatpak/flathub": Collection(
                origin="flathub", components=(firefox,), scope=SCOPE_FLATPAK
            )
        }
    )


def test_installed_lists_every_app_and_prefers_appstream_names(monkeypatch) -> None:
    def fake_run_command(argv: list[str], timeout_sec: int = 60) -> CommandResult:
        assert argv == [
            "flatpak",
            "list",
            "--app",
            "--columns=application,name,version,branch,installation",
        ]
        return CommandResult(
            "org.mozilla.firefox\tfirefox\t118.0\tstable\tsystem\n"
            "com.example.Tool\tTool\t\tstable\tuser\n",
            "",
            0,
        )

    monkeypatch.setattr(base, "run_command", fake_run_command)
    backend = FlatpakBackend(_store(), "en-US", installations={})

    packages = backend.installed()

    assert [(p.id, p.name, p.version, p.summary) for p in packages] == [
        ("org.mozilla.firefox", "Firefox", "118.0", "Web browser"),
        ("com.example.Tool", "Tool", "stable", ""),
    ]


def test_installed_raises_when_flatpak_fails(monkeypatch) -> None:
    monkeypatch.setattr(
        base, "run_command", lambda argv, timeout_sec=60: CommandResult("", "boom", 1)
    )
    backend = FlatpakBackend(_store(), "en-US", installations={})

    with pytest.raises(BackendError, match="boom"):
        backend.installed()


def test_appstream_reads_deployed_metainfo_first(tmp_path: Path) -> None:
    share = tmp_path / "app" / "org.mozilla.firefox" / "current" / "active" / "files" / "share"
    (share / "metainfo").mkdir(parents=True)
    (share / "metainfo" / "org.mozilla.firefox.metainfo.xml").write_text(
        FIREFOX_METAINFO, encoding="utf-8"
    )
    backend = FlatpakBackend(_store(), "en-US", installations={"system": tmp_path})

    collection = backend.appstream(Package(id="org.mozilla.firefox", name="Firefox"))

    assert collection.scope == SCOPE_FLATPAK
    component = collection.components[0]
    assert component.summary is not None
    assert component.summary.resolve("en-US") == "Fast, private and safe web browser"


def test_appstream_reports_broken_metainfo_as_backend_error(tmp_path: Path) -> None:
    share = tmp_path / "app" / "org.mozilla.firefox" / "current" / "active" / "files" / "share"
    (share / "appdata").mkdir(parents=True)
    (share / "appdata" / "org.mozilla.firefox.appdata.xml").write_text(
        "<component>", encoding="utf-8"
    )
    backend = FlatpakBackend(_store(), "en-US", installations={"user": tmp_path})

    with pytest.raises(BackendError):
        backend.appstream(Package(id="org.mozilla.firefox", name="Firefox"))


def test_appstream_falls_back_to_remote_catalog(tmp_path: Path) -> None:
    backend = FlatpakBackend(_store(), "en-US", installations={"system": tmp_path})

    collection = backend.appstream(Package(id="org.mozilla.firefox", name="Firefox"))

    assert collection.origin == "flathub"
    assert [c.id for c in collection.components] == ["org.mozilla.firefox.desktop"]


def test_appstream_raises_when_nothing_is_known(tmp_path: Path) -> None:
    backend = FlatpakBackend(_store(), "en-US", installations={"system": tmp_path})

    with pytest.raises(BackendError, match="com.example.Tool"):
        backend.appstream(Package(id="com.example.Tool", name="Tool"))


def test_flatpak_backend_owns_flatpak_collections() -> None:
    backend = FlatpakBackend(MetadataStore(), "en-US", installations={})

    assert backend.owns(Collection(scope=SCOPE_FLATPAK))
    assert not backend.owns(Collection(scope=SCOPE_SYSTEM))
