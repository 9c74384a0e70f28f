import gzip
from pathlib import Path

from pkgcatalog.core.catalog_types import (
    SCOPE_FLATPAK,
    SCOPE_SYSTEM,
    Collection,
    Component,
    Icon,
    IconHandle,
    TranslatableString,
)
from pkgcatalog.core.metadata_store import (
    AppstreamSource,
    MetadataStore,
    collection_id_for,
    default_sources,
)

BOOKWORM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<components version="0.14" origin="bookworm-main">
  <component type="desktop-application">
    <id>org.gnome.Nautilus</id>
    <pkgname>nautilus</pkgname>
    <name>Files</name>
    <icon type="stock">org.gnome.Nautilus</icon>
    <icon type="cached" width="64" height="64">nautilus_org.gnome.Nautilus.png</icon>
    <icon type="cached" width="128" height="128" scale="2">nautilus_org.gnome.Nautilus.png</icon>
  </component>
  <component type="addon">
    <id>org.gnome.Nautilus.Extension</id>
    <pkgname>nautilus</pkgname>
    <name>Nautilus extension</name>
  </component>
  <component type="desktop-application">
    <id>org.kde.kate.desktop</id>
    <pkgname>kate</pkgname>
    <name>Kate</name>
  </component>
</components>
"""

SHADOWED_XML = """<components origin="bookworm-main">
  <component><id>shadowed.App</id><name>Shadowed</name></component>
</components>
"""

FLATHUB_XML = """<components origin="flathub">
  <component type="desktop-application">
    <id>org.mozilla.firefox</id>
    <name>Firefox</name>
    <icon type="cached" width="64" height="64">org.mozilla.firefox.png</icon>
  </component>
</components>
"""


def _write_gz(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with gzip.open(path, "wt", encoding="utf-8") as fp:
        fp.write(text)


def _system_catalog(root: Path) -> Path:
    xml_dir = root / "swcatalog" / "xml"
    _write_gz(xml_dir / "bookworm-main.xml.gz", BOOKWORM_XML)
    (xml_dir / "broken.xml").write_text("<components>", encoding="utf-8")
    (xml_dir / "README").write_text("not a catalog", encoding="utf-8")

    icon = root / "swcatalog" / "icons" / "bookworm-main" / "64x64"
    icon.mkdir(parents=True)
    (icon / "nautilus_org.gnome.Nautilus.png").write_bytes(b"png")
    return xml_dir


def test_load_skips_malformed_and_unsupported_files(tmp_path: Path) -> None:
    xml_dir = _system_catalog(tmp_path)

    store = MetadataStore.load([AppstreamSource(xml_dir)])

    assert len(store) == 1
    assert "bookworm-main" in store
    assert "broken" not in store
    collection = store.get("bookworm-main")
    assert collection is not None
    assert collection.origin == "bookworm-main"
    assert collection.scope == SCOPE_SYSTEM


def test_load_skips_yaml_with_invalid_timestamp(tmp_path: Path) -> None:
    (tmp_path / "bad.yml").write_text(
        "---\nFile: DEP-11\nOrigin: bad\n---\n"
        "ID: org.example.Bad\nName:\n  C: Bad\nReleases:\n  - date: 2020-13-45\n",
        encoding="utf-8",
    )
    (tmp_path / "good.xml").write_text(SHADOWED_XML, encoding="utf-8")

    store = MetadataStore.load([AppstreamSource(tmp_path)])

    assert "good" in store
    assert "bad" not in store


def test_load_keeps_first_collection_for_duplicate_ids(tmp_path: Path) -> None:
    xml_dir = _system_catalog(tmp_path)
    other_dir = tmp_path / "cache" / "xml"
    other_dir.mkdir(parents=True)
    (other_dir / "bookworm-main.xml").write_text(SHADOWED_XML, encoding="utf-8")

    store = MetadataStore.load([AppstreamSource(xml_dir), AppstreamSource(other_dir)])

    assert len(store) == 1
    assert store.components_for_id("shadowed.App") == []


def test_load_returns_empty_store_for_missing_locations(tmp_path: Path) -> None:
    store = MetadataStore.load([AppstreamSource(tmp_path / "does-not-exist")])

    assert len(store) == 0
    assert list(store.collections()) == []


def test_load_keys_flatpak_catalogs_by_remote(tmp_path: Path) -> None:
    root = tmp_path / "flatpak" / "appstream"
    _write_gz(root / "flathub" / "x86_64" / "active" / "appstream.xml.gz", FLATHUB_XML)

    store = MetadataStore.load(
        [AppstreamSource(root, "*/*/active/appstream.xml*", SCOPE_FLATPAK)]
    )

    collection = store.get("flatpak/flathub")
    assert collection is not None
    assert collection.scope == SCOPE_FLATPAK


def test_collection_id_strips_compression_and_format_suffixes(tmp_path: Path) -> None:
    source = AppstreamSource(tmp_path)

    assert collection_id_for(tmp_path / "bookworm-main.xml.gz", source) == "bookworm-main"
    assert collection_id_for(tmp_path / "fedora.yml", source) == "fedora"


def test_default_sources_can_exclude_flatpak(tmp_path: Path) -> None:
    sources = default_sources(extra_dirs=[tmp_path], include_flatpak=False)

    assert AppstreamSource(tmp_path) in sources
    assert all(source.scope == SCOPE_SYSTEM for source in sources)
    assert any(source.scope == SCOPE_FLATPAK for source in default_sources())


def test_components_for_package_returns_every_component(tmp_path: Path) -> None:
    store = MetadataStore.load([AppstreamSource(_system_catalog(tmp_path))])

    ids = [component.id for _, component in store.components_for_package("nautilus")]

    assert ids == ["org.gnome.Nautilus", "org.gnome.Nautilus.Extension"]
    assert store.components_for_package("missing") == []


def test_components_for_id_tries_desktop_suffix_variant(tmp_path: Path) -> None:
    store = MetadataStore.load([AppstreamSource(_system_catalog(tmp_path))])

    assert [c.id for _, c in store.components_for_id("org.kde.kate")] == [
        "org.kde.kate.desktop"
    ]
    assert [c.id for _, c in store.components_for_id("org.gnome.Nautilus.desktop")] == [
        "org.gnome.Nautilus"
    ]


def test_icon_prefers_existing_cached_file(tmp_path: Path) -> None:
    store = MetadataStore.load([AppstreamSource(_system_catalog(tmp_path))])
    _, component = store.components_for_id("org.gnome.Nautilus")[0]

    icon = store.icon("bookworm-main", component)

    expected = (
        tmp_path
        / "swcatalog"
        / "icons"
        / "bookworm-main"
        / "64x64"
        / "nautilus_org.gnome.Nautilus.png"
    )
    assert icon == IconHandle(path=str(expected))


def test_icon_falls_back_to_stock_then_placeholder() -> None:
    store = MetadataStore()
    stock = Component(
        id="a",
        name=TranslatableString({"C": "A"}),
        icons=(Icon(kind="cached", name="missing.png", width=64, height=64), Icon("stock", "a")),
    )
    bare = Component(id="b", name=TranslatableString({"C": "B"}))

    assert store.icon("nowhere", stock) == IconHandle(theme_name="a")
    assert store.icon(None, bare) == IconHandle.placeholder()


def test_icon_uses_absolute_local_paths(tmp_path: Path) -> None:
    image = tmp_path / "local.svg"
    image.write_text("<svg/>", encoding="utf-8")
    component = Component(
        id="local",
        name=TranslatableString({"C": "Local"}),
        icons=(Icon(kind="local", name=str(image)), Icon(kind="local", name="relative.svg")),
    )
    store = MetadataStore({"local": Collection(components=(component,))})

    assert store.icon(None, component) == IconHandle(path=str(image))
