import gzip
import html
import xml.etree.ElementTree as ET
import zlib
from pathlib import Path
from typing import Any, Final

import yaml

from .catalog_types import (
    DEFAULT_LOCALE_KEY,
    SCOPE_SYSTEM,
    Collection,
    Component,
    Icon,
    TranslatableString,
    normalize_locale,
)

_XML_LANG: Final[str] = "{http://www.w3.org/XML/1998/namespace}lang"
_XML_SUFFIXES: Final[frozenset[str]] = frozenset({".xml"})
_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yml", ".yaml"})

SUPPORTED_SUFFIXES: Final[tuple[str, ...]] = (
    ".xml",
    ".xml.gz",
    ".yml",
    ".yml.gz",
    ".yaml",
    ".yaml.gz",
)


class AppstreamParseError(ValueError):
    """Raised when an appstream file cannot be read or understood."""


def is_supported_file(path: Path) -> bool:
    return path.name.endswith(SUPPORTED_SUFFIXES)


def _read_bytes(path: Path) -> bytes:
    if path.suffix == ".gz":
        with gzip.open(path, "rb") as fp:
            return fp.read()
    return path.read_bytes()


def _format_suffix(path: Path) -> str:
    name = path.name
    if name.endswith(".gz"):
        name = name[: -len(".gz")]
    return Path(name).suffix.lower()


def parse_collection_file(path: Path, scope: str = SCOPE_SYSTEM) -> Collection:
    """Parses an appstream collection or metainfo file.

    Args:
        path: File to parse. `.gz` files are decompressed transparently.
        scope: Location family the file was found in.

    Returns:
        The parsed collection.

    Raises:
        AppstreamParseError: If the file cannot be read, decompressed or parsed.
    """
    fmt = _format_suffix(path)
    if fmt not in _XML_SUFFIXES and fmt not in _YAML_SUFFIXES:
        raise AppstreamParseError(f"unsupported appstream file type: {path.name}")

    try:
        data = _read_bytes(path)
    except (OSError, EOFError, zlib.error) as e:
        raise AppstreamParseError(f"failed to read {path}: {e}") from e

    if fmt in _XML_SUFFIXES:
        return parse_collection_xml(data, scope)
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AppstreamParseError(f"{path} is not valid utf-8: {e}") from e
    return parse_collection_yaml(text, scope)


# ---- XML


def _lang_of(elem: ET.Element, inherited: str = DEFAULT_LOCALE_KEY) -> str:
    lang = elem.get(_XML_LANG)
    return normalize_locale(lang) if lang else inherited


def _element_text(elem: ET.Element) -> str:
    return " ".join("".join(elem.itertext()).split())


def _translatable_from_children(parent: ET.Element, tag: str) -> TranslatableString | None:
    values: dict[str, str] = {}
    for child in parent.findall(tag):
        text = _element_text(child)
        if text:
            values.setdefault(_lang_of(child), text)
    if not values:
        return None
    return TranslatableString(values)


def _markup_block(elem: ET.Element) -> str:
    tag = elem.tag
    if tag in ("ul", "ol"):
        items = "".join(
            f"<li>{html.escape(_element_text(li))}</li>" for li in elem.findall("li")
        )
        return f"<{tag}>{items}</{tag}>"
    return f"<p>{html.escape(_element_text(elem))}</p>"


def _description_from_xml(component: ET.Element) -> TranslatableString | None:
    """Collects description markup per locale.

    Catalog files translate whole `<description xml:lang>` elements, metainfo
    files translate individual paragraphs; both layouts are accepted.
    """
    blocks: dict[str, list[str]] = {}
    for desc in component.findall("description"):
        desc_lang = _lang_of(desc)
        for child in desc:
            if child.tag == "li":
                continue
            lang = _lang_of(child, desc_lang)
            if child.tag in ("ul", "ol"):
                # List items may carry their own language in metainfo files.
                by_lang: dict[str, list[ET.Element]] = {}
                for li in child.findall("li"):
                    by_lang.setdefault(_lang_of(li, lang), []).append(li)
                for li_lang, items in by_lang.items():
                    wrapper = ET.Element(child.tag)
                    wrapper.extend(items)
                    blocks.setdefault(li_lang, []).append(_markup_block(wrapper))
                continue
            blocks.setdefault(lang, []).append(_markup_block(child))
    if not blocks:
        return None
    return TranslatableString({lang: "".join(parts) for lang, parts in blocks.items()})


def _int_attr(elem: ET.Element, name: str) -> int | None:
    value = elem.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _icons_from_xml(component: ET.Element) -> tuple[Icon, ...]:
    icons: list[Icon] = []
    for elem in component.findall("icon"):
        name = (elem.text or "").strip()
        if not name:
            continue
        icons.append(
            Icon(
                kind=elem.get("type", "stock"),
                name=name,
                width=_int_attr(elem, "width"),
                height=_int_attr(elem, "height"),
                scale=_int_attr(elem, "scale"),
            )
        )
    return tuple(icons)


def _component_from_xml(elem: ET.Element) -> Component | None:
    component_id = (elem.findtext("id") or "").strip()
    if not component_id:
        return None

    name = _translatable_from_children(elem, "name") or TranslatableString()
    pkgname = (elem.findtext("pkgname") or "").strip() or None
    return Component(
        id=component_id,
        name=name,
        kind=elem.get("type", "generic"),
        package_name=pkgname,
        summary=_translatable_from_children(elem, "summary"),
        description=_description_from_xml(elem),
        icons=_icons_from_xml(elem),
    )


def parse_collection_xml(data: bytes | str, scope: str = SCOPE_SYSTEM) -> Collection:
    """Parses catalog XML (`<components>`) or a metainfo file (`<component>`)."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise AppstreamParseError(f"invalid appstream xml: {e}") from e

    if root.tag == "components":
        origin = root.get("origin")
        elements = root.findall("component")
    elif root.tag == "component":
        origin = None
        elements = [root]
    else:
        raise AppstreamParseError(f"unexpected appstream root element <{root.tag}>")

    components = []
    for elem in elements:
        component = _component_from_xml(elem)
        if component is not None:
            components.append(component)
    return Collection(origin=origin, components=tuple(components), scope=scope)


# ---- DEP-11 YAML


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def _translatable_from_yaml(value: Any, markup: bool = False) -> TranslatableString | None:
    if isinstance(value, str):
        value = {DEFAULT_LOCALE_KEY: value}
    if not isinstance(value, dict):
        return None

    values: dict[str, str] = {}
    for lang, text in value.items():
        if text is None:
            continue
        text = str(text).strip() if markup else _coerce_text(text)
        if text:
            values.setdefault(normalize_locale(str(lang)), text)
    if not values:
        return None
    return TranslatableString(values)


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _icons_from_yaml(value: Any) -> tuple[Icon, ...]:
    if not isinstance(value, dict):
        return ()

    icons: list[Icon] = []
    for kind, entries in value.items():
        if kind == "stock":
            name = _coerce_text(entries)
            if name:
                icons.append(Icon(kind="stock", name=name))
            continue
        if isinstance(entries, dict):
            entries = [entries]
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = _coerce_text(entry.get("url") if kind == "remote" else entry.get("name"))
            if not name:
                continue
            icons.append(
                Icon(
                    kind=str(kind),
                    name=name,
                    width=_optional_int(entry.get("width")),
                    height=_optional_int(entry.get("height")),
                    scale=_optional_int(entry.get("scale")),
                )
            )
    return tuple(icons)


def _component_from_yaml(doc: dict) -> Component | None:
    component_id = _coerce_text(doc.get("ID"))
    if not component_id:
        return None

    return Component(
        id=component_id,
        name=_translatable_from_yaml(doc.get("Name")) or TranslatableString(),
        kind=_coerce_text(doc.get("Type")) or "generic",
        package_name=_coerce_text(doc.get("Package")) or None,
        summary=_translatable_from_yaml(doc.get("Summary")),
        description=_translatable_from_yaml(doc.get("Description"), markup=True),
        icons=_icons_from_yaml(doc.get("Icon")),
    )


def parse_collection_yaml(text: str, scope: str = SCOPE_SYSTEM) -> Collection:
    """Parses a DEP-11 YAML collection (header document + one document per component)."""
    try:
        documents = list(yaml.safe_load_all(text))
    except (yaml.YAMLError, ValueError) as e:
        # Out-of-range timestamps surface as ValueError from the constructor.
        raise AppstreamParseError(f"invalid DEP-11 yaml: {e}") from e

    if not documents or not isinstance(documents[0], dict):
        raise AppstreamParseError("DEP-11 header document missing")
    header = documents[0]
    if header.get("File") != "DEP-11":
        raise AppstreamParseError(f"not a DEP-11 file (File={header.get('File')!r})")

    origin = _coerce_text(header.get("Origin")) or None
    components = []
    for doc in documents[1:]:
        if not isinstance(doc, dict):
            continue
        component = _component_from_yaml(doc)
        if component is not None:
            components.append(component)
    return Collection(origin=origin, components=tuple(components), scope=scope)


def markup_to_plain_text(markup: str) -> str:
    """Renders appstream description markup as plain text for display."""
    try:
        root = ET.fromstring(f"<root>{markup}</root>")
    except ET.ParseError:
        return html.unescape(markup)

    paragraphs: list[str] = []
    for block in root:
        if block.tag in ("ul", "ol"):
            items = [_element_text(li) for li in block.findall("li")]
            paragraphs.append("\n".join(f"• {item}" for item in items if item))
        else:
            text = _element_text(block)
            if text:
                paragraphs.append(text)
    if not paragraphs and root.text:
        return root.text.strip()
    return "\n\n".join(p for p in paragraphs if p)
