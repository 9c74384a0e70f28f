from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PackageRow:
    """One installed package as reported by a package-manager tool.

    Attributes:
        id: Package identifier (package name or application id).
        name: Display name reported by the tool (may equal `id`).
        version: Version string.
        summary: One-line description, if the tool reports one.
        installation: Flatpak installation ("system"/"user"), empty otherwise.
    """

    id: str
    name: str
    version: str = ""
    summary: str = ""
    installation: str = ""


def _split_tab_rows(text: str, min_columns: int) -> list[list[str]]:
    rows = []
    for line in text.replace("\r\n", "\n").splitlines():
        if not line.strip():
            continue
        parts = [p.strip() for p in line.split("\t")]
        if len(parts) < min_columns or not parts[0]:
            continue
        rows.append(parts)
    return rows


def parse_dpkg_query(text: str) -> list[PackageRow]:
    """Parses `dpkg-query -W -f '${Package}\\t${Version}\\t${db:Status-Abbrev}\\t${binary:Summary}\\n'`.

    Only fully installed packages (status abbreviation `ii`) are kept.
    """
    rows: list[PackageRow] = []
    for parts in _split_tab_rows(text, 3):
        name, version, status = parts[0], parts[1], parts[2]
        if not status.startswith("ii"):
            continue
        summary = parts[3] if len(parts) >= 4 else ""
        rows.append(PackageRow(id=name, name=name, version=version, summary=summary))
    return rows


def parse_rpm_query(text: str) -> list[PackageRow]:
    """Parses `rpm -qa --qf '%{NAME}\\t%{VERSION}-%{RELEASE}\\t%{SUMMARY}\\n'`."""
    rows: list[PackageRow] = []
    for parts in _split_tab_rows(text, 2):
        name, version = parts[0], parts[1]
        summary = parts[2] if len(parts) >= 3 else ""
        rows.append(PackageRow(id=name, name=name, version=version, summary=summary))
    return rows


def parse_flatpak_list(text: str) -> list[PackageRow]:
    """Parses `flatpak list --app --columns=application,name,version,branch,installation`.

    `flatpak` prints a header row only when attached to a terminal; it is skipped
    if present. Apps without a version fall back to their branch.
    """
    rows: list[PackageRow] = []
    for parts in _split_tab_rows(text, 1):
        app_id = parts[0]
        if app_id.lower() == "application id" or " " in app_id:
            continue
        name = parts[1] if len(parts) >= 2 and parts[1] else app_id
        version = parts[2] if len(parts) >= 3 else ""
        branch = parts[3] if len(parts) >= 4 else ""
        installation = parts[4] if len(parts) >= 5 else ""
        rows.append(
            PackageRow(
                id=app_id,
                name=name,
                version=version or branch,
                installation=installation,
            )
        )
    return rows
