from pkgcatalog.core.package_list_parser import (
    PackageRow,
    parse_dpkg_query,
    parse_flatpak_list,
    parse_rpm_query,
)


def test_parse_dpkg_query_keeps_only_installed_packages() -> None:
    text = (
        "nautilus\t43.2-1\tii \tfile manager and graphical shell for GNOME\n"
        "oldpkg\t1.0\trc \tremoved but config left\n"
        "\n"
        "kate\t4:22.12.3-1\tii \tpowerful text editor\r\n"
    )

    assert parse_dpkg_query(text) == [
        PackageRow(
            id="nautilus",
            name="nautilus",
            version="43.2-1",
            summary="file manager and graphical shell for GNOME",
        ),
        PackageRow(id="kate", name="kate", version="4:22.12.3-1", summary="powerful text editor"),
    ]


def test_parse_dpkg_query_skips_short_rows() -> None:
    assert parse_dpkg_query("broken line without tabs\nonly\ttwo\n") == []


def test_parse_rpm_query_reads_name_version_summary() -> None:
    text = "firefox\t118.0-1.fc39\tMozilla Firefox Web browser\ngimp\t2.10.34-6.fc39\n"

    assert parse_rpm_query(text) == [
        PackageRow(
            id="firefox",
            name="firefox",
            version="118.0-1.fc39",
            summary="Mozilla Firefox Web browser",
        ),
        PackageRow(id="gimp", name="gimp", version="2.10.34-6.fc39"),
    ]


def test_parse_flatpak_list_skips_header_and_falls_back_to_branch() -> None:
    text = (
        "Application ID\tName\tVersion\tBranch\tInstallation\n"
        "org.mozilla.firefox\tFirefox\t118.0\tstable\tsystem\n"
        "org.gnome.Boxes\t\t\tstable\tuser\n"
    )

    assert parse_flatpak_list(text) == [
        PackageRow(
            id="org.mozilla.firefox",
            name="Firefox",
            version="118.0",
            installation="system",
        ),
        PackageRow(
            id="org.gnome.Boxes",
            name="org.gnome.Boxes",
            version="stable",
            installation="user",
        ),
    ]


def test_parse_flatpak_list_returns_empty_for_empty_output() -> None:
    assert parse_flatpak_list("") == []
