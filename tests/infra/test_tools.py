from pkgcatalog.infra import tools
from pkgcatalog.infra.tools import (
    build_dpkg_query_argv,
    build_flatpak_list_argv,
    build_rpm_query_argv,
    find_executable,
)


def test_find_executable_returns_first_available(monkeypatch) -> None:
    def fake_which(name: str) -> str | None:
        mapping = {"dnf": None, "rpm": "/usr/bin/rpm"}
        return mapping.get(name)

    monkeypatch.setattr(tools.shutil, "which", fake_which)

    assert find_executable("dnf", "rpm") == "/usr/bin/rpm"


def test_find_executable_returns_none_when_not_found(monkeypatch) -> None:
    monkeypatch.setattr(tools.shutil, "which", lambda _: None)

    assert find_executable("dpkg-query") is None
    assert find_executable() is None


def test_build_dpkg_query_argv() -> None:
    assert build_dpkg_query_argv("/usr/bin/dpkg-query") == [
        "/usr/bin/dpkg-query",
        "-W",
        "-f",
        "${Package}\\t${Version}\\t${db:Status-Abbrev}\\t${binary:Summary}\\n",
    ]


def test_build_rpm_query_argv() -> None:
    assert build_rpm_query_argv() == [
        "rpm",
        "-qa",
        "--qf",
        "%{NAME}\\t%{VERSION}-%{RELEASE}\\t%{SUMMARY}\\n",
    ]


def test_build_flatpak_list_argv() -> None:
    assert build_flatpak_list_argv() == [
        "flatpak",
        "list",
        "--app",
        "--columns=application,name,version,branch,installation",
    ]
