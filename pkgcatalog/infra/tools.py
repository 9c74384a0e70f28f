import shutil
from typing import Final

DPKG_QUERY_FORMAT: Final[str] = (
    "${Package}\\t${Version}\\t${db:Status-Abbrev}\\t${binary:Summary}\\n"
)
RPM_QUERY_FORMAT: Final[str] = "%{NAME}\\t%{VERSION}-%{RELEASE}\\t%{SUMMARY}\\n"
FLATPAK_LIST_COLUMNS: Final[str] = "application,name,version,branch,installation"


def find_executable(*names: str) -> str | None:
    """Finds the first of `names` available on PATH.

    Args:
        names: Candidate executable names, most preferred first.

    Returns:
        The resolved executable path, or None when none is installed.
    """
    for name in names:
        path = shutil.which(name)
        if path:
            return path
    return None


def build_dpkg_query_argv(executable: str = "dpkg-query") -> list[str]:
    """Builds an argv listing installed Debian packages, one tab-separated row each."""
    return [executable, "-W", "-f", DPKG_QUERY_FORMAT]


def build_rpm_query_argv(executable: str = "rpm") -> list[str]:
    """Builds an argv listing installed RPM packages, one tab-separated row each."""
    return [executable, "-qa", "--qf", RPM_QUERY_FORMAT]


def build_flatpak_list_argv(executable: str = "flatpak") -> list[str]:
    """Builds an argv listing installed Flatpak applications across installations."""
    return [executable, "list", "--app", f"--columns={FLATPAK_LIST_COLUMNS}"]
