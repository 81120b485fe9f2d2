"""
Thin capability wrappers over the host tools fedtune drives.

Each wrapper answers "what is the current state?" through read-only queries
and changes state only through its ``ensure_*``/mutating methods.  Queries
never raise: a missing tool shows up as returncode 127 and reads as "absent".
"""

from typing import Iterable, List, Optional, Set

from .console import Console
from .executor import NOT_FOUND, Executor, RunResult
from ._util import debug as _debug_fn


def _debug(msg: str) -> None:
    _debug_fn("system", msg)


class _Tool:
    def __init__(self, executor: Executor, console: Optional[Console] = None):
        self.executor = executor
        self.console = console

    def _query(self, cmd: List[str]) -> RunResult:
        return self.executor(cmd)

    def _mutate(self, cmd: List[str]) -> RunResult:
        if self.console is not None:
            self.console.run(cmd)
        r = self.executor(cmd)
        if not r.ok:
            _debug(f"{' '.join(cmd)} exited {r.returncode}: {r.stderr.strip()}")
        return r


class Packages(_Tool):
    """rpm/dnf."""

    def available(self) -> bool:
        return self._query(["dnf", "--version"]).returncode != NOT_FOUND

    def installed(self, name: str) -> bool:
        return self._query(["rpm", "-q", name]).returncode == 0

    def missing(self, names: Iterable[str]) -> List[str]:
        return [n for n in names if not self.installed(n)]

    def fedora_release(self) -> str:
        r = self._query(["rpm", "-E", "%fedora"])
        return r.stdout.strip() if r.returncode == 0 else ""

    def install(self, specs: List[str]) -> RunResult:
        return self._mutate(["dnf", "-y", "install"] + list(specs))

    def ensure_installed(self, names: List[str]) -> List[str]:
        """Install whatever is missing. Returns the names it tried to install.

        Raises RuntimeError when dnf fails.
        """
        todo = self.missing(names)
        if not todo:
            return []
        r = self.install(todo)
        if r.returncode != 0:
            raise RuntimeError(f"dnf install {' '.join(todo)} failed: {r.stderr.strip()[:300]}")
        return todo


class Services(_Tool):
    """systemctl."""

    def unit_files(self) -> Set[str]:
        r = self._query(["systemctl", "list-unit-files", "--no-legend", "--no-pager"])
        if r.returncode != 0:
            return set()
        units = set()
        for line in r.stdout.splitlines():
            parts = line.split()
            if parts:
                units.add(parts[0])
        return units

    def exists(self, unit: str) -> bool:
        return unit in self.unit_files()

    def is_enabled(self, unit: str) -> bool:
        r = self._query(["systemctl", "is-enabled", unit])
        return r.returncode == 0 and r.stdout.strip() == "enabled"

    def is_active(self, unit: str) -> bool:
        return self._query(["systemctl", "is-active", "--quiet", unit]).returncode == 0

    def enable_now(self, units: List[str]) -> RunResult:
        return self._mutate(["systemctl", "enable", "--now"] + list(units))

    def ensure_enabled(self, units: List[str]) -> List[str]:
        """Enable and start units that are not both enabled and active."""
        todo = [u for u in units if not (self.is_enabled(u) and self.is_active(u))]
        if not todo:
            return []
        r = self.enable_now(todo)
        if r.returncode != 0:
            raise RuntimeError(f"systemctl enable --now {' '.join(todo)} failed: {r.stderr.strip()[:300]}")
        return todo

    def disable_now(self, units: List[str]) -> RunResult:
        return self._mutate(["systemctl", "disable", "--now"] + list(units))

    def daemon_reload(self) -> RunResult:
        return self._mutate(["systemctl", "daemon-reload"])

    def start(self, unit: str) -> RunResult:
        return self._mutate(["systemctl", "start", unit])


class Flatpak(_Tool):

    def available(self) -> bool:
        return self._query(["flatpak", "--version"]).returncode != NOT_FOUND

    def remotes(self) -> List[str]:
        r = self._query(["flatpak", "remote-list", "--columns=name"])
        if r.returncode != 0:
            return []
        return [line.split()[0] for line in r.stdout.splitlines() if line.strip()]

    def add_remote(self, name: str, url: str) -> RunResult:
        return self._mutate(["flatpak", "remote-add", "--if-not-exists", name, url])


class Snapper(_Tool):

    def configs(self) -> List[str]:
        """Config names from ``snapper list-configs`` (table output, header skipped)."""
        r = self._query(["snapper", "list-configs"])
        if r.returncode != 0:
            return []
        names = []
        for line in r.stdout.splitlines():
            name = line.split("|", 1)[0].strip()
            if not name or name == "Config" or set(name) <= {"-", "+", "─", "┼"}:
                continue
            names.append(name)
        return names

    def create_config(self, name: str, path: str) -> RunResult:
        return self._mutate(["snapper", "-c", name, "create-config", path])


class Tuned(_Tool):

    def profiles(self) -> List[str]:
        """Profile names from ``tuned-adm list`` ("- name   - description" lines)."""
        r = self._query(["tuned-adm", "list"])
        if r.returncode != 0:
            return []
        names = []
        for line in r.stdout.splitlines():
            if line.startswith("- "):
                parts = line[2:].split()
                if parts:
                    names.append(parts[0])
        return names

    def active(self) -> str:
        r = self._query(["tuned-adm", "active"])
        if r.returncode != 0:
            return ""
        for line in r.stdout.splitlines():
            if ":" in line and "active profile" in line.lower():
                return line.split(":", 1)[1].strip()
        return ""

    def set_profile(self, profile: str) -> RunResult:
        return self._mutate(["tuned-adm", "profile", profile])


class Mounts(_Tool):
    """findmnt lookups against the live mount table."""

    def _field(self, column: str, target: str) -> str:
        r = self._query(["findmnt", "-no", column, "--target", target])
        if r.returncode != 0:
            return ""
        return r.stdout.strip()

    def fstype(self, target: str = "/") -> str:
        return self._field("FSTYPE", target)

    def options(self, target: str = "/") -> str:
        return self._field("OPTIONS", target)

    def source(self, target: str = "/") -> str:
        return self._field("SOURCE", target)
