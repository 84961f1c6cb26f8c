from __future__ import annotations

import getpass
import logging
import os
import pwd
import shutil
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from . import hwdetect, net, pkg, services
from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)


class Host(Protocol):
    """Everything the provisioning steps may ask of, or do to, the machine.

    Queries never change anything. Mutations raise CommandError (or
    OSError) on failure.
    """

    dry_run: bool

    # queries
    def command_exists(self, name: str) -> bool: ...
    def which(self, name: str) -> Optional[str]: ...
    def package_installed(self, name: str) -> bool: ...
    def read_text(self, path: str) -> str: ...
    def path_exists(self, path: str) -> bool: ...
    def service_enabled(self, unit: str) -> bool: ...
    def process_running(self, name: str) -> bool: ...
    def getenv(self, name: str) -> Optional[str]: ...
    def pci_devices(self) -> str: ...
    def wireless_interfaces(self) -> List[str]: ...
    def group_exists(self, group: str) -> bool: ...
    def user_in_group(self, user: str, group: str) -> bool: ...
    def login_shell(self, user: str) -> Optional[str]: ...
    def invoking_user(self) -> str: ...
    def home_dir(self) -> str: ...
    def run_query(self, argv: Sequence[str]) -> CmdResult: ...

    # mutations
    def pacman_upgrade(self) -> None: ...
    def pacman_install(self, packages: Sequence[str], *, upgrade: bool = False) -> None: ...
    def aur_install(self, packages: Sequence[str], *, helper: str = "yay") -> None: ...
    def build_from_source(self, name: str, repo_url: str) -> None: ...
    def append_lines(self, path: str, lines: Sequence[str]) -> None: ...
    def write_text(self, path: str, text: str) -> None: ...
    def reload_sysctl(self) -> None: ...
    def enable_service(self, unit: str) -> None: ...
    def start_service(self, unit: str) -> None: ...
    def ensure_group(self, group: str) -> None: ...
    def add_user_to_group(self, user: str, group: str) -> None: ...
    def set_login_shell(self, user: str, shell: str) -> None: ...
    def run_remote_script(self, url: str, *, interpreter: str = "sh", args: Sequence[str] = ()) -> None: ...
    def run(self, argv: Sequence[str]) -> None: ...


class SystemHost:
    """Host backed by the running Arch system.

    Runs as the desktop user; privileged mutations go through sudo (unless
    we already are root). When started as root through sudo, user-level
    work (AUR builds, installer scripts, balooctl) drops back to SUDO_USER
    so it lands in that user's home and never runs makepkg as root.
    """

    def __init__(
        self,
        *,
        dry_run: bool = False,
        use_sudo: Optional[bool] = None,
        run_as: Optional[str] = None,
    ) -> None:
        self.dry_run = dry_run
        if use_sudo is None:
            use_sudo = os.geteuid() != 0
        self.sudo: List[str] = ["sudo"] if use_sudo else []
        if run_as is None:
            run_as = _sudo_caller()
        self.run_as = run_as or None
        self.as_user: List[str] = ["sudo", "-u", run_as, "-H"] if run_as else []

    # -- queries -------------------------------------------------------

    def command_exists(self, name: str) -> bool:
        return shutil.which(name) is not None

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)

    def package_installed(self, name: str) -> bool:
        return pkg.pacman_is_installed(name)

    def read_text(self, path: str) -> str:
        p = Path(path)
        if not p.exists():
            return ""
        return p.read_text(encoding="utf-8")

    def path_exists(self, path: str) -> bool:
        return Path(path).expanduser().exists()

    def service_enabled(self, unit: str) -> bool:
        return services.service_is_enabled(unit)

    def process_running(self, name: str) -> bool:
        return services.process_running(name)

    def getenv(self, name: str) -> Optional[str]:
        return os.environ.get(name)

    def pci_devices(self) -> str:
        return hwdetect.lspci_output()

    def wireless_interfaces(self) -> List[str]:
        return net.wireless_interfaces()

    def group_exists(self, group: str) -> bool:
        return services.group_exists(group)

    def user_in_group(self, user: str, group: str) -> bool:
        return services.user_in_group(user, group)

    def login_shell(self, user: str) -> Optional[str]:
        return services.login_shell(user)

    def invoking_user(self) -> str:
        return os.environ.get("SUDO_USER") or getpass.getuser()

    def home_dir(self) -> str:
        user = self.invoking_user()
        try:
            return pwd.getpwnam(user).pw_dir
        except KeyError:
            return str(Path.home())

    def run_query(self, argv: Sequence[str]) -> CmdResult:
        return run_cmd(argv, check=False)

    # -- mutations -----------------------------------------------------

    def pacman_upgrade(self) -> None:
        pkg.pacman_upgrade(sudo=self.sudo, dry_run=self.dry_run)

    def pacman_install(self, packages: Sequence[str], *, upgrade: bool = False) -> None:
        pkg.pacman_install(packages, sudo=self.sudo, upgrade=upgrade, dry_run=self.dry_run)

    def aur_install(self, packages: Sequence[str], *, helper: str = "yay") -> None:
        pkg.aur_install(packages, helper=helper, as_user=self.as_user, dry_run=self.dry_run)

    def build_from_source(self, name: str, repo_url: str) -> None:
        pkg.makepkg_from_git(
            repo_url,
            name=name,
            as_user=self.as_user,
            owner=self.run_as,
            dry_run=self.dry_run,
        )

    def append_lines(self, path: str, lines: Sequence[str]) -> None:
        if not lines:
            return
        existing = self.read_text(path)
        payload = "\n".join(lines) + "\n"
        if existing and not existing.endswith("\n"):
            payload = "\n" + payload
        run_cmd([*self.sudo, "tee", "-a", path], input_text=payload, dry_run=self.dry_run)
        logger.info("Appended %d line(s) to %s", len(lines), path)

    def write_text(self, path: str, text: str) -> None:
        run_cmd([*self.sudo, "tee", path], input_text=text, dry_run=self.dry_run)
        logger.info("Rewrote %s", path)

    def reload_sysctl(self) -> None:
        run_cmd([*self.sudo, "sysctl", "--system"], dry_run=self.dry_run)

    def enable_service(self, unit: str) -> None:
        services.systemctl("enable", unit, sudo=self.sudo, dry_run=self.dry_run)

    def start_service(self, unit: str) -> None:
        services.systemctl("start", unit, sudo=self.sudo, dry_run=self.dry_run)

    def ensure_group(self, group: str) -> None:
        services.ensure_group(group, sudo=self.sudo, dry_run=self.dry_run)

    def add_user_to_group(self, user: str, group: str) -> None:
        services.add_user_to_group(user, group, sudo=self.sudo, dry_run=self.dry_run)

    def set_login_shell(self, user: str, shell: str) -> None:
        services.set_login_shell(user, shell, sudo=self.sudo, dry_run=self.dry_run)

    def run_remote_script(self, url: str, *, interpreter: str = "sh", args: Sequence[str] = ()) -> None:
        """Fetch an installer script and feed it to `interpreter` on stdin."""

        script = run_cmd(["curl", "-fsSL", url], dry_run=self.dry_run).stdout
        run_cmd(
            [*self.as_user, interpreter, "-s", "--", *args],
            input_text=script,
            capture=False,
            dry_run=self.dry_run,
        )

    def run(self, argv: Sequence[str]) -> None:
        run_cmd([*self.as_user, *argv], dry_run=self.dry_run)


def _sudo_caller() -> Optional[str]:
    """The user who ran `sudo arch-provisioner`, if that is how we were started."""

    if os.geteuid() != 0:
        return None
    user = os.environ.get("SUDO_USER")
    if not user or user == "root":
        return None
    return user


def missing_packages(host: Host, packages: Sequence[str]) -> List[str]:
    """Packages from the list that are not installed yet (order kept, de-duplicated)."""

    out: List[str] = []
    for p in packages:
        if p not in out and not host.package_installed(p):
            out.append(p)
    return out
