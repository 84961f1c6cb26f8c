from __future__ import annotations

import grp
import logging
import pwd
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)


def service_is_enabled(unit: str) -> bool:
    r = run_cmd(["systemctl", "is-enabled", unit], check=False)
    return r.returncode == 0


def systemctl(action: str, unit: str, *, sudo: Sequence[str] = (), dry_run: bool = False) -> None:
    run_cmd([*sudo, "systemctl", action, unit], dry_run=dry_run)


def process_running(name: str) -> bool:
    r = run_cmd(["pgrep", "-x", name], check=False)
    return r.returncode == 0


def group_exists(group: str) -> bool:
    try:
        grp.getgrnam(group)
    except KeyError:
        return False
    return True


def user_in_group(user: str, group: str) -> bool:
    """Membership as recorded in the group database.

    A freshly added user is a member here even before logging in again.
    """
    try:
        g = grp.getgrnam(group)
    except KeyError:
        return False
    if user in g.gr_mem:
        return True
    try:
        return pwd.getpwnam(user).pw_gid == g.gr_gid
    except KeyError:
        return False


def login_shell(user: str) -> str | None:
    try:
        return pwd.getpwnam(user).pw_shell or None
    except KeyError:
        return None


def ensure_group(group: str, *, sudo: Sequence[str] = (), dry_run: bool = False) -> None:
    # -f: succeed if the group already exists
    run_cmd([*sudo, "groupadd", "-f", group], dry_run=dry_run)


def add_user_to_group(user: str, group: str, *, sudo: Sequence[str] = (), dry_run: bool = False) -> None:
    run_cmd([*sudo, "usermod", "-aG", group, user], dry_run=dry_run)


def set_login_shell(user: str, shell: str, *, sudo: Sequence[str] = (), dry_run: bool = False) -> None:
    run_cmd([*sudo, "chsh", "-s", shell, user], capture=False, dry_run=dry_run)
