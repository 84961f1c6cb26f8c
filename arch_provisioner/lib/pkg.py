from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)


def pacman_is_installed(package: str) -> bool:
    r = run_cmd(["pacman", "-Qq", package], check=False)
    return r.returncode == 0


def pacman_upgrade(*, sudo: Sequence[str] = (), dry_run: bool = False) -> None:
    """Refresh sync databases and upgrade the whole system."""

    run_cmd([*sudo, "pacman", "-Syu", "--noconfirm"], capture=False, dry_run=dry_run)


def pacman_install(
    packages: Sequence[str],
    *,
    sudo: Sequence[str] = (),
    upgrade: bool = False,
    dry_run: bool = False,
) -> None:
    """Install packages from the sync repos.

    upgrade=True folds a full system upgrade into the same transaction,
    which is how Arch expects new packages to be pulled in.
    """
    if not packages:
        return
    op = "-Syu" if upgrade else "-S"
    run_cmd(
        [*sudo, "pacman", op, "--needed", "--noconfirm", *packages],
        capture=False,
        dry_run=dry_run,
    )


def aur_install(
    packages: Sequence[str],
    *,
    helper: str = "yay",
    as_user: Sequence[str] = (),
    dry_run: bool = False,
) -> None:
    # AUR helpers refuse to run as root and elevate on their own.
    if not packages:
        return
    run_cmd(
        [*as_user, helper, "-S", "--needed", "--noconfirm", *packages],
        capture=False,
        dry_run=dry_run,
    )


def makepkg_from_git(
    repo_url: str,
    *,
    name: str | None = None,
    as_user: Sequence[str] = (),
    owner: str | None = None,
    dry_run: bool = False,
) -> None:
    """Clone a PKGBUILD repo, build and install it, then remove the clone.

    makepkg refuses to run as root; `as_user` is the prefix that runs git
    and makepkg as `owner`, who must also own the build directory.
    """

    name = name or Path(repo_url).stem
    workdir = tempfile.mkdtemp(prefix=f"{name}-")
    clone = Path(workdir) / name
    try:
        if owner and not dry_run:
            shutil.chown(workdir, user=owner)
        run_cmd(
            [*as_user, "git", "clone", "--depth", "1", repo_url, str(clone)],
            capture=False,
            dry_run=dry_run,
        )
        run_cmd([*as_user, "makepkg", "-si", "--noconfirm"], cwd=str(clone), capture=False, dry_run=dry_run)
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
    logger.info("Built and installed %s from %s", name, repo_url)
