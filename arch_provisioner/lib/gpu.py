"""GPU driver sets and driver selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .hwdetect import AMD, NONE, NVIDIA, gpu_vendor_from_lspci

MESA_GIT_REPO = "https://github.com/Frogging-Family/mesa-git.git"


@dataclass(frozen=True)
class SourceBuild:
    name: str
    repo_url: str


@dataclass(frozen=True)
class DriverSet:
    vendor: str
    packages: Tuple[str, ...] = ()
    source_builds: Tuple[SourceBuild, ...] = field(default=())

    @property
    def empty(self) -> bool:
        return not self.packages and not self.source_builds


def driver_set(vendor: str, *, amd_mesa_git: bool = False) -> DriverSet:
    if vendor == AMD:
        builds: Tuple[SourceBuild, ...] = ()
        if amd_mesa_git:
            builds = (SourceBuild(name="mesa-git", repo_url=MESA_GIT_REPO),)
        return DriverSet(vendor=AMD, packages=("vulkan-radeon", "lib32-vulkan-radeon"), source_builds=builds)
    if vendor == NVIDIA:
        return DriverSet(vendor=NVIDIA, packages=("nvidia", "lib32-nvidia-utils"))
    return DriverSet(vendor=NONE)


def select_driver(mode: str, lspci_text: Optional[str], *, amd_mesa_git: bool = False) -> Tuple[DriverSet, Dict[str, str]]:
    """Resolve the configured gpu_driver mode into a driver set.

    `amd` and `nvidia` are fixed paths; `auto` looks at the hardware; `none`
    never installs anything. Returns the set plus the reason, for the run
    record.
    """

    if mode in (AMD, NVIDIA, NONE):
        return driver_set(mode, amd_mesa_git=amd_mesa_git), {"reason": "configured", "mode": mode}

    if mode != "auto":
        raise ValueError(f"unknown gpu_driver mode: {mode!r}")

    vendor = gpu_vendor_from_lspci(lspci_text or "")
    return driver_set(vendor, amd_mesa_git=amd_mesa_git), {"reason": "detected", "mode": mode, "vendor": vendor}
