from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

OHMYZSH_INSTALLER_URL = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
NVM_INSTALLER_URL = "https://raw.githubusercontent.com/nvm-sh/nvm/{version}/install.sh"

GPU_DRIVER_MODES = ("auto", "amd", "nvidia", "none")
BALOO_STOP_VERBS = ("stop", "suspend")

DEFAULTS: Dict[str, Any] = {
    "gpu_driver": "auto",
    "amd_mesa_git": False,
    "base_packages": ["git", "vim", "base-devel", "iwd", "dhcpcd"],
    "desktop_packages": ["plasma"],
    "always_upgrade": False,
    "aur_helper": "yay",
    "aur_helper_repo": "https://aur.archlinux.org/yay.git",
    "pacman_apps": ["chromium", "git", "steam", "gamemode", "mangohud", "wine-staging"],
    "aur_apps": ["goverlay"],
    "display_manager": "ly",
    "baloo_stop_verb": "suspend",
    "login_shell": "zsh",
    "ohmyzsh_installer_url": OHMYZSH_INSTALLER_URL,
    "container_group": "docker",
    "node_packages": ["nodejs", "npm", "yarn"],
    "nvm_version": "v0.39.5",
    "sysctl_path": "/etc/sysctl.d/99-sysctl.conf",
    "pacman_conf_path": "/etc/pacman.conf",
    "skip_steps": [],
}

# The AMD and NVIDIA machines used to have one script each; these are the
# places where those scripts differed.
VARIANTS: Dict[str, Dict[str, Any]] = {
    "auto": {},
    "amd": {
        "gpu_driver": "amd",
        "amd_mesa_git": True,
        "aur_apps": ["goverlay", "brave-bin"],
        "node_packages": ["nodejs", "npm"],
        "baloo_stop_verb": "stop",
    },
    "nvidia": {
        "gpu_driver": "auto",
        "aur_apps": ["goverlay"],
        "node_packages": ["nodejs", "npm", "yarn"],
        "baloo_stop_verb": "suspend",
    },
}

_LIST_KEYS = {k for k, v in DEFAULTS.items() if isinstance(v, list)}
_BOOL_KEYS = {k for k, v in DEFAULTS.items() if isinstance(v, bool)}


@dataclass(frozen=True)
class ProvisionConfig:
    raw: Dict[str, Any]

    @property
    def gpu_driver(self) -> str:
        return str(self.raw["gpu_driver"])

    @property
    def amd_mesa_git(self) -> bool:
        return bool(self.raw["amd_mesa_git"])

    @property
    def base_packages(self) -> List[str]:
        return list(self.raw["base_packages"])

    @property
    def desktop_packages(self) -> List[str]:
        return list(self.raw["desktop_packages"])

    @property
    def always_upgrade(self) -> bool:
        return bool(self.raw["always_upgrade"])

    @property
    def aur_helper(self) -> str:
        return str(self.raw["aur_helper"])

    @property
    def aur_helper_repo(self) -> str:
        return str(self.raw["aur_helper_repo"])

    @property
    def pacman_apps(self) -> List[str]:
        return list(self.raw["pacman_apps"])

    @property
    def aur_apps(self) -> List[str]:
        return list(self.raw["aur_apps"])

    @property
    def display_manager(self) -> str:
        return str(self.raw["display_manager"])

    @property
    def baloo_stop_verb(self) -> str:
        return str(self.raw["baloo_stop_verb"])

    @property
    def login_shell(self) -> str:
        return str(self.raw["login_shell"])

    @property
    def ohmyzsh_installer_url(self) -> str:
        return str(self.raw["ohmyzsh_installer_url"])

    @property
    def container_group(self) -> str:
        return str(self.raw["container_group"])

    @property
    def node_packages(self) -> List[str]:
        return list(self.raw["node_packages"])

    @property
    def nvm_version(self) -> str:
        return str(self.raw["nvm_version"])

    @property
    def nvm_installer_url(self) -> str:
        return NVM_INSTALLER_URL.format(version=self.nvm_version)

    @property
    def sysctl_path(self) -> str:
        return str(self.raw["sysctl_path"])

    @property
    def pacman_conf_path(self) -> str:
        return str(self.raw["pacman_conf_path"])

    @property
    def skip_steps(self) -> List[str]:
        return list(self.raw["skip_steps"])


def validate(raw: Dict[str, Any]) -> None:
    unknown = sorted(set(raw) - set(DEFAULTS))
    if unknown:
        raise ValueError(f"Unknown config key(s): {', '.join(unknown)}")

    for key in _LIST_KEYS:
        val = raw.get(key)
        if not isinstance(val, list) or not all(isinstance(x, str) for x in val):
            raise ValueError(f"config.{key} must be a list of strings")

    for key in _BOOL_KEYS:
        if not isinstance(raw.get(key), bool):
            raise ValueError(f"config.{key} must be true or false")

    if raw["gpu_driver"] not in GPU_DRIVER_MODES:
        raise ValueError(f"config.gpu_driver must be one of {', '.join(GPU_DRIVER_MODES)}")

    if raw["baloo_stop_verb"] not in BALOO_STOP_VERBS:
        raise ValueError(f"config.baloo_stop_verb must be one of {', '.join(BALOO_STOP_VERBS)}")


def _read_overrides(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as e:
            raise ValueError(f"{path}: PyYAML is required to read YAML config files") from e
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping/object")
    return data


def load_config(path: Optional[str] = None, *, variant: str = "auto") -> ProvisionConfig:
    """Defaults, then the named variant, then the optional config file."""

    if variant not in VARIANTS:
        raise ValueError(f"Unknown variant {variant!r} (expected one of {', '.join(VARIANTS)})")

    raw = copy.deepcopy(DEFAULTS)
    raw.update(copy.deepcopy(VARIANTS[variant]))
    if path:
        raw.update(_read_overrides(path))

    validate(raw)
    return ProvisionConfig(raw=raw)
