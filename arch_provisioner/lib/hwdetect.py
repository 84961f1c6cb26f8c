from __future__ import annotations

import logging
from typing import Any, Dict, List

from .command import run_cmd

logger = logging.getLogger(__name__)

AMD = "amd"
NVIDIA = "nvidia"
NONE = "none"

# PCI vendor ids, as printed by `lspci -nn` ([1002:73bf])
_GPU_VENDOR_IDS = {
    "1002": AMD,
    "10de": NVIDIA,
}

_VENDOR_STRINGS = {
    NVIDIA: ("nvidia",),
    AMD: ("advanced micro devices", "amd/ati", "[amd", "amd ", "ati technologies", "radeon"),
}

_DISPLAY_CLASSES = ("vga compatible controller", "3d controller", "display controller")


def display_lines(lspci_output: str) -> List[str]:
    return [ln for ln in lspci_output.splitlines() if any(c in ln.lower() for c in _DISPLAY_CLASSES)]


def _line_vendors(line: str) -> List[str]:
    low = line.lower()
    found: List[str] = []
    for vid, vendor in _GPU_VENDOR_IDS.items():
        if f"[{vid}:" in low and vendor not in found:
            found.append(vendor)
    for vendor, needles in _VENDOR_STRINGS.items():
        if vendor not in found and any(n in low for n in needles):
            found.append(vendor)
    return found


def gpu_vendor_from_lspci(lspci_output: str) -> str:
    """Pick the GPU vendor from lspci output.

    Only display-class devices count; an AMD CPU's host bridge must not
    look like a Radeon. NVIDIA wins when both are present (hybrid laptops
    run the discrete card through the NVIDIA stack).
    """

    vendors: List[str] = []
    for line in display_lines(lspci_output):
        for v in _line_vendors(line):
            if v not in vendors:
                vendors.append(v)

    if NVIDIA in vendors:
        return NVIDIA
    if AMD in vendors:
        return AMD
    return NONE


def lspci_output() -> str:
    try:
        r = run_cmd(["lspci", "-nn"], check=False)
    except FileNotFoundError:
        logger.warning("lspci not found (pciutils missing); assuming no discrete GPU")
        return ""
    if r.returncode != 0:
        logger.warning("lspci failed (rc=%s); assuming no discrete GPU", r.returncode)
        return ""
    return r.stdout


def detect_gpu(lspci_text: str) -> Dict[str, Any]:
    vendor = gpu_vendor_from_lspci(lspci_text)
    gpu: Dict[str, Any] = {
        "vendor": vendor,
        "present": vendor != NONE,
        "display_devices": display_lines(lspci_text),
    }
    logger.info("GPU: vendor=%s devices=%d", vendor, len(gpu["display_devices"]))
    return gpu
