from __future__ import annotations

import logging
import re
from typing import List

from .command import run_cmd

logger = logging.getLogger(__name__)

_IP_LINK_WLAN = re.compile(r"^\d+:\s+(wl[^:@\s]+)", re.MULTILINE)


def parse_iw_dev(output: str) -> List[str]:
    """Interface names from `iw dev` ("\tInterface wlan0" lines)."""
    names: List[str] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[0] == "Interface" and parts[1] not in names:
            names.append(parts[1])
    return names


def parse_ip_link(output: str) -> List[str]:
    names: List[str] = []
    for name in _IP_LINK_WLAN.findall(output):
        if name not in names:
            names.append(name)
    return names


def wireless_interfaces() -> List[str]:
    """Best-effort wireless interface detection.

    `iw` knows about every nl80211 device; when it is missing we fall back
    to interface names from `ip link` (wlan0, wlp3s0, ...).
    """

    try:
        r = run_cmd(["iw", "dev"], check=False)
        if r.returncode == 0:
            found = parse_iw_dev(r.stdout)
            if found:
                return found
    except FileNotFoundError:
        logger.debug("iw not installed; falling back to ip link")

    try:
        r = run_cmd(["ip", "-o", "link", "show"], check=False)
    except FileNotFoundError:
        return []
    return parse_ip_link(r.stdout) if r.returncode == 0 else []
