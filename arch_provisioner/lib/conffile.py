"""Text transforms for the system configuration files we touch.

Everything here is pure (str in, str/list out) so callers decide how the
result reaches disk.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Tuple

MIRRORLIST_INCLUDE = "Include = /etc/pacman.d/mirrorlist"


def _section_header_re(section: str) -> "re.Pattern[str]":
    return re.compile(rf"^\s*\[{re.escape(section)}\]\s*$")


def _commented_header_re(section: str) -> "re.Pattern[str]":
    return re.compile(rf"^\s*#\s*\[{re.escape(section)}\]\s*$")


def repo_enabled(text: str, section: str = "multilib") -> bool:
    """True if an uncommented [section] header exists."""
    rx = _section_header_re(section)
    return any(rx.match(line) for line in text.splitlines())


def enable_repo(text: str, section: str = "multilib") -> str:
    """Return pacman.conf text with [section] enabled.

    Uncomments the commented header and the Include line belonging to that
    section only; other commented repos (e.g. testing) stay untouched. If
    the section is not in the file at all, a fresh one is appended.
    """

    if repo_enabled(text, section):
        return text

    lines = text.splitlines(keepends=True)
    header_rx = _commented_header_re(section)

    for i, line in enumerate(lines):
        if not header_rx.match(line):
            continue
        lines[i] = _uncomment(line)
        for j in range(i + 1, len(lines)):
            body = lines[j].strip()
            if not body:
                continue
            if body.lstrip("#").strip().startswith("["):
                break
            if body.startswith("#") and body.lstrip("#").strip().startswith("Include"):
                lines[j] = _uncomment(lines[j])
                break
        return "".join(lines)

    sep = "" if not text or text.endswith("\n") else "\n"
    return f"{text}{sep}\n[{section}]\n{MIRRORLIST_INCLUDE}\n"


def _uncomment(line: str) -> str:
    return re.sub(r"^(\s*)#\s*", r"\1", line, count=1)


def ipv6_disable_lines(interfaces: Iterable[str] = ()) -> List[str]:
    lines = [
        "net.ipv6.conf.all.disable_ipv6=1",
        "net.ipv6.conf.default.disable_ipv6=1",
    ]
    for iface in interfaces:
        lines.append(f"net.ipv6.conf.{iface}.disable_ipv6=1")
    return lines


def sysctl_values(text: str) -> Dict[str, str]:
    """Effective key -> value map; like sysctl, the last assignment wins."""

    values: Dict[str, str] = {}
    for line in text.splitlines():
        s = line.strip()
        if not s or s.startswith(("#", ";")) or "=" not in s:
            continue
        key, value = s.split("=", 1)
        values[key.strip()] = value.strip()
    return values


def _split_setting(line: str) -> Tuple[str, str]:
    key, _, value = line.partition("=")
    return key.strip(), value.strip()


def missing_sysctl_lines(text: str, wanted: Iterable[str]) -> List[str]:
    """Lines from `wanted` whose setting is not in effect in `text` (order kept).

    A key already assigned a different value is included too: appending
    the wanted line overrides the earlier assignment.
    """

    values = sysctl_values(text)
    out: List[str] = []
    for line in wanted:
        key, value = _split_setting(line)
        if values.get(key) == value:
            continue
        values[key] = value
        out.append(line)
    return out


def has_setting(text: str, key: str, value: str) -> bool:
    return sysctl_values(text).get(key) == value

