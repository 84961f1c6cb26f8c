"""Arch Linux workstation provisioner.

Core design goals:
- Idempotent steps (check, then act only if needed)
- Fail-fast: the first failing step ends the run
- One step list for every GPU family
- Centralized logging of every command
"""

__all__ = []
