"""Logging for a provisioning run.

The log file is the run's execution trace: every command is logged as
`CMD ...` before it runs, and captured output follows at DEBUG. The file
always records DEBUG; the console shows `level` and above.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_PATH = os.path.join(
    os.environ.get("XDG_STATE_HOME") or os.path.expanduser("~/.local/state"),
    "arch-provisioner",
    "provision.log",
)
FALLBACK_LOG_NAME = "arch-provisioner.log"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_active_path: Optional[str] = None
_console: Optional[logging.Handler] = None


def _file_handler(path: str) -> logging.FileHandler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def configure_logging(log_path: str = DEFAULT_LOG_PATH, level: int = logging.INFO) -> str:
    """Attach the trace file and console handlers; return the file in use.

    Falls back to ./arch-provisioner.log when `log_path` cannot be opened.
    Handlers are only attached once per process; later calls just change
    the console level.
    """

    global _active_path, _console

    if _active_path is not None:
        if _console is not None:
            _console.setLevel(level)
        return _active_path

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    unwritable: Optional[OSError] = None
    try:
        trace = _file_handler(log_path)
        chosen = log_path
    except OSError as e:
        unwritable = e
        chosen = str(Path.cwd() / FALLBACK_LOG_NAME)
        trace = _file_handler(chosen)
    trace.setLevel(logging.DEBUG)
    trace.setFormatter(formatter)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(trace)
    root.addHandler(console)
    _active_path, _console = chosen, console

    log = logging.getLogger(__name__)
    if unwritable is not None:
        log.warning("Cannot write %s (%s); logging to %s instead", log_path, unwritable, chosen)
    log.info("Provisioning log: %s", chosen)
    return chosen
