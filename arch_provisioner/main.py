from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .config import VARIANTS, ProvisionConfig, load_config
from .lib.host import Host, SystemHost
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import PipelineResult, Step, StepContext, run_pipeline
from .state_store import ensure_defaults, load_state, reset_run, save_state
from .steps import (
    ApplicationsStep,
    AurHelperStep,
    BasePackagesStep,
    ContainersStep,
    DisableBalooStep,
    DisableIPv6Step,
    DisplayManagerStep,
    EnableMultilibStep,
    FinalizeStep,
    GpuDriversStep,
    NodeRuntimeStep,
    ShellStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = os.path.join(os.path.dirname(DEFAULT_LOG_PATH), "state.json")


def build_steps() -> List[Step]:
    # Order matters: multilib and the system update come before anything
    # that installs packages.
    return [
        DisableIPv6Step(),
        EnableMultilibStep(),
        BasePackagesStep(),
        AurHelperStep(),
        GpuDriversStep(),
        ApplicationsStep(),
        DisplayManagerStep(),
        DisableBalooStep(),
        ShellStep(),
        ContainersStep(),
        NodeRuntimeStep(),
        FinalizeStep(),
    ]


def provision(
    host: Host,
    cfg: ProvisionConfig,
    state: Dict[str, Any],
    *,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Run every step against `host`, recording the outcome in `state`."""

    ensure_defaults(state)
    reset_run(state)

    ctx = StepContext(host=host, cfg=cfg, state=state)
    result = run_pipeline(
        ctx,
        build_steps(),
        start_at=start_at,
        stop_after=stop_after,
        skip=cfg.skip_steps,
    )

    exe = state.setdefault("execution", {})
    exe["ran_steps"] = result.ran_steps
    exe["noop_steps"] = result.noop_steps
    exe["failed_step"] = result.failed_step
    exe["last_run"] = datetime.now(timezone.utc).isoformat(timespec="seconds")
    if result.failure is not None:
        exe.setdefault("errors", []).append(
            {
                "step": result.failure.step_id,
                "error": result.failure.error,
                "returncode": result.failure.returncode,
            }
        )
    return result


def run(
    *,
    config_path: Optional[str] = None,
    variant: str = "auto",
    state_path: str = DEFAULT_STATE_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    dry_run: bool = False,
    verbose: bool = False,
    host: Optional[Host] = None,
) -> PipelineResult:
    """Provision this machine, persisting a run record next to the log."""

    actual_log_path = configure_logging(log_path=log_path, level=logging.DEBUG if verbose else logging.INFO)

    cfg = load_config(config_path, variant=variant)
    try:
        recorded = load_state(state_path)
    except ValueError as e:
        logger.warning("Ignoring unreadable run record %s (%s); starting a fresh one", state_path, e)
        recorded = {}
    state = ensure_defaults(recorded)
    state["variant"] = variant
    state.setdefault("execution", {}).setdefault("paths", {})["log_path_actual"] = actual_log_path

    if host is None:
        host = SystemHost(dry_run=dry_run)
    if dry_run:
        logger.info("Dry run: commands are logged, nothing is changed")

    try:
        result = provision(host, cfg, state, start_at=start_at, stop_after=stop_after)
    finally:
        if not dry_run:
            save_state(state_path, state)

    if not result.ok:
        logger.error(
            "Provisioning stopped at %s (exit %s); later steps were not run",
            result.failed_step,
            result.exit_code,
        )
    return result


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="arch-provisioner",
        description="Provision a fresh Arch Linux workstation. Safe to re-run.",
    )
    p.add_argument("--config", default=None, help="YAML or JSON file overriding the defaults")
    p.add_argument("--variant", default="auto", choices=sorted(VARIANTS), help="Preset for a GPU family")
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to the run record (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to the provisioning log")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 40_gpu_drivers)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--dry-run", action="store_true", help="Log commands without changing anything")
    p.add_argument("--verbose", "-v", action="store_true", help="Show captured command output on the console")
    p.add_argument("--list-steps", action="store_true", help="Print the step ids and exit")

    args = p.parse_args(argv)

    if args.list_steps:
        for step in build_steps():
            print(f"{step.step_id}\t{step.description}")
        return 0

    try:
        result = run(
            config_path=args.config,
            variant=args.variant,
            state_path=args.state,
            log_path=args.log,
            start_at=args.start_at,
            stop_after=args.stop_after,
            dry_run=bool(args.dry_run),
            verbose=bool(args.verbose),
        )
    except (ValueError, FileNotFoundError) as e:
        p.error(str(e))

    return result.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
