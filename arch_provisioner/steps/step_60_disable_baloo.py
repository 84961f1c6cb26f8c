from __future__ import annotations

import logging
from typing import Optional

from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)

# Plasma 6 ships balooctl6; Plasma 5 had balooctl.
BALOOCTL_NAMES = ("balooctl6", "balooctl")


class DisableBalooStep:
    step_id = "60_disable_baloo"
    description = "Disable KDE Baloo file indexing when Plasma is running"

    def _kde_running(self, ctx: StepContext) -> bool:
        desktop = ctx.host.getenv("XDG_CURRENT_DESKTOP") or ""
        return "KDE" in desktop or ctx.host.process_running("plasmashell")

    def _balooctl(self, ctx: StepContext) -> Optional[str]:
        for name in BALOOCTL_NAMES:
            if ctx.host.command_exists(name):
                return name
        return None

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        if not self._kde_running(ctx):
            return StepResult(self.step_id, changed=False, message="KDE Plasma not running")

        balooctl = self._balooctl(ctx)
        if balooctl is None:
            return StepResult(self.step_id, changed=False, message="Baloo is not installed")

        status = host.run_query([balooctl, "status"])
        if "disabled" in status.stdout.lower():
            return StepResult(self.step_id, changed=False, message="Baloo already disabled")

        logger.info("KDE Plasma is running; disabling and purging Baloo")
        host.run([balooctl, ctx.cfg.baloo_stop_verb])
        host.run([balooctl, "disable"])
        host.run([balooctl, "purge"])
        return StepResult(self.step_id, changed=True, message="Baloo disabled and index purged")
