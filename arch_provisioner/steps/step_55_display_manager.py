from __future__ import annotations

import logging

from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)


class DisplayManagerStep:
    step_id = "55_display_manager"
    description = "Install and enable the display manager"

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        dm = ctx.cfg.display_manager

        if host.service_enabled(dm):
            return StepResult(self.step_id, changed=False, message=f"{dm} already installed and enabled")

        if not host.package_installed(dm):
            host.aur_install([dm], helper=ctx.cfg.aur_helper)
        host.enable_service(dm)
        host.start_service(dm)
        return StepResult(self.step_id, changed=True, message=f"{dm} enabled and started")
