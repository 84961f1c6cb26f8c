from __future__ import annotations

import logging

from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)


class AurHelperStep:
    step_id = "35_aur_helper"
    description = "Build and install the AUR helper"

    def run(self, ctx: StepContext) -> StepResult:
        helper = ctx.cfg.aur_helper
        if ctx.host.command_exists(helper):
            return StepResult(self.step_id, changed=False, message=f"{helper} already installed")

        logger.info("%s is not installed; building from %s", helper, ctx.cfg.aur_helper_repo)
        ctx.host.build_from_source(helper, ctx.cfg.aur_helper_repo)
        return StepResult(self.step_id, changed=True, message=f"{helper} installed")
