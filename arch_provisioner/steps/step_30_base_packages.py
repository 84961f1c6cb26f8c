from __future__ import annotations

import logging

from ..lib.host import missing_packages
from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)


class BasePackagesStep:
    step_id = "30_base_packages"
    description = "Update the system and install the baseline packages"

    def run(self, ctx: StepContext) -> StepResult:
        cfg = ctx.cfg
        wanted = cfg.base_packages + cfg.desktop_packages
        missing = missing_packages(ctx.host, wanted)

        if missing:
            # -Syu with the new packages: no partial upgrades
            ctx.host.pacman_install(missing, upgrade=True)
            return StepResult(self.step_id, changed=True, message="system updated; installed " + " ".join(missing))

        if cfg.always_upgrade:
            ctx.host.pacman_upgrade()
            return StepResult(self.step_id, changed=True, message="system updated")

        return StepResult(self.step_id, changed=False, message="baseline packages already installed")
