from __future__ import annotations

import logging

from ..lib.host import missing_packages
from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)


class ApplicationsStep:
    step_id = "50_applications"
    description = "Install browser and gaming packages from the repos and the AUR"

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        repo_missing = missing_packages(host, ctx.cfg.pacman_apps)
        aur_missing = missing_packages(host, ctx.cfg.aur_apps)

        if repo_missing:
            host.pacman_install(repo_missing)
        if aur_missing:
            host.aur_install(aur_missing, helper=ctx.cfg.aur_helper)

        installed = repo_missing + aur_missing
        if not installed:
            return StepResult(self.step_id, changed=False, message="applications already installed")
        return StepResult(self.step_id, changed=True, message="installed " + " ".join(installed))
