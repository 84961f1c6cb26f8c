from __future__ import annotations

import logging

from ..lib.conffile import enable_repo, repo_enabled
from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)

REPO = "multilib"


class EnableMultilibStep:
    step_id = "20_enable_multilib"
    description = "Enable the multilib repository and refresh package databases"

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        path = ctx.cfg.pacman_conf_path
        text = host.read_text(path)
        if not text:
            raise RuntimeError(f"{path} is missing or empty; is this an Arch system?")

        if repo_enabled(text, REPO):
            return StepResult(self.step_id, changed=False, message=f"[{REPO}] already enabled")

        host.write_text(path, enable_repo(text, REPO))
        host.pacman_upgrade()
        return StepResult(self.step_id, changed=True, message=f"[{REPO}] enabled, databases refreshed")
