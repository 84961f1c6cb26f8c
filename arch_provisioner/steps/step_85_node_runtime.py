from __future__ import annotations

import logging
import os
from typing import List

from ..lib.host import missing_packages
from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)


class NodeRuntimeStep:
    step_id = "85_node_runtime"
    description = "Install Node.js, its package managers and nvm"

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        done: List[str] = []

        if not host.command_exists("node"):
            missing = missing_packages(host, ctx.cfg.node_packages)
            if missing:
                host.pacman_install(missing)
                done.append("installed " + " ".join(missing))
        else:
            logger.info("Node.js is already installed")

        nvm_dir = os.path.join(host.home_dir(), ".nvm")
        if not host.path_exists(nvm_dir):
            logger.info("Installing nvm %s", ctx.cfg.nvm_version)
            host.run_remote_script(ctx.cfg.nvm_installer_url, interpreter="bash")
            done.append(f"installed nvm {ctx.cfg.nvm_version}")
            logger.warning("nvm installed; restart your shell to use it")
        else:
            logger.info("nvm is already installed")

        if not done:
            return StepResult(self.step_id, changed=False, message="Node.js and nvm already installed")
        return StepResult(self.step_id, changed=True, message="; ".join(done))
