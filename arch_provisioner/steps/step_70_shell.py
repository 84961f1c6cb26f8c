from __future__ import annotations

import logging
import os
from typing import List

from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)


class ShellStep:
    step_id = "70_shell"
    description = "Install zsh with Oh My Zsh and make it the login shell"

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        shell = ctx.cfg.login_shell
        done: List[str] = []

        if not host.command_exists(shell):
            host.pacman_install([shell])
            done.append(f"installed {shell}")

        omz_dir = os.path.join(host.home_dir(), ".oh-my-zsh")
        if not host.path_exists(omz_dir):
            logger.info("Installing Oh My Zsh")
            # --unattended: no prompts, and leave the login shell to us
            host.run_remote_script(ctx.cfg.ohmyzsh_installer_url, interpreter="sh", args=["--unattended"])
            done.append("installed Oh My Zsh")
        else:
            logger.info("Oh My Zsh is already installed")

        user = host.invoking_user()
        shell_path = host.which(shell) or f"/usr/bin/{shell}"
        current = host.login_shell(user)
        if current != shell_path:
            host.set_login_shell(user, shell_path)
            done.append(f"login shell of {user} set to {shell_path}")

        if not done:
            return StepResult(self.step_id, changed=False, message=f"{shell} and Oh My Zsh already set up")
        return StepResult(self.step_id, changed=True, message="; ".join(done))
