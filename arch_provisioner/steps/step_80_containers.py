from __future__ import annotations

import logging
from typing import List

from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)

ENGINE = "docker"
COMPOSE = "docker-compose"
SERVICE = "docker.service"


class ContainersStep:
    step_id = "80_containers"
    description = "Install Docker and Docker Compose and enable the daemon"

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        group = ctx.cfg.container_group
        user = host.invoking_user()
        done: List[str] = []

        if not host.command_exists(ENGINE):
            logger.info("Installing Docker")
            host.pacman_install([ENGINE])
            done.append(f"installed {ENGINE}")

        if not host.group_exists(group):
            host.ensure_group(group)
            done.append(f"created group {group}")

        if not host.user_in_group(user, group):
            host.add_user_to_group(user, group)
            done.append(f"added {user} to {group}")
            logger.warning("Log out and back in for the %s group membership to apply", group)

        if not host.service_enabled(SERVICE):
            host.enable_service(SERVICE)
            host.start_service(SERVICE)
            done.append(f"enabled {SERVICE}")

        if not host.command_exists(COMPOSE):
            logger.info("Installing Docker Compose")
            host.pacman_install([COMPOSE])
            done.append(f"installed {COMPOSE}")

        if not done:
            return StepResult(self.step_id, changed=False, message="Docker already installed and enabled")
        return StepResult(self.step_id, changed=True, message="; ".join(done))
