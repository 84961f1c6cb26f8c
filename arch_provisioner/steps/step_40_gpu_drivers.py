from __future__ import annotations

import logging
from typing import List

from ..lib.gpu import select_driver
from ..lib.hwdetect import detect_gpu
from ..lib.host import missing_packages
from ..pipeline import StepContext, StepResult
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class GpuDriversStep:
    step_id = "40_gpu_drivers"
    description = "Install GPU drivers for the configured or detected vendor"

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        mode = ctx.cfg.gpu_driver

        lspci = None
        if mode == "auto":
            lspci = host.pci_devices()
            ctx.state.setdefault("hardware", {})["gpu"] = detect_gpu(lspci)

        drivers, why = select_driver(mode, lspci, amd_mesa_git=ctx.cfg.amd_mesa_git)
        record_decision(ctx.state, "gpu_driver", dict(why, driver_set=drivers.vendor))

        if drivers.empty:
            return StepResult(self.step_id, changed=False, message="no supported GPU detected; skipping drivers")

        done: List[str] = []
        missing = missing_packages(host, drivers.packages)
        if missing:
            host.pacman_install(missing)
            done.extend(missing)

        for build in drivers.source_builds:
            if host.package_installed(build.name):
                continue
            host.build_from_source(build.name, build.repo_url)
            done.append(build.name)

        if not done:
            return StepResult(self.step_id, changed=False, message=f"{drivers.vendor} drivers already installed")
        return StepResult(self.step_id, changed=True, message=f"{drivers.vendor} drivers: " + " ".join(done))
