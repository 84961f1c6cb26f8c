from __future__ import annotations

import logging

from ..lib.conffile import has_setting, ipv6_disable_lines, missing_sysctl_lines, sysctl_values
from ..pipeline import StepContext, StepResult
from ..state_store import record_decision

logger = logging.getLogger(__name__)

ALL_KEY = "net.ipv6.conf.all.disable_ipv6"


class DisableIPv6Step:
    step_id = "10_disable_ipv6"
    description = "Disable IPv6 system-wide and on wireless interfaces"

    def run(self, ctx: StepContext) -> StepResult:
        host = ctx.host
        path = ctx.cfg.sysctl_path
        text = host.read_text(path)

        if has_setting(text, ALL_KEY, "1"):
            return StepResult(self.step_id, changed=False, message=f"IPv6 already disabled in {path}")

        ifaces = host.wireless_interfaces()
        record_decision(ctx.state, "wireless_interfaces", ifaces)
        ctx.state.setdefault("hardware", {})["wireless_interfaces"] = ifaces

        lines = missing_sysctl_lines(text, ipv6_disable_lines(ifaces))
        overridden = [k for k, v in sysctl_values(text).items() if k.endswith(".disable_ipv6") and v != "1"]
        if overridden:
            logger.warning("Overriding %s in %s", ", ".join(overridden), path)
        host.append_lines(path, lines)
        host.reload_sysctl()

        return StepResult(self.step_id, changed=True, message=f"added {len(lines)} setting(s) to {path}")
