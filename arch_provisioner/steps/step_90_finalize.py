from __future__ import annotations

import logging

from ..pipeline import StepContext, StepResult

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "All tools installed and configured!"


class FinalizeStep:
    step_id = "90_finalize"
    description = "Report the outcome of the run"

    def run(self, ctx: StepContext) -> StepResult:
        changed = [r.step_id for r in ctx.results if r.changed]
        logger.info("Finalize summary: changed=%s decisions=%s",
                    ",".join(changed) or "-",
                    (ctx.state.get("execution") or {}).get("decisions") or {})
        logger.info(SUCCESS_MESSAGE)
        return StepResult(self.step_id, changed=False, message=SUCCESS_MESSAGE)
