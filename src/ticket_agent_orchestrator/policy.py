"""
Failure policies for the two pipelines.

The triage loop stops at the first agent failure; the integration pipeline
keeps running its remaining steps so a live thread still gets partial progress.
"""

from pydantic import BaseModel, ConfigDict


class FailurePolicy(BaseModel):
    """How a pipeline reacts to a failed step."""
    model_config = ConfigDict(frozen=True)

    name: str
    halt_on_failure: bool
    description: str = ""

    def should_continue(self, step_succeeded: bool) -> bool:
        """Whether the next step may run after a step with the given outcome."""
        return step_succeeded or not self.halt_on_failure


FAIL_FAST = FailurePolicy(
    name="fail_fast",
    halt_on_failure=True,
    description="First failure terminates the run"
)

FAIL_SOFT = FailurePolicy(
    name="fail_soft",
    halt_on_failure=False,
    description="Failures are recorded per step and the remaining steps still run"
)
