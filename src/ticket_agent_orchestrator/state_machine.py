"""
Bounded handoff loop for internal ticket triage.
"""

import logging

from .config import MAX_ITERATIONS
from .exceptions import AgentInvocationError, BoundExceededError
from .metrics import WorkflowMetricsAggregator
from .models import AgentRole, Ticket
from .policy import FAIL_FAST
from .registry import AgentRegistry
from .state import WorkflowState, WorkflowStatus


class WorkflowStateMachine:
    """Drives agent invocations and handoffs until a run is terminal.

    Each iteration asks the current agent for an analysis. A ``next_agent``
    hint different from the current role hands control over; anything else
    completes the run. The loop is capped at ``max_iterations``; a run still
    in progress at the cap is marked failed.
    """

    policy = FAIL_FAST

    def __init__(self, registry: AgentRegistry, metrics: WorkflowMetricsAggregator, logger: logging.Logger,
                 entry_role: AgentRole = AgentRole.PROJECT_MANAGER, max_iterations: int = MAX_ITERATIONS):
        """Initialize the state machine."""
        self.registry = registry
        self.metrics = metrics
        self.logger = logger
        self.entry_role = entry_role
        self.max_iterations = max_iterations

    async def execute(self, ticket: Ticket) -> WorkflowState:
        """Run the triage loop for one ticket and return the terminal state."""
        state = WorkflowState.start(ticket, self.entry_role)
        self.logger.info(f"Starting triage for ticket {ticket.id} with {self.entry_role.value}")

        while state.status is WorkflowStatus.IN_PROGRESS and state.iterations < self.max_iterations:
            role = state.current_agent
            agent = self.registry.get(role)
            if agent is None:
                state.fail(AgentInvocationError(f"No agent registered for role {role.value}", role.value,
                                                "AGENT_NOT_FOUND"))
                self.logger.error(f"Ticket {ticket.id}: no agent registered for {role.value}")
                break

            try:
                analysis = await agent.analyze(ticket, {"previous_agents": list(state.previous_agents)})
            except Exception as e:
                state.fail(AgentInvocationError(
                    f"Agent {role.value} failed: {str(e)}", role.value, details={"original_error": str(e)}
                ))
                self.logger.error(f"Ticket {ticket.id}: agent {role.value} failed: {str(e)}")
                break

            state.context.insights.append(analysis)
            self.metrics.record_agent_utilization(role, analysis.confidence)

            if analysis.next_agent and analysis.next_agent != role:
                record = state.hand_off(analysis.next_agent, analysis.reasoning or "Agent recommendation")
                self.metrics.record_handoff()
                self.logger.info(
                    f"Ticket {ticket.id}: handoff {record.from_agent.value} -> {record.to_agent.value} ({record.reason})"
                )
            else:
                state.complete()

            state.iterations += 1
            state.context.recommendations = list(analysis.recommended_actions)
            state.context.confidence = analysis.confidence

        if state.status is WorkflowStatus.IN_PROGRESS:
            bound = BoundExceededError(ticket.id, self.max_iterations)
            state.fail(bound)
            self.logger.warning(bound.message)

        self.logger.info(
            f"Triage for ticket {ticket.id} finished: {state.status.value} after {state.iterations} iterations"
        )
        return state
