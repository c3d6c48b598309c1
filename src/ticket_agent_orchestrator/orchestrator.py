"""
Ticket orchestrator facade.
Wires the registry, both pipelines, metrics and response assembly together.
"""

import logging
import time
from typing import Dict, Any, Optional, List, Mapping, Union

from .config import DEFAULT_ASSIGNMENT_CONFIDENCE, MAX_ITERATIONS
from .exceptions import AgentInvocationError
from .integrations import AITextGenerationService, MessagingService
from .metrics import WorkflowMetrics, WorkflowMetricsAggregator
from .models import AgentAnalysis, AgentRole, Ticket
from .pipeline import EnhancedPipelineRunner
from .registry import AgentRegistry
from .response import ResponseAssembler
from .state import (
    EnhancedWorkflowContext, EnhancedWorkflowResult, MultiAgentResponse, WorkflowStatus, WorkflowStepResult
)
from .state_machine import WorkflowStateMachine


class TicketOrchestrator:
    """Public entry point for ticket triage and the integration pipeline."""

    def __init__(self, registry: AgentRegistry, ai_service: AITextGenerationService, messaging: MessagingService,
                 logger: logging.Logger, metrics: Optional[WorkflowMetricsAggregator] = None,
                 team_mentions: Optional[Mapping[Union[str, AgentRole], List[str]]] = None,
                 entry_role: AgentRole = AgentRole.PROJECT_MANAGER, max_iterations: int = MAX_ITERATIONS,
                 assignment_confidence: float = DEFAULT_ASSIGNMENT_CONFIDENCE):
        """Initialize the orchestrator."""
        self.registry = registry
        self.messaging = messaging
        self.logger = logger
        self.metrics = metrics or WorkflowMetricsAggregator()
        self.assembler = ResponseAssembler()

        mentions = {AgentRole.parse(role): list(users) for role, users in (team_mentions or {}).items()}

        self.state_machine = WorkflowStateMachine(registry, self.metrics, logger, entry_role, max_iterations)
        self.pipeline = EnhancedPipelineRunner(
            registry, self.metrics, ai_service, messaging, logger,
            team_mentions=mentions,
            assembler=self.assembler,
            assignment_confidence=assignment_confidence
        )

    async def process_ticket(self, ticket: Ticket) -> MultiAgentResponse:
        """Run the triage loop for a ticket."""
        start = time.perf_counter()
        state = await self.state_machine.execute(ticket)
        processing_time_ms = (time.perf_counter() - start) * 1000

        response = self.assembler.assemble(state, processing_time_ms)
        self.metrics.record_completion(
            processing_time_ms,
            state.status is WorkflowStatus.COMPLETED,
            response.agents_involved
        )

        self.logger.info(
            f"Ticket {ticket.id} processed: status={state.status.value}, "
            f"agents={[role.value for role in response.agents_involved]}, confidence={response.combined_confidence}"
        )
        return response

    async def execute_enhanced_workflow(self, context: EnhancedWorkflowContext) -> EnhancedWorkflowResult:
        """Run the four-step integration pipeline for a ticket."""
        result = await self.pipeline.run(context)
        self.metrics.record_completion(result.processing_time_ms or 0, result.success, result.agents_involved)
        return result

    async def execute_with_fallback(self, context: EnhancedWorkflowContext) -> EnhancedWorkflowResult:
        """Run the pipeline; an unexpected error yields a failed result instead of propagating."""
        try:
            return await self.execute_enhanced_workflow(context)
        except Exception as e:
            self.logger.exception(f"Enhanced workflow crashed for ticket {context.ticket.id}: {str(e)}")

            try:
                await self.messaging.send_message(
                    context.channel,
                    f"Ticket #{context.ticket.id} has been logged. AI analysis is incomplete; "
                    f"the team will review it manually.",
                    thread_ts=context.thread_ts
                )
            except Exception as notify_error:
                self.logger.error(f"Fallback notification failed for ticket {context.ticket.id}: {str(notify_error)}")

            result = EnhancedWorkflowResult(ticket_id=context.ticket.id, total_steps=1,
                                            policy=self.pipeline.policy.name)
            result.add_step_result(WorkflowStepResult(
                success=False,
                step_name="enhanced_workflow",
                error=str(e),
                thread_ts=context.thread_ts
            ))
            return result

    async def route_to_agent(self, ticket: Ticket, role: Union[str, AgentRole],
                             context: Optional[Dict[str, Any]] = None) -> AgentAnalysis:
        """Ask a single agent for an analysis, without handoffs."""
        try:
            role = AgentRole.parse(role)
        except ValueError:
            raise AgentInvocationError(f"Unknown agent role: {role}", str(role), "UNKNOWN_ROLE")

        agent = self.registry.get(role)
        if agent is None:
            raise AgentInvocationError(f"No agent registered for role {role.value}", role.value, "AGENT_NOT_FOUND")

        try:
            analysis = await agent.analyze(ticket, context or {})
        except Exception as e:
            self.logger.error(f"Direct routing of ticket {ticket.id} to {role.value} failed: {str(e)}")
            raise AgentInvocationError(f"Agent {role.value} failed: {str(e)}", role.value,
                                       details={"original_error": str(e)})

        self.metrics.record_agent_utilization(role, analysis.confidence)
        return analysis

    def get_workflow_metrics(self) -> WorkflowMetrics:
        """Detached snapshot of the workflow metrics."""
        return self.metrics.snapshot()

    def reset_metrics(self) -> None:
        self.metrics.reset()
        self.logger.info("Workflow metrics reset")

    def get_agent_statuses(self) -> Dict[str, Dict[str, Any]]:
        """Availability, capabilities and utilization per role."""
        utilization = self.metrics.snapshot().agent_utilization
        statuses = self.registry.agent_statuses()
        for role in AgentRole:
            usage = utilization.get(role)
            statuses[role.value]["utilization"] = usage.model_dump(mode="json") if usage else None
        return statuses
