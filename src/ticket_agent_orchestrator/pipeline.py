"""
Fixed four-step integration pipeline for tickets discussed in a live thread.

Steps run in order as nodes of a LangGraph workflow:
thread_continuation -> ticket_analysis -> agent_assignment -> team_mention.
A failing step is recorded as a failed ``WorkflowStepResult``; whether the
next step still runs is decided by the pipeline's ``FailurePolicy``.
"""

import logging
import operator
import time
from typing import Annotated, Dict, Any, Optional, List

from langgraph.graph import StateGraph, START, END
from pydantic import BaseModel, Field

from .config import DEFAULT_ASSIGNMENT_CONFIDENCE
from .enrichment import enhance_ticket_analysis, generate_next_steps
from .exceptions import AgentInvocationError, IntegrationError, OrchestratorError
from .integrations import AITextGenerationService, MessagingService
from .metrics import WorkflowMetricsAggregator
from .models import AgentRole, Ticket, TicketAnalysis
from .policy import FAIL_SOFT, FailurePolicy
from .registry import AgentRegistry
from .response import ResponseAssembler
from .routing import select_role
from .state import EnhancedWorkflowContext, EnhancedWorkflowResult, MultiAgentResponse, WorkflowStepResult

STEP_NAMES = ("thread_continuation", "ticket_analysis", "agent_assignment", "team_mention")


class PipelineState(BaseModel):
    """State flowing through the pipeline graph."""
    context: EnhancedWorkflowContext
    step_results: Annotated[List[WorkflowStepResult], operator.add] = Field(default_factory=list)
    ai_analysis: Optional[TicketAnalysis] = None
    assigned_role: Optional[AgentRole] = None
    assignment_rule: Optional[str] = None
    agent_response: Optional[MultiAgentResponse] = None
    team_mentions: Optional[str] = None


def format_ticket_text(ticket: Ticket) -> str:
    """Plain-text rendering of a ticket for the AI service."""
    return (
        f"Subject: {ticket.subject}\n"
        f"Description: {ticket.description}\n"
        f"Priority: {ticket.priority}\n"
        f"Status: {ticket.status}"
    )


def role_label(role: AgentRole) -> str:
    return role.value.replace("_", " ").title()


class EnhancedPipelineRunner:
    """Runs the four pipeline steps and aggregates their outcomes."""

    def __init__(self, registry: AgentRegistry, metrics: WorkflowMetricsAggregator,
                 ai_service: AITextGenerationService, messaging: MessagingService, logger: logging.Logger,
                 team_mentions: Optional[Dict[AgentRole, List[str]]] = None,
                 assembler: Optional[ResponseAssembler] = None, policy: FailurePolicy = FAIL_SOFT,
                 assignment_confidence: float = DEFAULT_ASSIGNMENT_CONFIDENCE):
        """Initialize the pipeline runner."""
        self.registry = registry
        self.metrics = metrics
        self.ai_service = ai_service
        self.messaging = messaging
        self.logger = logger
        self.team_mentions = team_mentions or {}
        self.assembler = assembler or ResponseAssembler()
        self.policy = policy
        self.assignment_confidence = assignment_confidence

        self.workflow = self._build_workflow()

    def _build_workflow(self):
        """Build the LangGraph workflow."""
        workflow = StateGraph(PipelineState)

        workflow.add_node("thread_continuation", self._thread_continuation)
        workflow.add_node("ticket_analysis", self._ticket_analysis)
        workflow.add_node("agent_assignment", self._agent_assignment)
        workflow.add_node("team_mention", self._team_mention)

        workflow.add_edge(START, STEP_NAMES[0])

        # Every step but the last may be followed by the next one, policy permitting
        for current, following in zip(STEP_NAMES, STEP_NAMES[1:]):
            workflow.add_conditional_edges(
                current,
                self._step_router,
                {
                    "continue": following,
                    "halt": END
                }
            )

        workflow.add_edge(STEP_NAMES[-1], END)

        return workflow.compile()

    def _step_router(self, state: PipelineState) -> str:
        """Route based on the last step's outcome and the failure policy."""
        last_step = state.step_results[-1]
        return "continue" if self.policy.should_continue(last_step.success) else "halt"

    async def run(self, context: EnhancedWorkflowContext) -> EnhancedWorkflowResult:
        """Run the pipeline for one ticket."""
        start = time.perf_counter()
        self.logger.info(f"Starting enhanced workflow for ticket {context.ticket.id} in {context.channel}")

        final = await self.workflow.ainvoke(PipelineState(context=context))
        values = final if isinstance(final, dict) else dict(final)

        result = EnhancedWorkflowResult(
            ticket_id=context.ticket.id,
            total_steps=len(STEP_NAMES),
            policy=self.policy.name,
            ai_analysis=values.get("ai_analysis"),
            agent_response=values.get("agent_response"),
            team_mentions=values.get("team_mentions"),
            metadata={
                "assigned_role": values["assigned_role"].value if values.get("assigned_role") else None,
                "assignment_rule": values.get("assignment_rule"),
                "thread_ts": context.thread_ts
            }
        )
        for step in values.get("step_results", []):
            result.add_step_result(step)

        result.processing_time_ms = (time.perf_counter() - start) * 1000
        self.assembler.summarize_pipeline(result)

        if result.failed_steps:
            self.logger.warning(
                f"Enhanced workflow for ticket {context.ticket.id} finished with "
                f"{len(result.failed_steps)} failed step(s): {result.errors}"
            )
        else:
            self.logger.info(f"Enhanced workflow for ticket {context.ticket.id} completed all steps")

        return result

    async def _run_step(self, step_name: str, step, state: PipelineState) -> WorkflowStepResult:
        """Run one step, converting any failure into a failed step result."""
        try:
            return await step(state)
        except OrchestratorError as e:
            self.logger.error(f"Step {step_name} failed for ticket {state.context.ticket.id}: {e.message}")
            return WorkflowStepResult(success=False, step_name=step_name, error=e.message,
                                      thread_ts=state.context.thread_ts)
        except Exception as e:
            self.logger.error(f"Unexpected error in step {step_name} for ticket {state.context.ticket.id}: {str(e)}")
            return WorkflowStepResult(success=False, step_name=step_name, error=str(e),
                                      thread_ts=state.context.thread_ts)

    async def _thread_continuation(self, state: PipelineState) -> Dict[str, Any]:
        step = await self._run_step("thread_continuation", self._continue_thread, state)
        return {"step_results": [step]}

    async def _ticket_analysis(self, state: PipelineState) -> Dict[str, Any]:
        step = await self._run_step("ticket_analysis", self._analyze_ticket, state)
        update: Dict[str, Any] = {"step_results": [step]}
        if step.success:
            update["ai_analysis"] = step.data
        return update

    async def _agent_assignment(self, state: PipelineState) -> Dict[str, Any]:
        step = await self._run_step("agent_assignment", self._assign_agent, state)
        update: Dict[str, Any] = {"step_results": [step]}
        if step.success:
            update["assigned_role"] = step.data["role"]
            update["assignment_rule"] = step.data["rule"]
            update["agent_response"] = step.data["agent_response"]
        return update

    async def _team_mention(self, state: PipelineState) -> Dict[str, Any]:
        step = await self._run_step("team_mention", self._mention_team, state)
        update: Dict[str, Any] = {"step_results": [step]}
        if step.success:
            update["team_mentions"] = step.data["message"]
        return update

    async def _continue_thread(self, state: PipelineState) -> WorkflowStepResult:
        context = state.context
        if not context.thread_ts:
            return WorkflowStepResult(
                success=False,
                step_name="thread_continuation",
                error="No existing thread to continue"
            )

        text = f"AI analysis starting for ticket #{context.ticket.id}: {context.ticket.subject}"
        if context.task_url:
            text += f"\nTask: {context.task_url}"

        delivery = await self.messaging.send_message(context.channel, text, thread_ts=context.thread_ts)
        if not delivery.success:
            raise IntegrationError(f"Failed to post in thread: {delivery.error}", "messaging",
                                   "MESSAGE_DELIVERY_FAILED")

        return WorkflowStepResult(
            success=True,
            step_name="thread_continuation",
            data={"message_ts": delivery.ts},
            thread_ts=context.thread_ts
        )

    async def _analyze_ticket(self, state: PipelineState) -> WorkflowStepResult:
        context = state.context
        if context.existing_analysis is not None:
            analysis = enhance_ticket_analysis(context.existing_analysis, context.ticket)
            source = "existing"
        else:
            analysis = await self.ai_service.analyze_ticket(format_ticket_text(context.ticket))
            source = "ai_service"

        self.logger.info(f"Ticket {context.ticket.id} analysis from {source}: category={analysis.category}")
        return WorkflowStepResult(success=True, step_name="ticket_analysis", data=analysis,
                                  thread_ts=context.thread_ts)

    async def _assign_agent(self, state: PipelineState) -> WorkflowStepResult:
        ticket = state.context.ticket
        role, rule = select_role(ticket, state.ai_analysis)

        agent = self.registry.get(role)
        if agent is None:
            raise AgentInvocationError(f"No agent registered for role {role.value}", role.value, "AGENT_NOT_FOUND")

        start = time.perf_counter()
        try:
            analysis = await agent.analyze(ticket, {"previous_agents": []})
        except Exception as e:
            raise AgentInvocationError(f"Agent {role.value} failed: {str(e)}", role.value,
                                       details={"original_error": str(e)})
        elapsed_ms = (time.perf_counter() - start) * 1000

        self.metrics.record_agent_utilization(role, analysis.confidence)
        self.logger.info(f"Ticket {ticket.id} assigned to {role.value} by rule '{rule}'")

        return WorkflowStepResult(
            success=True,
            step_name="agent_assignment",
            data={
                "role": role,
                "rule": rule,
                "assignment_confidence": self.assignment_confidence,
                "agent_response": self.assembler.assemble_assignment(ticket, role, analysis, elapsed_ms)
            },
            thread_ts=state.context.thread_ts
        )

    async def _mention_team(self, state: PipelineState) -> WorkflowStepResult:
        context = state.context
        role = state.assigned_role or AgentRole.PROJECT_MANAGER
        message = self.compose_team_message(context, role, state.ai_analysis)

        delivery = await self.messaging.send_message(context.channel, message, thread_ts=context.thread_ts)
        if not delivery.success:
            raise IntegrationError(f"Failed to send team notification: {delivery.error}", "messaging",
                                   "MESSAGE_DELIVERY_FAILED")

        return WorkflowStepResult(
            success=True,
            step_name="team_mention",
            data={"message": message, "mentioned": list(self.team_mentions.get(role, [])), "message_ts": delivery.ts},
            thread_ts=context.thread_ts
        )

    def compose_team_message(self, context: EnhancedWorkflowContext, role: AgentRole,
                             analysis: Optional[TicketAnalysis]) -> str:
        """Short plain-text notification for the team behind a role."""
        mentions = " ".join(f"<@{user_id}>" for user_id in self.team_mentions.get(role, []))
        category = (analysis.category if analysis and analysis.category else "general")
        urgency = (analysis.urgency if analysis and analysis.urgency else "medium")

        lines = [
            f"{mentions} Ticket #{context.ticket.id} assigned to {role_label(role)}".strip(),
            f"Category: {category} | Urgency: {urgency}",
        ]
        if analysis and analysis.summary:
            lines.append(f"Summary: {analysis.summary}")

        lines.append("Next steps:")
        lines.extend(f"- {step}" for step in generate_next_steps(context.ticket, analysis))

        if context.task_url:
            lines.append(f"Task: {context.task_url}")

        return "\n".join(lines)
