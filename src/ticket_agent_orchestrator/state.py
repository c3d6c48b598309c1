"""
State models for the triage loop and the integration pipeline.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import OrchestratorError, WorkflowError
from .models import AgentRole, AgentAnalysis, Ticket, TicketAnalysis


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowStatus(str, Enum):
    """Lifecycle of a triage run."""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class HandoffRecord(BaseModel):
    """One transfer of responsibility between agents."""
    model_config = ConfigDict(frozen=True)

    from_agent: AgentRole
    to_agent: AgentRole
    reason: str
    timestamp: datetime = Field(default_factory=utcnow)


class WorkflowContext(BaseModel):
    """Accumulated knowledge of a run."""
    ticket: Ticket
    insights: List[AgentAnalysis] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    confidence: float = 0


class WorkflowState(BaseModel):
    """Mutable state of a single triage run."""
    ticket_id: int
    current_agent: AgentRole
    previous_agents: List[AgentRole] = Field(default_factory=list)
    context: WorkflowContext
    status: WorkflowStatus = WorkflowStatus.IN_PROGRESS
    handoff_history: List[HandoffRecord] = Field(default_factory=list)
    iterations: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def start(cls, ticket: Ticket, entry_role: AgentRole) -> "WorkflowState":
        """Create a fresh in-progress state for a ticket."""
        return cls(
            ticket_id=ticket.id,
            current_agent=entry_role,
            context=WorkflowContext(ticket=ticket)
        )

    @property
    def is_terminal(self) -> bool:
        return self.status is not WorkflowStatus.IN_PROGRESS

    def hand_off(self, to_agent: AgentRole, reason: str) -> HandoffRecord:
        """Transfer control to another agent and record the transition."""
        self._require_in_progress("hand off")
        record = HandoffRecord(from_agent=self.current_agent, to_agent=to_agent, reason=reason)
        self.handoff_history.append(record)
        self.previous_agents.append(self.current_agent)
        self.current_agent = to_agent
        return record

    def complete(self) -> None:
        self._require_in_progress("complete")
        self.status = WorkflowStatus.COMPLETED

    def fail(self, error: OrchestratorError) -> None:
        self._require_in_progress("fail")
        self.status = WorkflowStatus.FAILED
        self.error = error.message
        self.error_code = error.error_code

    def _require_in_progress(self, action: str) -> None:
        if self.is_terminal:
            raise WorkflowError(
                f"Cannot {action} workflow for ticket {self.ticket_id}: status is already {self.status.value}",
                "INVALID_TRANSITION"
            )


class MultiAgentResponse(BaseModel):
    """Caller-facing result of a run."""
    model_config = ConfigDict(frozen=True)

    ticket_id: int
    workflow: WorkflowState
    final_recommendations: List[str]
    combined_confidence: int
    processing_time_ms: float
    agents_involved: List[AgentRole]
    handoff_count: int
    agent_analyses: List[AgentAnalysis] = Field(default_factory=list)


class EnhancedWorkflowContext(BaseModel):
    """Input of the integration pipeline."""
    ticket: Ticket
    channel: str
    thread_ts: Optional[str] = None
    task_url: Optional[str] = None
    existing_analysis: Optional[TicketAnalysis] = None


class WorkflowStepResult(BaseModel):
    """Outcome of one pipeline step."""
    success: bool
    step_name: str
    data: Any = None
    error: Optional[str] = None
    thread_ts: Optional[str] = None


class EnhancedWorkflowResult(BaseModel):
    """Aggregated outcome of the integration pipeline."""
    success: bool = False
    completed_steps: List[WorkflowStepResult] = Field(default_factory=list)
    failed_steps: List[WorkflowStepResult] = Field(default_factory=list)
    total_steps: int = 4
    errors: List[str] = Field(default_factory=list)
    ai_analysis: Optional[TicketAnalysis] = None
    agent_response: Optional[MultiAgentResponse] = None
    team_mentions: Optional[str] = None
    confidence: Optional[int] = None
    processing_time_ms: Optional[float] = None
    agents_involved: List[AgentRole] = Field(default_factory=list)
    category: Optional[str] = None
    urgency: Optional[str] = None
    ticket_id: Optional[int] = None
    policy: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def add_step_result(self, step: WorkflowStepResult) -> None:
        if step.success:
            self.completed_steps.append(step)
        else:
            self.failed_steps.append(step)
            if step.error:
                self.errors.append(f"{step.step_name}: {step.error}")
