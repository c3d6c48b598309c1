"""
Conversion of terminal runs into caller-facing results.
"""

import math
from typing import List, Sequence

from .models import AgentAnalysis, AgentRole, Ticket
from .state import (
    EnhancedWorkflowResult, MultiAgentResponse, WorkflowContext, WorkflowState, WorkflowStatus
)


class ResponseAssembler:
    """Builds ``MultiAgentResponse`` objects from workflow state."""

    @staticmethod
    def final_recommendations(insights: Sequence[AgentAnalysis]) -> List[str]:
        """Recommended actions of the most recent analysis."""
        if not insights:
            return []
        return list(insights[-1].recommended_actions)

    @staticmethod
    def combined_confidence(insights: Sequence[AgentAnalysis]) -> int:
        """Mean confidence rounded half-up; 0 without analyses."""
        if not insights:
            return 0
        mean = sum(insight.confidence for insight in insights) / len(insights)
        return int(math.floor(mean + 0.5))

    @staticmethod
    def agents_involved(state: WorkflowState) -> List[AgentRole]:
        return [state.current_agent, *state.previous_agents]

    def assemble(self, state: WorkflowState, processing_time_ms: float) -> MultiAgentResponse:
        """Assemble the response of a terminal triage run."""
        insights = state.context.insights
        return MultiAgentResponse(
            ticket_id=state.ticket_id,
            workflow=state.model_copy(deep=True),
            final_recommendations=self.final_recommendations(insights),
            combined_confidence=self.combined_confidence(insights),
            processing_time_ms=processing_time_ms,
            agents_involved=self.agents_involved(state),
            handoff_count=len(state.handoff_history),
            agent_analyses=list(insights)
        )

    def assemble_assignment(self, ticket: Ticket, role: AgentRole, analysis: AgentAnalysis,
                            processing_time_ms: float) -> MultiAgentResponse:
        """Assemble the response of a single-agent assignment (no handoffs)."""
        state = WorkflowState(
            ticket_id=ticket.id,
            current_agent=role,
            context=WorkflowContext(
                ticket=ticket,
                insights=[analysis],
                recommendations=list(analysis.recommended_actions),
                confidence=analysis.confidence
            ),
            status=WorkflowStatus.COMPLETED,
            iterations=1
        )
        return self.assemble(state, processing_time_ms)

    def summarize_pipeline(self, result: EnhancedWorkflowResult) -> EnhancedWorkflowResult:
        """Fill the summary fields of a pipeline result in place."""
        result.success = not result.failed_steps

        if result.agent_response:
            result.confidence = result.agent_response.combined_confidence
            result.agents_involved = list(result.agent_response.agents_involved)

        if result.ai_analysis:
            result.category = result.ai_analysis.category
            result.urgency = result.ai_analysis.urgency

        return result
