"""
Test response assembly.
"""

import pytest

from ticket_agent_orchestrator.models import AgentAnalysis, AgentRole, Ticket, TicketAnalysis
from ticket_agent_orchestrator.response import ResponseAssembler
from ticket_agent_orchestrator.state import (
    EnhancedWorkflowResult, WorkflowState, WorkflowStatus, WorkflowStepResult
)


def analysis(role, confidence, actions=None):
    return AgentAnalysis(agent_role=role, analysis="x", confidence=confidence, recommended_actions=actions or [])


@pytest.fixture
def assembler():
    return ResponseAssembler()


class TestResponseAssembler:
    """Test derived response fields."""

    def test_combined_confidence_is_rounded_mean(self, assembler):
        insights = [analysis(AgentRole.PROJECT_MANAGER, c) for c in (80, 60, 100)]
        assert assembler.combined_confidence(insights) == 80

    def test_combined_confidence_rounds_half_up(self, assembler):
        insights = [analysis(AgentRole.PROJECT_MANAGER, c) for c in (80, 81)]
        assert assembler.combined_confidence(insights) == 81

    def test_combined_confidence_without_insights(self, assembler):
        assert assembler.combined_confidence([]) == 0

    def test_final_recommendations_from_latest_analysis(self, assembler):
        insights = [
            analysis(AgentRole.PROJECT_MANAGER, 50, ["triage"]),
            analysis(AgentRole.DEVOPS, 70, ["restart", "monitor"]),
        ]
        assert assembler.final_recommendations(insights) == ["restart", "monitor"]
        assert assembler.final_recommendations([]) == []

    def test_assemble_triage_run(self, assembler):
        ticket = Ticket(id=5, subject="Deploy failed")
        state = WorkflowState.start(ticket, AgentRole.PROJECT_MANAGER)
        state.context.insights.append(analysis(AgentRole.PROJECT_MANAGER, 60, ["triage"]))
        state.hand_off(AgentRole.DEVOPS, "infra")
        state.context.insights.append(analysis(AgentRole.DEVOPS, 91, ["rollback"]))
        state.complete()

        response = assembler.assemble(state, 12.5)

        assert response.ticket_id == 5
        assert response.agents_involved == [AgentRole.DEVOPS, AgentRole.PROJECT_MANAGER]
        assert response.handoff_count == 1
        assert response.combined_confidence == 76
        assert response.final_recommendations == ["rollback"]
        assert response.processing_time_ms == 12.5
        assert response.workflow is not state

    def test_agents_involved_keeps_repeats(self, assembler):
        state = WorkflowState.start(Ticket(id=1, subject="x"), AgentRole.PROJECT_MANAGER)
        state.hand_off(AgentRole.DEVOPS, "a")
        state.hand_off(AgentRole.PROJECT_MANAGER, "b")

        assert assembler.agents_involved(state) == [
            AgentRole.PROJECT_MANAGER, AgentRole.PROJECT_MANAGER, AgentRole.DEVOPS
        ]

    def test_assemble_assignment(self, assembler):
        ticket = Ticket(id=9, subject="Plugin update")
        response = assembler.assemble_assignment(
            ticket, AgentRole.WORDPRESS_DEVELOPER, analysis(AgentRole.WORDPRESS_DEVELOPER, 85, ["update"]), 3.0
        )

        assert response.workflow.status == WorkflowStatus.COMPLETED
        assert response.agents_involved == [AgentRole.WORDPRESS_DEVELOPER]
        assert response.handoff_count == 0
        assert response.combined_confidence == 85

    def test_summarize_pipeline(self, assembler):
        result = EnhancedWorkflowResult(ai_analysis=TicketAnalysis(category="billing", urgency="low"))
        result.add_step_result(WorkflowStepResult(success=True, step_name="ticket_analysis"))
        result.add_step_result(WorkflowStepResult(success=False, step_name="team_mention", error="boom"))

        assembler.summarize_pipeline(result)

        assert result.success is False
        assert result.category == "billing"
        assert result.urgency == "low"
        assert result.errors == ["team_mention: boom"]
