"""
Test the keyword agents of the ticket agent orchestrator.
"""

import pytest
import logging
from unittest.mock import Mock

from ticket_agent_orchestrator.agents import (
    AGENT_CLASSES, DevOpsAgent, ProjectManagerAgent, QATesterAgent, SoftwareEngineerAgent,
    WordPressDeveloperAgent
)
from ticket_agent_orchestrator.models import AgentRole, Ticket


@pytest.fixture
def mock_logger():
    """Create mock logger for testing."""
    return Mock(spec=logging.Logger)


def make_ticket(subject, description="", priority="normal"):
    return Ticket(id=7, subject=subject, description=description, priority=priority)


class TestProjectManagerAgent:
    """Test the coordinator agent."""

    @pytest.mark.asyncio
    async def test_routes_wordpress_work_to_platform_specialist(self, mock_logger):
        agent = ProjectManagerAgent(mock_logger)
        analysis = await agent.analyze(make_ticket("WooCommerce plugin broke the shop"))

        assert analysis.agent_role == AgentRole.PROJECT_MANAGER
        assert analysis.next_agent == AgentRole.WORDPRESS_DEVELOPER
        assert analysis.reasoning == "WordPress platform work detected"
        assert analysis.recommended_actions[-1].startswith("Hand off to Wordpress Developer")

    @pytest.mark.asyncio
    async def test_infrastructure_takes_priority_over_code(self, mock_logger):
        agent = ProjectManagerAgent(mock_logger)
        analysis = await agent.analyze(make_ticket("API returns 502 after server deploy"))

        assert analysis.next_agent == AgentRole.DEVOPS

    @pytest.mark.asyncio
    async def test_no_hint_without_keywords(self, mock_logger):
        agent = ProjectManagerAgent(mock_logger)
        analysis = await agent.analyze(make_ticket("Question about our invoice address"))

        assert analysis.next_agent is None
        assert analysis.confidence == 50
        assert analysis.complexity == "simple"
        assert analysis.recommended_actions == ProjectManagerAgent.default_actions

    @pytest.mark.asyncio
    async def test_skips_previously_visited_roles(self, mock_logger):
        agent = ProjectManagerAgent(mock_logger)
        ticket = make_ticket("Bug in the new feature", "The regression appeared after the code change")
        analysis = await agent.analyze(ticket, {"previous_agents": [AgentRole.QA_TESTER]})

        assert analysis.next_agent == AgentRole.SOFTWARE_ENGINEER


class TestSpecialistAgents:
    """Test the specialist agents."""

    @pytest.mark.asyncio
    async def test_findings_raise_confidence_and_complexity(self, mock_logger):
        agent = SoftwareEngineerAgent(mock_logger)
        ticket = make_ticket("API timeout", "The webhook endpoint is slow and the database query times out")
        analysis = await agent.analyze(ticket)

        # api, database and performance findings
        assert analysis.confidence == 85
        assert analysis.complexity == "complex"
        assert analysis.estimated_time == "1-2 days"

    @pytest.mark.asyncio
    async def test_urgent_keywords_escalate_priority(self, mock_logger):
        agent = DevOpsAgent(mock_logger)
        analysis = await agent.analyze(make_ticket("Site down", "Total outage since 9am", priority="normal"))

        assert analysis.priority == "urgent"

    @pytest.mark.asyncio
    async def test_ticket_priority_kept_otherwise(self, mock_logger):
        agent = QATesterAgent(mock_logger)
        analysis = await agent.analyze(make_ticket("Button misaligned on mobile", priority="low"))

        assert analysis.priority == "low"

    @pytest.mark.asyncio
    async def test_no_handoff_back_to_visited_role(self, mock_logger):
        agent = QATesterAgent(mock_logger)
        ticket = make_ticket("Crash on save", "Reproduced the exception twice")
        context = {"previous_agents": [AgentRole.PROJECT_MANAGER, AgentRole.SOFTWARE_ENGINEER]}

        analysis = await agent.analyze(ticket, context)

        assert analysis.next_agent is None

    @pytest.mark.asyncio
    async def test_never_hands_off_to_itself(self, mock_logger):
        agent = WordPressDeveloperAgent(mock_logger)
        analysis = await agent.analyze(make_ticket("Theme CSS broken after hosting migration"))

        assert analysis.next_agent == AgentRole.DEVOPS
        assert analysis.next_agent != agent.role

    def test_can_handle(self, mock_logger):
        agent = DevOpsAgent(mock_logger)
        assert agent.can_handle(make_ticket("Deployment pipeline failing"))
        assert not agent.can_handle(make_ticket("Update the pricing copy"))


class TestAgentTable:

    def test_every_role_has_an_agent_class(self):
        assert set(AGENT_CLASSES) == set(AgentRole)

    def test_agent_classes_declare_their_role(self, mock_logger):
        for role, agent_class in AGENT_CLASSES.items():
            assert agent_class(mock_logger).role == role
