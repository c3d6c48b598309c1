"""
Shared fixtures for the ticket agent orchestrator tests.
"""

import logging
from typing import Dict, Any, Optional, List
from unittest.mock import Mock, AsyncMock

import pytest

from ticket_agent_orchestrator.agents import BaseAgent
from ticket_agent_orchestrator.integrations import AITextGenerationService, MessagingService
from ticket_agent_orchestrator.metrics import WorkflowMetricsAggregator
from ticket_agent_orchestrator.models import AgentAnalysis, AgentRole, MessageDelivery, Ticket, TicketAnalysis


class ScriptedAgent(BaseAgent):
    """Agent returning a fixed next-role hint and confidence on every call."""

    def __init__(self, role: AgentRole, next_agent: Optional[AgentRole] = None, confidence: float = 80,
                 actions: Optional[List[str]] = None, error: Optional[Exception] = None):
        super().__init__(role, ["scripted"], Mock(spec=logging.Logger))
        self.next_agent = next_agent
        self.confidence = confidence
        self.actions = actions if actions is not None else [f"{role.value} action"]
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def analyze(self, ticket: Ticket, context: Optional[Dict[str, Any]] = None) -> AgentAnalysis:
        self.calls.append(dict(context or {}))
        if self.error:
            raise self.error
        return self._create_analysis(
            analysis=f"{self.role.value} looked at ticket {ticket.id}",
            confidence=self.confidence,
            recommended_actions=list(self.actions),
            next_agent=self.next_agent,
            reasoning=f"{self.role.value} hands over" if self.next_agent else None
        )


@pytest.fixture
def mock_logger():
    """Create mock logger for testing."""
    return Mock(spec=logging.Logger)


@pytest.fixture
def sample_ticket():
    """Create a plain ticket for testing."""
    return Ticket(
        id=101,
        subject="Checkout page shows an error",
        description="Customers report an error when paying for their order.",
        priority="high"
    )


@pytest.fixture
def metrics():
    return WorkflowMetricsAggregator()


@pytest.fixture
def mock_messaging():
    """Create a messaging service that always delivers."""
    messaging = Mock(spec=MessagingService)
    messaging.send_message = AsyncMock(return_value=MessageDelivery(success=True, ts="1700000000.000200"))
    return messaging


@pytest.fixture
def mock_ai_service():
    """Create an AI service returning a technical analysis."""
    ai_service = Mock(spec=AITextGenerationService)
    ai_service.analyze_ticket = AsyncMock(return_value=TicketAnalysis(
        summary="Payment error on checkout",
        category="technical",
        urgency="high",
        priority="high",
        action_items=["Check payment gateway logs"],
        confidence_score=0.9
    ))
    return ai_service
