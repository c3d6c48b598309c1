"""
Common data models used across the ticket agent orchestrator.
"""

from enum import Enum
from typing import Dict, Any, Optional, List
from pydantic import BaseModel, ConfigDict, Field


class AgentRole(str, Enum):
    """The closed set of agent identities."""
    PROJECT_MANAGER = "PROJECT_MANAGER"
    SOFTWARE_ENGINEER = "SOFTWARE_ENGINEER"
    DEVOPS = "DEVOPS"
    QA_TESTER = "QA_TESTER"
    BUSINESS_ANALYST = "BUSINESS_ANALYST"
    WORDPRESS_DEVELOPER = "WORDPRESS_DEVELOPER"

    @classmethod
    def parse(cls, value: Any) -> "AgentRole":
        """Parse a role from a loosely formatted name ("qa_tester", "QA-TESTER", ...)."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        return cls(normalized)


class Ticket(BaseModel):
    """Support ticket owned by the ticketing system. Read-only to the core."""
    model_config = ConfigDict(frozen=True)

    id: int
    subject: str
    description: str = ""
    priority: str = "normal"
    status: str = "new"
    tags: List[str] = Field(default_factory=list)

    @property
    def content(self) -> str:
        """Lower-cased subject and description, used for keyword matching."""
        return f"{self.subject} {self.description}".lower()


class AgentAnalysis(BaseModel):
    """Output of one agent invocation."""
    model_config = ConfigDict(frozen=True)

    agent_role: AgentRole
    analysis: str
    confidence: float = Field(ge=0, le=100)
    recommended_actions: List[str] = Field(default_factory=list)
    next_agent: Optional[AgentRole] = None
    reasoning: Optional[str] = None
    priority: Optional[str] = None
    complexity: Optional[str] = None
    estimated_time: Optional[str] = None


class EnhancedInsights(BaseModel):
    """Estimates derived from the ticket on top of an AI analysis."""
    ticket_complexity: str
    estimated_resolution_time: str
    business_impact: str


class TicketAnalysis(BaseModel):
    """Analysis produced by the AI text-generation service."""
    summary: Optional[str] = None
    category: Optional[str] = None
    urgency: Optional[str] = None
    priority: Optional[str] = None
    recommended_role: Optional[str] = None
    action_items: List[str] = Field(default_factory=list)
    confidence_score: Optional[float] = None
    enhanced_insights: Optional[EnhancedInsights] = None


class MessageDelivery(BaseModel):
    """Result of a messaging delivery attempt."""
    success: bool
    ts: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
