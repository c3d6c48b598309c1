"""
Agent assignment rules for the integration pipeline.

Rules are evaluated in order; the first whose predicate matches decides the
role. When no rule matches the ticket goes to the coordinator.
"""

from typing import Callable, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .agents import contains_keywords
from .models import AgentRole, Ticket, TicketAnalysis

RolePredicate = Callable[[Ticket, Optional[TicketAnalysis]], bool]

RECOMMENDED_ROLE_RULE = "recommended_role"
DEFAULT_RULE = "default"


class AssignmentRule(BaseModel):
    """One ``(predicate, role)`` entry of the assignment table."""
    model_config = ConfigDict(frozen=True)

    name: str
    predicate: RolePredicate
    role: AgentRole
    reason: str = ""

    def matches(self, ticket: Ticket, analysis: Optional[TicketAnalysis]) -> bool:
        return self.predicate(ticket, analysis)


def _category(analysis: Optional[TicketAnalysis]) -> str:
    return (analysis.category or "").lower() if analysis else ""


def _platform(ticket: Ticket, analysis: Optional[TicketAnalysis]) -> bool:
    return contains_keywords(ticket.content, ("wordpress", "wp-", "woocommerce"))


def _infrastructure(ticket: Ticket, analysis: Optional[TicketAnalysis]) -> bool:
    keywords = ("deploy", "deployment", "infrastructure", "server", "downtime")
    return contains_keywords(ticket.content, keywords) or _category(analysis) == "technical"


def _testing(ticket: Ticket, analysis: Optional[TicketAnalysis]) -> bool:
    return contains_keywords(ticket.content, ("test", "bug", "qa", "regression"))


def _implementation(ticket: Ticket, analysis: Optional[TicketAnalysis]) -> bool:
    return contains_keywords(ticket.content, ("code", "development", "feature", "api", "enhancement"))


DEFAULT_ASSIGNMENT_RULES: Tuple[AssignmentRule, ...] = (
    AssignmentRule(name="platform", predicate=_platform, role=AgentRole.WORDPRESS_DEVELOPER,
                   reason="Platform-specific work"),
    AssignmentRule(name="infrastructure", predicate=_infrastructure, role=AgentRole.DEVOPS,
                   reason="Infrastructure or technical issue"),
    AssignmentRule(name="testing", predicate=_testing, role=AgentRole.QA_TESTER,
                   reason="Testing or defect report"),
    AssignmentRule(name="implementation", predicate=_implementation, role=AgentRole.SOFTWARE_ENGINEER,
                   reason="Development work"),
)


def recommended_role(analysis: Optional[TicketAnalysis]) -> Optional[AgentRole]:
    """The analysis's recommended role, if it names a known role."""
    if not analysis or not analysis.recommended_role:
        return None
    try:
        return AgentRole.parse(analysis.recommended_role)
    except ValueError:
        return None


def select_role(ticket: Ticket, analysis: Optional[TicketAnalysis],
                rules: Tuple[AssignmentRule, ...] = DEFAULT_ASSIGNMENT_RULES,
                default_role: AgentRole = AgentRole.PROJECT_MANAGER) -> Tuple[AgentRole, str]:
    """Pick the single role to assign. Returns ``(role, rule_name)``."""
    role = recommended_role(analysis)
    if role is not None:
        return role, RECOMMENDED_ROLE_RULE

    for rule in rules:
        if rule.matches(ticket, analysis):
            return rule.role, rule.name

    return default_role, DEFAULT_RULE
