"""
Heuristic estimates layered on top of an AI ticket analysis.
"""

from typing import List, Optional

from .agents import contains_keywords
from .models import EnhancedInsights, Ticket, TicketAnalysis

LONG_DESCRIPTION = 1000
MEDIUM_DESCRIPTION = 300


def assess_complexity(ticket: Ticket) -> str:
    """Complexity from description length and subject keywords."""
    subject = ticket.subject.lower()
    length = len(ticket.description)

    if length > LONG_DESCRIPTION or contains_keywords(subject, ("complex", "integration")):
        return "high"
    if length > MEDIUM_DESCRIPTION or contains_keywords(subject, ("feature", "enhancement")):
        return "medium"
    return "low"


def estimate_resolution_time(ticket: Ticket, complexity: str) -> str:
    """Rough resolution time from complexity and priority."""
    if ticket.priority.lower() in ("urgent", "high"):
        return "2-4 hours" if complexity == "high" else "1-2 hours"

    return {
        "high": "1-2 days",
        "medium": "4-8 hours",
    }.get(complexity, "1-4 hours")


def assess_business_impact(ticket: Ticket) -> str:
    """Business impact from priority and keywords."""
    priority = ticket.priority.lower()
    subject = ticket.subject.lower()

    if priority == "urgent" or contains_keywords(subject, ("critical", "down")):
        return "high"
    if priority == "high" or "important" in subject or "customer" in ticket.description.lower():
        return "medium"
    return "low"


def enhance_ticket_analysis(analysis: TicketAnalysis, ticket: Ticket) -> TicketAnalysis:
    """Return a copy of the analysis carrying derived insights."""
    complexity = assess_complexity(ticket)
    insights = EnhancedInsights(
        ticket_complexity=complexity,
        estimated_resolution_time=estimate_resolution_time(ticket, complexity),
        business_impact=assess_business_impact(ticket)
    )
    return analysis.model_copy(update={"enhanced_insights": insights})


def generate_next_steps(ticket: Ticket, analysis: Optional[TicketAnalysis] = None) -> List[str]:
    """Suggested next steps for the team notification."""
    steps = []

    if ticket.priority.lower() in ("urgent", "high"):
        steps.append("Acknowledge the ticket within 1 hour")

    category = (analysis.category or "").lower() if analysis else ""
    if category == "technical":
        steps.append("Reproduce the issue in a staging environment")
    elif category == "billing":
        steps.append("Verify the account's billing history")
    elif category == "feature_request":
        steps.append("Collect requirements and estimate effort")

    if analysis and analysis.action_items:
        steps.extend(analysis.action_items[:3])

    steps.append("Update the requester with progress")
    return steps
