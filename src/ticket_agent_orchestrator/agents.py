"""
Agents for the ticket agent orchestrator.

Each agent is a stateless capability bound to one role. The shipped agents use
keyword heuristics over the ticket text; anything that implements
``BaseAgent.analyze`` can be registered instead.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Sequence, Tuple

from .models import AgentAnalysis, AgentRole, Ticket

URGENT_KEYWORDS = ("outage", "is down", "site down", "critical", "breach", "data loss", "urgent")

ESTIMATED_TIME_BY_COMPLEXITY = {
    "simple": "1-2 hours",
    "medium": "2-4 hours",
    "complex": "1-2 days",
}


def contains_keywords(content: str, keywords: Sequence[str]) -> bool:
    """Whether any keyword occurs in the (lower-cased) content."""
    return any(keyword in content for keyword in keywords)


class BaseAgent(ABC):
    """Base class for all agents."""

    def __init__(self, role: AgentRole, capabilities: Sequence[str], logger: Optional[logging.Logger] = None):
        """Initialize base agent."""
        self.role = role
        self.capabilities = list(capabilities)
        self.logger = logger or logging.getLogger(f"{__name__}.{role.value.lower()}")

    @abstractmethod
    async def analyze(self, ticket: Ticket, context: Optional[Dict[str, Any]] = None) -> AgentAnalysis:
        """Analyze a ticket from this agent's point of view."""
        pass

    def can_handle(self, ticket: Ticket) -> bool:
        """Whether the ticket touches any of this agent's capabilities."""
        content = ticket.content
        return any(capability.replace("_", " ") in content for capability in self.capabilities)

    def _create_analysis(self, analysis: str, confidence: float, **kwargs) -> AgentAnalysis:
        """Create a standardized analysis."""
        return AgentAnalysis(
            agent_role=self.role,
            analysis=analysis,
            confidence=max(0, min(100, confidence)),
            **kwargs
        )

    def _handoff_target(self, target: AgentRole, context: Optional[Dict[str, Any]]) -> Optional[AgentRole]:
        """Return the target unless it is this agent or was already visited in the run."""
        visited = set((context or {}).get("previous_agents", []))
        if target == self.role or target in visited:
            return None
        return target


class KeywordAgent(BaseAgent):
    """Agent driven by keyword tables.

    ``topics`` maps keyword groups to a finding and its recommended action.
    ``handoffs`` maps keyword groups to the role that should take over, in
    priority order.
    """

    display_name = "Agent"
    topics: List[Tuple[Tuple[str, ...], str, str]] = []
    handoffs: List[Tuple[Tuple[str, ...], AgentRole, str]] = []
    default_actions: List[str] = []

    async def analyze(self, ticket: Ticket, context: Optional[Dict[str, Any]] = None) -> AgentAnalysis:
        content = ticket.content
        findings: List[str] = []
        actions: List[str] = []

        for keywords, finding, action in self.topics:
            if contains_keywords(content, keywords):
                findings.append(finding)
                actions.append(action)

        if not actions:
            actions = list(self.default_actions)

        next_agent, reasoning = self._select_handoff(content, context)
        if next_agent:
            actions.append(f"Hand off to {next_agent.value.replace('_', ' ').title()}: {reasoning}")

        complexity = self._complexity(len(findings))
        summary = "; ".join(findings) if findings else "No domain-specific findings"
        self.logger.debug(f"{self.display_name} analyzed ticket {ticket.id}: {len(findings)} findings")

        return self._create_analysis(
            analysis=f"{self.display_name}: {summary}",
            confidence=self._confidence(len(findings)),
            recommended_actions=actions,
            next_agent=next_agent,
            reasoning=reasoning,
            priority=self._priority(ticket),
            complexity=complexity,
            estimated_time=ESTIMATED_TIME_BY_COMPLEXITY[complexity]
        )

    def _select_handoff(self, content: str, context: Optional[Dict[str, Any]]) -> Tuple[Optional[AgentRole], Optional[str]]:
        for keywords, role, reason in self.handoffs:
            if contains_keywords(content, keywords):
                target = self._handoff_target(role, context)
                if target:
                    return target, reason
        return None, None

    def _confidence(self, matches: int) -> float:
        if matches == 0:
            return 50
        return min(95, 55 + 10 * matches)

    def _complexity(self, matches: int) -> str:
        if matches >= 2:
            return "complex"
        if matches == 1:
            return "medium"
        return "simple"

    def _priority(self, ticket: Ticket) -> str:
        if contains_keywords(ticket.content, URGENT_KEYWORDS):
            return "urgent"
        return ticket.priority


class ProjectManagerAgent(KeywordAgent):
    """Coordinator: triages the ticket and picks the first specialist."""

    display_name = "Project Manager"
    topics = [
        (("deadline", "timeline", "launch", "asap"), "Schedule pressure", "Agree on a delivery timeline with the requester"),
        (("client", "customer", "stakeholder"), "Customer-facing impact", "Keep the customer informed of progress"),
        (("budget", "estimate", "quote"), "Commercial question", "Prepare an effort estimate"),
    ]
    handoffs = [
        (("wordpress", "wp-", "woocommerce", "plugin", "theme"), AgentRole.WORDPRESS_DEVELOPER, "WordPress platform work detected"),
        (("server", "deploy", "infrastructure", "hosting", "outage", "downtime", "docker"), AgentRole.DEVOPS, "Infrastructure or deployment work detected"),
        (("bug", "test", "regression", "qa", "broken"), AgentRole.QA_TESTER, "Defect needs reproduction and verification"),
        (("analytics", "report", "metrics", "roi", "dashboard"), AgentRole.BUSINESS_ANALYST, "Business analysis requested"),
        (("api", "code", "feature", "integration", "database", "development"), AgentRole.SOFTWARE_ENGINEER, "Software development work detected"),
    ]
    default_actions = [
        "Confirm scope and acceptance criteria with the requester",
        "Assign an owner and set a timeline",
    ]

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(
            AgentRole.PROJECT_MANAGER,
            ["project_management", "coordination", "planning", "timeline", "stakeholder"],
            logger
        )


class SoftwareEngineerAgent(KeywordAgent):
    """Implementer: application code, APIs and data."""

    display_name = "Software Engineer"
    topics = [
        (("api", "endpoint", "integration", "webhook"), "API or integration issue", "Inspect request/response logs for the failing integration"),
        (("database", "sql", "query", "migration"), "Data layer issue", "Review the affected queries and recent migrations"),
        (("slow", "performance", "timeout", "latency"), "Performance degradation", "Profile the slow code path"),
        (("feature", "enhancement", "new functionality"), "Feature request", "Write a technical design for the change"),
        (("error", "exception", "crash", "stack trace"), "Application error", "Reproduce the error locally and identify the root cause"),
    ]
    handoffs = [
        (("deploy", "server", "infrastructure", "hosting"), AgentRole.DEVOPS, "Fix requires infrastructure or deployment changes"),
        (("regression", "test", "qa"), AgentRole.QA_TESTER, "Change needs regression testing"),
    ]
    default_actions = ["Review the relevant code paths", "Estimate implementation effort"]

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(
            AgentRole.SOFTWARE_ENGINEER,
            ["api", "code", "database", "integration", "development"],
            logger
        )


class DevOpsAgent(KeywordAgent):
    """Infra: servers, deployments, monitoring and security."""

    display_name = "DevOps"
    topics = [
        (("server", "infrastructure", "hosting", "downtime", "outage"), "Infrastructure impact", "Check server health and resource utilization"),
        (("deploy", "deployment", "ci/cd", "pipeline", "release", "build"), "Deployment issue", "Review pipeline logs and prepare a rollback"),
        (("security", "vulnerability", "ssl", "certificate", "breach"), "Security concern", "Run a security assessment and patch affected hosts"),
        (("backup", "restore", "recovery", "data loss"), "Backup and recovery", "Verify backups and test the restore procedure"),
        (("network", "dns", "firewall", "load balancer"), "Network issue", "Diagnose DNS, firewall and load balancer configuration"),
    ]
    handoffs = [
        (("application", "code", "api", "database", "sql"), AgentRole.SOFTWARE_ENGINEER, "Application-level changes required"),
    ]
    default_actions = ["Review monitoring dashboards for anomalies"]

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(
            AgentRole.DEVOPS,
            ["infrastructure", "deployment", "monitoring", "security", "backup", "network"],
            logger
        )


class QATesterAgent(KeywordAgent):
    """Tester: reproduction, regression and verification."""

    display_name = "QA Tester"
    topics = [
        (("bug", "broken", "doesn't work", "not working"), "Reported defect", "Reproduce the defect and document the steps"),
        (("regression", "after update", "since the last release"), "Possible regression", "Bisect recent releases to find the regression"),
        (("test", "qa", "quality"), "Testing request", "Write test cases covering the reported behaviour"),
        (("mobile", "browser", "safari", "chrome"), "Environment-specific behaviour", "Verify across the affected browsers and devices"),
    ]
    handoffs = [
        (("fix", "code", "error", "crash", "exception"), AgentRole.SOFTWARE_ENGINEER, "Confirmed defect needs a code fix"),
    ]
    default_actions = ["Perform exploratory testing around the reported area"]

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(
            AgentRole.QA_TESTER,
            ["testing", "bug", "regression", "quality"],
            logger
        )


class BusinessAnalystAgent(KeywordAgent):
    """Analyst: reporting, metrics and business impact."""

    display_name = "Business Analyst"
    topics = [
        (("analytics", "tracking", "conversion"), "Analytics question", "Validate tracking configuration and conversion events"),
        (("report", "dashboard", "export"), "Reporting request", "Define the report's metrics and data sources"),
        (("roi", "revenue", "cost", "business"), "Business impact", "Quantify the business impact of the request"),
        (("requirement", "process", "workflow"), "Process change", "Document current and target process"),
    ]
    handoffs = [
        (("integration", "api", "database"), AgentRole.SOFTWARE_ENGINEER, "Data requirements need engineering work"),
    ]
    default_actions = ["Clarify business goals with the requester"]

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(
            AgentRole.BUSINESS_ANALYST,
            ["analytics", "report", "metrics", "business", "requirement"],
            logger
        )


class WordPressDeveloperAgent(KeywordAgent):
    """Platform specialist: WordPress sites, plugins and themes."""

    display_name = "WordPress Developer"
    topics = [
        (("plugin", "wp-", "woocommerce"), "Plugin issue", "Check plugin versions and conflicts in a staging copy"),
        (("theme", "layout", "css", "template"), "Theme issue", "Inspect the active theme and child theme overrides"),
        (("wordpress", "wp admin", "gutenberg"), "WordPress core", "Verify WordPress core version and site health"),
        (("checkout", "cart", "payment"), "Store checkout", "Test the checkout flow with a sandbox payment"),
    ]
    handoffs = [
        (("hosting", "server", "ssl", "dns"), AgentRole.DEVOPS, "Hosting-level investigation required"),
    ]
    default_actions = ["Review the WordPress debug log"]

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(
            AgentRole.WORDPRESS_DEVELOPER,
            ["wordpress", "plugin", "theme", "woocommerce"],
            logger
        )


AGENT_CLASSES = {
    AgentRole.PROJECT_MANAGER: ProjectManagerAgent,
    AgentRole.SOFTWARE_ENGINEER: SoftwareEngineerAgent,
    AgentRole.DEVOPS: DevOpsAgent,
    AgentRole.QA_TESTER: QATesterAgent,
    AgentRole.BUSINESS_ANALYST: BusinessAnalystAgent,
    AgentRole.WORDPRESS_DEVELOPER: WordPressDeveloperAgent,
}
