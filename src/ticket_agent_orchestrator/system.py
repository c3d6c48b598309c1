"""
Application shell for the ticket agent orchestrator.
Loads configuration, sets up logging and builds the orchestrator with its collaborators.
"""

from typing import Dict, Any, Optional

from .config import ConfigManager
from .dedup import EventDeduplicator
from .integrations import AITextGenerationService, BedrockTicketAnalyzer, MessagingService, SlackMessagingService
from .logging_manager import LoggingManager
from .metrics import WorkflowMetrics, WorkflowMetricsAggregator
from .models import AgentRole, Ticket, TicketAnalysis
from .orchestrator import TicketOrchestrator
from .registry import AgentRegistry
from .state import EnhancedWorkflowContext, EnhancedWorkflowResult, MultiAgentResponse


class TicketOrchestrationSystem:
    """Main entry point wiring configuration, logging and the orchestrator."""

    def __init__(self, config_path: Optional[str] = None, ai_service: Optional[AITextGenerationService] = None,
                 messaging: Optional[MessagingService] = None):
        """Initialize the ticket orchestration system."""
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        self.config_manager.validate_config(self.config)

        # Setup logging
        self.logging_manager = LoggingManager(self.config)
        self.logger = self.logging_manager.get_logger("TicketOrchestrator")

        orchestration = self.config.orchestration

        # Initialize components
        self.registry = AgentRegistry(self.logger.getChild("agents"), roles=orchestration.roles)
        self.metrics = WorkflowMetricsAggregator(self.registry.roles())
        self.ai_service = ai_service or BedrockTicketAnalyzer(self.config.aws, self.logger.getChild("bedrock"))
        self.messaging = messaging or SlackMessagingService(self.config.slack, self.logger.getChild("slack"))

        self.orchestrator = TicketOrchestrator(
            self.registry,
            self.ai_service,
            self.messaging,
            self.logger,
            metrics=self.metrics,
            team_mentions=self.config.team.mentions,
            entry_role=AgentRole.parse(orchestration.entry_role),
            max_iterations=orchestration.max_iterations,
            assignment_confidence=orchestration.assignment_confidence
        )

        self.deduplicator = EventDeduplicator(
            ttl_seconds=self.config.deduplication.ttl_seconds,
            max_events=self.config.deduplication.max_events
        )

        self.logger.info("Ticket orchestration system initialized successfully")

    async def process_ticket(self, ticket: Ticket) -> MultiAgentResponse:
        """Triage a ticket through the agent handoff loop."""
        return await self.orchestrator.process_ticket(ticket)

    async def execute_enhanced_workflow(self, ticket: Ticket, channel: Optional[str] = None,
                                        thread_ts: Optional[str] = None, task_url: Optional[str] = None,
                                        existing_analysis: Optional[TicketAnalysis] = None) -> EnhancedWorkflowResult:
        """Run the integration pipeline, falling back to a failed result on unexpected errors."""
        context = EnhancedWorkflowContext(
            ticket=ticket,
            channel=channel or self.config.slack.default_channel,
            thread_ts=thread_ts,
            task_url=task_url,
            existing_analysis=existing_analysis
        )
        return await self.orchestrator.execute_with_fallback(context)

    async def handle_ticket_event(self, event_id: str, ticket: Ticket, channel: Optional[str] = None,
                                  thread_ts: Optional[str] = None, task_url: Optional[str] = None,
                                  existing_analysis: Optional[TicketAnalysis] = None
                                  ) -> Optional[EnhancedWorkflowResult]:
        """Handle an inbound ticket event once; duplicate deliveries return None."""
        if self.deduplicator.check_and_mark(event_id):
            self.logger.info(f"Skipping duplicate event {event_id} for ticket {ticket.id}")
            return None

        return await self.execute_enhanced_workflow(
            ticket, channel=channel, thread_ts=thread_ts, task_url=task_url, existing_analysis=existing_analysis
        )

    def get_workflow_metrics(self) -> WorkflowMetrics:
        return self.orchestrator.get_workflow_metrics()

    def reset_metrics(self) -> None:
        self.orchestrator.reset_metrics()

    def get_agent_statuses(self) -> Dict[str, Dict[str, Any]]:
        return self.orchestrator.get_agent_statuses()

    def get_system_info(self) -> Dict[str, Any]:
        """Get system information."""
        return {
            "agents": [role.value for role in self.registry.roles()],
            "orchestration": {
                "entry_role": self.config.orchestration.entry_role,
                "max_iterations": self.config.orchestration.max_iterations,
                "assignment_confidence": self.config.orchestration.assignment_confidence
            },
            "config": {
                "model": self.config.aws.model,
                "temperature": self.config.aws.temperature,
                "max_tokens": self.config.aws.max_tokens,
                "region": self.config.aws.region,
                "slack_channel": self.config.slack.default_channel
            },
            "deduplication": self.deduplicator.stats(),
            "logging": self.logging_manager.get_system_info()
        }
