"""
Custom exceptions for the ticket agent orchestrator.
Provides specific error types for the triage loop and the integration pipeline.
"""

from typing import Optional, Dict, Any


class OrchestratorError(Exception):
    """Base exception for all orchestrator errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize the exception."""
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(OrchestratorError):
    """Raised when configuration is invalid. Fatal at startup."""
    pass


class WorkflowError(OrchestratorError):
    """Raised on an illegal workflow status transition."""
    pass


class AgentInvocationError(OrchestratorError):
    """Raised when an agent's analysis call fails."""

    def __init__(self, message: str, agent_role: str, error_code: Optional[str] = "AGENT_INVOCATION_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        """Initialize the agent invocation error."""
        super().__init__(message, error_code, details)
        self.agent_role = agent_role


class IntegrationError(OrchestratorError):
    """Raised when a messaging or AI collaborator call fails."""

    def __init__(self, message: str, service: str, error_code: Optional[str] = "INTEGRATION_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        """Initialize the integration error."""
        super().__init__(message, error_code, details)
        self.service = service


class BoundExceededError(OrchestratorError):
    """Iteration cap reached. Recorded on the workflow state, not raised by the loop."""

    def __init__(self, ticket_id: int, max_iterations: int):
        """Initialize the bound exceeded error."""
        super().__init__(
            f"Workflow for ticket {ticket_id} reached maximum iterations ({max_iterations})",
            "MAX_ITERATIONS_EXCEEDED",
            {"ticket_id": ticket_id, "max_iterations": max_iterations}
        )
        self.max_iterations = max_iterations
