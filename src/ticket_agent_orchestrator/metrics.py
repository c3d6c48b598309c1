"""
Process-wide workflow metrics shared by both pipelines.
"""

import threading
from datetime import datetime
from typing import Dict, Optional, Iterable

from pydantic import BaseModel, Field

from .models import AgentRole
from .state import utcnow


class AgentUtilization(BaseModel):
    """Cumulative statistics for one agent role."""
    tasks_handled: int = 0
    total_tasks: int = 0
    average_confidence: float = 0
    success_rate: float = 0
    average_processing_time: float = 0
    workflows_participated: int = 0
    last_active: Optional[datetime] = None


class WorkflowMetrics(BaseModel):
    """Counters covering every run since the last reset."""
    total_workflows: int = 0
    successful_workflows: int = 0
    average_processing_time: float = 0
    handoff_count: int = 0
    agent_utilization: Dict[AgentRole, AgentUtilization] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=utcnow)


def running_mean(current: float, count: int, sample: float) -> float:
    """Fold a sample into a mean over ``count`` samples (``count`` includes the new one)."""
    return (current * (count - 1) + sample) / count


class WorkflowMetricsAggregator:
    """Lock-guarded owner of ``WorkflowMetrics``.

    One instance is injected into both pipelines. Every update is a
    read-modify-write under the same lock, so concurrent runs never lose an
    increment.
    """

    def __init__(self, roles: Optional[Iterable[AgentRole]] = None):
        self._roles = list(roles) if roles is not None else list(AgentRole)
        self._lock = threading.Lock()
        self._metrics = self._fresh_metrics()

    def _fresh_metrics(self) -> WorkflowMetrics:
        return WorkflowMetrics(
            agent_utilization={role: AgentUtilization() for role in self._roles}
        )

    def _utilization(self, role: AgentRole) -> AgentUtilization:
        # Roles outside the seeded set still get tracked
        if role not in self._metrics.agent_utilization:
            self._metrics.agent_utilization[role] = AgentUtilization()
        return self._metrics.agent_utilization[role]

    def record_completion(self, processing_time_ms: float, success: bool,
                          agents_involved: Iterable[AgentRole] = ()) -> None:
        """Record the end of a run."""
        with self._lock:
            metrics = self._metrics
            metrics.total_workflows += 1
            if success:
                metrics.successful_workflows += 1
            metrics.average_processing_time = running_mean(
                metrics.average_processing_time, metrics.total_workflows, processing_time_ms
            )

            for role in dict.fromkeys(agents_involved):
                utilization = self._utilization(role)
                utilization.workflows_participated += 1
                n = utilization.workflows_participated
                utilization.success_rate = running_mean(utilization.success_rate, n, 1.0 if success else 0.0)
                utilization.average_processing_time = running_mean(
                    utilization.average_processing_time, n, processing_time_ms
                )

            metrics.last_updated = utcnow()

    def record_agent_utilization(self, role: AgentRole, confidence: Optional[float] = None) -> None:
        """Record one agent invocation."""
        with self._lock:
            utilization = self._utilization(role)
            utilization.tasks_handled += 1
            utilization.total_tasks += 1
            if confidence is not None:
                utilization.average_confidence = running_mean(
                    utilization.average_confidence, utilization.tasks_handled, confidence
                )
            utilization.last_active = utcnow()
            self._metrics.last_updated = utilization.last_active

    def record_handoff(self) -> None:
        with self._lock:
            self._metrics.handoff_count += 1
            self._metrics.last_updated = utcnow()

    def reset(self) -> None:
        """Zero all counters and reseed every known role."""
        with self._lock:
            self._metrics = self._fresh_metrics()

    def snapshot(self) -> WorkflowMetrics:
        """Deep copy of the current metrics, detached from the aggregator."""
        with self._lock:
            return self._metrics.model_copy(deep=True)
