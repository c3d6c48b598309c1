"""
Test the workflow metrics aggregator.
"""

import asyncio
import pytest
from concurrent.futures import ThreadPoolExecutor

from ticket_agent_orchestrator.metrics import WorkflowMetricsAggregator, running_mean
from ticket_agent_orchestrator.models import AgentRole
from ticket_agent_orchestrator.orchestrator import TicketOrchestrator
from ticket_agent_orchestrator.registry import AgentRegistry

from conftest import ScriptedAgent


class TestWorkflowMetricsAggregator:
    """Test counters and running means."""

    def test_average_processing_time(self, metrics):
        metrics.record_completion(100, True)
        metrics.record_completion(300, False)

        snapshot = metrics.snapshot()
        assert snapshot.total_workflows == 2
        assert snapshot.successful_workflows == 1
        assert snapshot.average_processing_time == 200

    def test_running_mean(self):
        assert running_mean(0, 1, 50) == 50
        assert running_mean(50, 2, 100) == 75

    def test_per_role_participation(self, metrics):
        metrics.record_completion(100, True, [AgentRole.DEVOPS, AgentRole.PROJECT_MANAGER, AgentRole.DEVOPS])
        metrics.record_completion(300, False, [AgentRole.DEVOPS])

        devops = metrics.snapshot().agent_utilization[AgentRole.DEVOPS]
        assert devops.workflows_participated == 2
        assert devops.success_rate == 0.5
        assert devops.average_processing_time == 200

    def test_agent_utilization(self, metrics):
        metrics.record_agent_utilization(AgentRole.QA_TESTER, 80)
        metrics.record_agent_utilization(AgentRole.QA_TESTER, 60)
        metrics.record_agent_utilization(AgentRole.QA_TESTER)

        usage = metrics.snapshot().agent_utilization[AgentRole.QA_TESTER]
        assert usage.tasks_handled == 3
        assert usage.total_tasks == 3
        assert usage.average_confidence == 70
        assert usage.last_active is not None

    def test_handoff_counter(self, metrics):
        metrics.record_handoff()
        metrics.record_handoff()
        assert metrics.snapshot().handoff_count == 2

    def test_reset_reseeds_every_role(self, metrics):
        metrics.record_completion(100, True, [AgentRole.DEVOPS])
        metrics.record_agent_utilization(AgentRole.DEVOPS, 90)
        metrics.record_handoff()

        metrics.reset()
        snapshot = metrics.snapshot()

        assert snapshot.total_workflows == 0
        assert snapshot.handoff_count == 0
        assert set(snapshot.agent_utilization) == set(AgentRole)
        assert all(usage.tasks_handled == 0 for usage in snapshot.agent_utilization.values())

    def test_reset_keeps_configured_roles(self):
        metrics = WorkflowMetricsAggregator([AgentRole.PROJECT_MANAGER])
        metrics.reset()
        assert list(metrics.snapshot().agent_utilization) == [AgentRole.PROJECT_MANAGER]

    def test_snapshot_is_detached(self, metrics):
        snapshot = metrics.snapshot()
        snapshot.total_workflows = 99
        snapshot.agent_utilization[AgentRole.DEVOPS].tasks_handled = 99

        fresh = metrics.snapshot()
        assert fresh.total_workflows == 0
        assert fresh.agent_utilization[AgentRole.DEVOPS].tasks_handled == 0

    def test_concurrent_threads_lose_no_updates(self, metrics):
        def work(_):
            metrics.record_completion(10, True, [AgentRole.DEVOPS])
            metrics.record_agent_utilization(AgentRole.DEVOPS, 50)

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(work, range(200)))

        snapshot = metrics.snapshot()
        assert snapshot.total_workflows == 200
        assert snapshot.agent_utilization[AgentRole.DEVOPS].tasks_handled == 200
        assert snapshot.agent_utilization[AgentRole.DEVOPS].workflows_participated == 200


class TestConcurrentRuns:

    @pytest.mark.asyncio
    async def test_concurrent_process_ticket_calls(self, sample_ticket, metrics, mock_ai_service,
                                                   mock_messaging, mock_logger):
        registry = AgentRegistry(mock_logger, agents={
            AgentRole.PROJECT_MANAGER: ScriptedAgent(AgentRole.PROJECT_MANAGER, next_agent=AgentRole.DEVOPS),
            AgentRole.DEVOPS: ScriptedAgent(AgentRole.DEVOPS),
        })
        orchestrator = TicketOrchestrator(registry, mock_ai_service, mock_messaging, mock_logger, metrics=metrics)

        responses = await asyncio.gather(*(orchestrator.process_ticket(sample_ticket) for _ in range(25)))

        snapshot = orchestrator.get_workflow_metrics()
        assert snapshot.total_workflows == 25
        assert snapshot.successful_workflows == 25
        assert snapshot.handoff_count == 25
        assert all(response.handoff_count == 1 for response in responses)
