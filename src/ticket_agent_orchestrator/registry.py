"""
Registry holding exactly one agent per role.
"""

import logging
from typing import Dict, Any, Optional, List, Iterable, Mapping, Union

from .agents import AGENT_CLASSES, BaseAgent
from .exceptions import ConfigurationError
from .models import AgentRole


class AgentRegistry:
    """Registry for looking up the agent bound to a role.

    Built eagerly: either from role names (each role gets its default agent
    class) or from explicit agent instances. Any unknown role is a
    ``ConfigurationError``.
    """

    def __init__(self, logger: logging.Logger, roles: Optional[Iterable[Union[str, AgentRole]]] = None,
                 agents: Optional[Mapping[Union[str, AgentRole], BaseAgent]] = None):
        """Initialize agent registry."""
        self.logger = logger
        self._agents: Dict[AgentRole, BaseAgent] = {}

        if agents is not None:
            self._register_instances(agents)
        else:
            self._register_roles(roles if roles is not None else list(AgentRole))

        self.logger.info(f"Agent registry initialized with roles: {[role.value for role in self._agents]}")

    def _register_roles(self, roles: Iterable[Union[str, AgentRole]]) -> None:
        """Instantiate the default agent for each role."""
        for name in roles:
            role = self._parse_role(name)
            if role in self._agents:
                raise ConfigurationError(f"Agent role registered twice: {role.value}", "DUPLICATE_ROLE")
            self._agents[role] = AGENT_CLASSES[role](self.logger.getChild(role.value.lower()))

    def _register_instances(self, agents: Mapping[Union[str, AgentRole], BaseAgent]) -> None:
        """Register provided agent instances."""
        for name, agent in agents.items():
            role = self._parse_role(name)
            if role in self._agents:
                raise ConfigurationError(f"Agent role registered twice: {role.value}", "DUPLICATE_ROLE")
            if agent.role != role:
                raise ConfigurationError(
                    f"Agent for {role.value} declares role {agent.role}",
                    "ROLE_MISMATCH",
                    {"role": role.value}
                )
            self._agents[role] = agent

    def _parse_role(self, name: Union[str, AgentRole]) -> AgentRole:
        try:
            return AgentRole.parse(name)
        except ValueError:
            raise ConfigurationError(f"Unknown agent role: {name}", "UNKNOWN_ROLE", {"role": str(name)})

    def get(self, role: AgentRole) -> Optional[BaseAgent]:
        """Get the agent bound to a role."""
        return self._agents.get(role)

    def roles(self) -> List[AgentRole]:
        """List registered roles."""
        return list(self._agents.keys())

    def __contains__(self, role: object) -> bool:
        return role in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def get_agent_info(self, role: AgentRole) -> Dict[str, Any]:
        """Get information about an agent."""
        agent = self._agents.get(role)
        if agent is None:
            return {"role": role.value, "error": f"Agent '{role.value}' not registered"}

        return {
            "role": role.value,
            "class": agent.__class__.__name__,
            "capabilities": list(agent.capabilities)
        }

    def agent_statuses(self) -> Dict[str, Dict[str, Any]]:
        """Availability and capabilities of every role, registered or not."""
        statuses = {}
        for role in AgentRole:
            info = self.get_agent_info(role)
            info["available"] = role in self._agents
            statuses[role.value] = info
        return statuses
