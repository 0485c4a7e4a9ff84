"""Abstract base class for agent-configuration sources.

The chat-serving path needs an agent's behaviour settings, system
instruction and prompt template on every message.  The authoritative store
for those lives outside this package (agent CRUD is an external concern);
this interface is the seam the :class:`~src.services.agent_config_cache.AgentConfigCache`
loads through.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.agent import AgentConfig


class IAgentConfigProvider(ABC):
    """Contract for loading one agent's configuration."""

    @abstractmethod
    async def load(self, agent_id: str) -> AgentConfig:
        """Return the current configuration of *agent_id*.

        Raises
        ------
        src.utils.errors.DocumentNotFoundError
            If the agent does not exist.
        """
