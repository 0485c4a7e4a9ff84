"""Agent configuration snapshot consumed by the chat-serving path.

Agents, behaviors, system instructions, and prompt templates are owned by
an external CRUD layer.  This module only defines the read-only bundle the
:class:`~src.services.agent_config_cache.AgentConfigCache` keeps in memory.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.rag import utc_now


class AgentConfig(BaseModel):
    """Everything the chat path needs to answer as a given agent."""

    model_config = ConfigDict(frozen=True)

    agent_id: str
    name: str = ""
    behavior: dict[str, Any] = Field(default_factory=dict)
    system_instruction: str = ""
    prompt_template: str = ""
    loaded_at: datetime = Field(default_factory=utc_now)
