"""TTL cache of agent configurations for the chat-serving path.

Every incoming chat message needs the agent's behaviour settings, system
instruction and prompt template.  Loading those from the agent store on
each message is wasteful, so the chat component owns one
:class:`AgentConfigCache` and reads through it.

The cache is explicitly constructed and injected; there is no module-level
instance.  Entries live in a ``cachetools.TTLCache`` guarded by an
``asyncio.Lock``.  Loads run *outside* the lock, so two concurrent misses
for the same agent may both load; loads are idempotent and the later write
wins.  A background sweep (started with :meth:`AgentConfigCache.start`)
drops expired entries once per TTL period so idle agents do not linger.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable

from cachetools import TTLCache

from src.interfaces.agent_config_provider import IAgentConfigProvider
from src.models.agent import AgentConfig
from src.utils.logging import get_logger


class AgentConfigCache:
    """Read-through TTL cache of :class:`AgentConfig` keyed by agent id.

    Parameters
    ----------
    provider:
        Loads an agent's configuration on a miss.
    ttl_seconds:
        Entry lifetime; also the sweep interval.
    max_size:
        Maximum number of cached agents (least recently used is evicted).
    timer:
        Clock used for expiry; injectable for tests.
    """

    def __init__(
        self,
        provider: IAgentConfigProvider,
        ttl_seconds: float = 300,
        max_size: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._ttl = ttl_seconds
        self._cache: TTLCache[str, AgentConfig] = TTLCache(maxsize=max_size, ttl=ttl_seconds, timer=timer)
        self._lock = asyncio.Lock()
        self._sweep_task: asyncio.Task[None] | None = None
        self._logger = get_logger(__name__)

    def __len__(self) -> int:
        return len(self._cache)

    async def get(self, agent_id: str) -> AgentConfig:
        """Return the cached configuration of *agent_id*, loading it on a miss or after expiry."""
        async with self._lock:
            config = self._cache.get(agent_id)
        if config is not None:
            self._logger.debug("agent_config_cache_hit", agent_id=agent_id)
            return config

        self._logger.debug("agent_config_cache_miss", agent_id=agent_id)
        config = await self._provider.load(agent_id)
        async with self._lock:
            self._cache[agent_id] = config
        return config

    async def invalidate(self, agent_id: str) -> None:
        """Drop *agent_id*'s entry (no-op if absent)."""
        async with self._lock:
            self._cache.pop(agent_id, None)

    async def sweep(self) -> None:
        """Remove every expired entry now."""
        async with self._lock:
            before = len(self._cache)
            self._cache.expire()
            removed = before - len(self._cache)
        if removed:
            self._logger.info("agent_config_cache_swept", removed=removed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Launch the periodic sweep task on the running event loop."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def close(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> AgentConfigCache:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._ttl)
            await self.sweep()
