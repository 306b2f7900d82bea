"""
Agent performance repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from estatehub.repositories.base import BaseRepository
from estatehub.models.performance import AgentPerformance
from typing import List, Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class AgentPerformanceRepository(BaseRepository[AgentPerformance]):
    """Persistence for cached agent aggregates."""

    def __init__(self, db: AsyncSession):
        super().__init__(AgentPerformance, db)

    async def get_for_agent(self, agent_id: uuid.UUID) -> Optional[AgentPerformance]:
        return await self.get_by_field("agent_id", agent_id)

    async def top_agents(self, limit: int = 5) -> List[AgentPerformance]:
        try:
            result = await self.db.execute(
                select(AgentPerformance)
                .order_by(desc(AgentPerformance.properties_assigned), desc(AgentPerformance.requests_accepted))
                .limit(limit)
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get top agents: {e}")
            raise
