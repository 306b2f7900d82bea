"""
Agent performance aggregates.
The cached row is derived from properties, agent requests and transactions
and can be rebuilt at any time.
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.database import utcnow
from estatehub.models.agent_request import RequestStatus
from estatehub.models.performance import AgentPerformance
from estatehub.models.user import User
from estatehub.repositories.agent_request import AgentRequestRepository
from estatehub.repositories.performance import AgentPerformanceRepository
from estatehub.repositories.property import PropertyRepository
from estatehub.repositories.transaction import TransactionRepository
from estatehub.utils.exceptions import InsufficientPermissionsError
import uuid
import logging

logger = logging.getLogger(__name__)


class PerformanceService:
    """Recomputes and serves per-agent performance."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.performance_repo = AgentPerformanceRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.request_repo = AgentRequestRepository(db_session)
        self.transaction_repo = TransactionRepository(db_session)

    async def recompute(self, agent_id: uuid.UUID, commit: bool = True) -> AgentPerformance:
        """
        Rebuild an agent's aggregate row from source tables.

        Args:
            agent_id: Agent to recompute
            commit: Commit immediately, or only flush into the caller's transaction

        Returns:
            The stored aggregate
        """
        totals = await self.transaction_repo.commission_totals(agent_id)

        performance = await self.performance_repo.get_for_agent(agent_id)
        if performance is None:
            performance = AgentPerformance(agent_id=agent_id)

        performance.properties_assigned = await self.property_repo.count_assigned_to_agent(agent_id)
        performance.requests_total = await self.request_repo.count_for_agent(agent_id)
        performance.requests_accepted = await self.request_repo.count_for_agent(agent_id, RequestStatus.ACCEPTED)
        performance.total_commission = totals["paid"] + totals["pending"]
        performance.pending_commission = totals["pending"]
        performance.last_calculated_at = utcnow()

        performance = await self.performance_repo.save(performance, commit=commit)
        logger.debug(f"Recomputed performance for agent {agent_id}")
        return performance

    async def recompute_best_effort(self, agent_id: uuid.UUID) -> bool:
        """
        Recompute inside a savepoint of the caller's transaction.

        A failure rolls back only the savepoint and is logged; the caller's
        pending changes are kept.

        Returns:
            True if the aggregate was refreshed
        """
        try:
            async with self.db.begin_nested():
                await self.recompute(agent_id, commit=False)
            return True
        except Exception as e:
            logger.warning(f"Agent performance recompute failed for {agent_id}: {e}")
            return False

    async def get_for_agent(self, agent: User) -> AgentPerformance:
        """On-demand recompute for an agent's own dashboard."""
        if not agent.is_agent:
            raise InsufficientPermissionsError("view agent performance")
        return await self.recompute(agent.id)

    async def spotlight(self, limit: int = 5) -> List[AgentPerformance]:
        """Public agent spotlight, ordered by properties represented."""
        return await self.performance_repo.top_agents(limit)
