"""
Agent request repository for the representation workflow.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc
from estatehub.repositories.base import BaseRepository
from estatehub.models.agent_request import AgentRequest, RequestStatus, RequestInitiator
from estatehub.models.property import Property
from typing import Optional, List, Dict, Iterable, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class AgentRequestRepository(BaseRepository[AgentRequest]):
    """Queries over agent requests and invitations."""

    def __init__(self, db: AsyncSession):
        super().__init__(AgentRequest, db)

    async def get_pending_for_pair(self, property_id: uuid.UUID, agent_id: uuid.UUID) -> Optional[AgentRequest]:
        """Get the open request between an agent and a property, if any."""
        try:
            query = select(AgentRequest).where(
                and_(
                    AgentRequest.property_id == property_id,
                    AgentRequest.agent_id == agent_id,
                    AgentRequest.status == RequestStatus.PENDING
                )
            )
            result = await self.db.execute(query)
            return result.scalars().first()
        except Exception as e:
            logger.error(f"Failed to get pending request for property {property_id} and agent {agent_id}: {e}")
            raise

    async def get_pending_for_property(
        self,
        property_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None
    ) -> List[AgentRequest]:
        """Get every open request on a property, optionally excluding one."""
        try:
            conditions = [
                AgentRequest.property_id == property_id,
                AgentRequest.status == RequestStatus.PENDING
            ]
            if exclude_id is not None:
                conditions.append(AgentRequest.id != exclude_id)
            result = await self.db.execute(select(AgentRequest).where(and_(*conditions)))
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get pending requests for property {property_id}: {e}")
            raise

    async def list_for_agent(
        self,
        agent_id: uuid.UUID,
        initiated_by: Optional[RequestInitiator] = None,
        status: Optional[RequestStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[AgentRequest], int]:
        """
        List an agent's requests or invitations.

        Args:
            agent_id: Agent on the request
            initiated_by: AGENT for sent requests, OWNER for invitations
            status: Optional status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (requests, total count)
        """
        filters = {"agent_id": agent_id, "initiated_by": initiated_by, "status": status}
        total = await self.count(filters)
        requests = await self.get_multi(skip=skip, limit=limit, filters=filters, order_by="-requested_at")
        return requests, total

    async def list_for_landlord(
        self,
        landlord_id: uuid.UUID,
        status: Optional[RequestStatus] = None,
        property_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[AgentRequest], int]:
        """
        List requests on every property a landlord owns.

        Args:
            landlord_id: Owning landlord
            status: Optional status filter
            property_id: Optional single property
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (requests, total count)
        """
        try:
            conditions = [Property.landlord_id == landlord_id]
            if status is not None:
                conditions.append(AgentRequest.status == status)
            if property_id is not None:
                conditions.append(AgentRequest.property_id == property_id)

            base = select(AgentRequest).join(Property, AgentRequest.property_id == Property.id).where(and_(*conditions))
            count_query = (
                select(func.count(AgentRequest.id))
                .join(Property, AgentRequest.property_id == Property.id)
                .where(and_(*conditions))
            )

            total = (await self.db.execute(count_query)).scalar() or 0
            result = await self.db.execute(
                base.order_by(desc(AgentRequest.requested_at)).offset(skip).limit(limit)
            )
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to list agent requests for landlord {landlord_id}: {e}")
            raise

    async def latest_status_by_property(
        self,
        agent_id: uuid.UUID,
        property_ids: Iterable[uuid.UUID]
    ) -> Dict[uuid.UUID, RequestStatus]:
        """
        Map each property to the status of the agent's most recent request on it.

        Returns:
            Dictionary keyed by property id; properties without requests are absent
        """
        ids = list(property_ids)
        if not ids:
            return {}
        try:
            query = (
                select(AgentRequest.property_id, AgentRequest.status)
                .where(and_(AgentRequest.agent_id == agent_id, AgentRequest.property_id.in_(ids)))
                .order_by(AgentRequest.requested_at.asc())
            )
            result = await self.db.execute(query)
            latest: Dict[uuid.UUID, RequestStatus] = {}
            # Later rows overwrite earlier ones
            for property_id, status in result.all():
                latest[property_id] = status
            return latest
        except Exception as e:
            logger.error(f"Failed to get request statuses for agent {agent_id}: {e}")
            raise

    async def count_for_agent(self, agent_id: uuid.UUID, status: Optional[RequestStatus] = None) -> int:
        return await self.count({"agent_id": agent_id, "status": status})

    async def count_pending_for_landlord(self, landlord_id: uuid.UUID) -> int:
        _, total = await self.list_for_landlord(landlord_id, status=RequestStatus.PENDING, limit=1)
        return total
