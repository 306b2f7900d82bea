"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.

Write methods take a ``commit`` flag. Services that must apply several
writes atomically pass ``commit=False`` and commit once at the end.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from estatehub.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)

LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text matches literally; pair with ``escape=LIKE_ESCAPE``."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Uses async SQLAlchemy for all database operations with proper error handling.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def save(self, db_obj: ModelType, commit: bool = True) -> ModelType:
        """
        Persist pending changes on an instance.

        Args:
            db_obj: Instance attached to (or to be added to) the session
            commit: Commit the transaction, or only flush it

        Returns:
            The refreshed instance
        """
        try:
            self.db.add(db_obj)
            if commit:
                await self.db.commit()
            else:
                await self.db.flush()
            await self.db.refresh(db_obj)
            return db_obj
        except Exception as e:
            # Flush-only callers own the transaction and decide how to unwind it
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to save {self.model.__name__}: {e}")
            raise

    async def create(self, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record
            commit: Commit immediately, or only flush

        Returns:
            Created model instance

        Raises:
            Exception: If database operation fails
        """
        db_obj = self.model(**obj_in)
        db_obj = await self.save(db_obj, commit=commit)
        logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
        return db_obj

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Args:
            id: UUID of the record to retrieve

        Returns:
            Model instance if found, None otherwise
        """
        try:
            query = select(self.model).where(self.model.id == id)
            result = await self.db.execute(query)
            obj = result.scalar_one_or_none()

            if obj:
                logger.debug(f"Retrieved {self.model.__name__} with id: {id}")
            else:
                logger.debug(f"{self.model.__name__} with id {id} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        if filters:
            for field, value in filters.items():
                if value is None or not hasattr(self.model, field):
                    continue
                column = getattr(self.model, field)
                if isinstance(value, (list, tuple, set, frozenset)):
                    query = query.where(column.in_(list(value)))
                else:
                    query = query.where(column == value)
        return query

    def _apply_ordering(self, query, order_by: Optional[str]):
        if order_by:
            descending = order_by.startswith('-')
            field_name = order_by[1:] if descending else order_by
            if hasattr(self.model, field_name):
                column = getattr(self.model, field_name)
                return query.order_by(column.desc() if descending else column.asc())
        # Default ordering by created_at descending
        return query.order_by(self.model.created_at.desc())

    async def get_multi(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None
    ) -> List[ModelType]:
        """
        Get multiple records with optional filtering, pagination, and ordering.

        Args:
            skip: Number of records to skip (for pagination)
            limit: Maximum number of records to return
            filters: Dictionary of field filters; None values are ignored
            order_by: Field name to order by (prefix with '-' for descending)

        Returns:
            List of model instances
        """
        try:
            query = self._apply_filters(select(self.model), filters)
            query = self._apply_ordering(query, order_by)
            query = query.offset(skip).limit(limit)

            result = await self.db.execute(query)
            objects = result.scalars().all()

            logger.debug(f"Retrieved {len(objects)} {self.model.__name__} records")
            return list(objects)
        except Exception as e:
            logger.error(f"Failed to get multiple {self.model.__name__} records: {e}")
            raise

    async def update(self, id: uuid.UUID, obj_in: Dict[str, Any], commit: bool = True) -> Optional[ModelType]:
        """
        Update a record by its ID.

        Args:
            id: UUID of the record to update
            obj_in: Dictionary of field values to update
            commit: Commit immediately, or only flush

        Returns:
            Updated model instance if found, None otherwise

        Raises:
            Exception: If database operation fails
        """
        # Remove None values and empty strings from update data
        update_data = {k: v for k, v in obj_in.items() if v is not None and v != ""}

        db_obj = await self.get_by_id(id)
        if db_obj is None:
            logger.debug(f"{self.model.__name__} with id {id} not found for update")
            return None

        if not update_data:
            logger.warning(f"No valid data provided for updating {self.model.__name__} {id}")
            return db_obj

        for field, value in update_data.items():
            if hasattr(self.model, field):
                setattr(db_obj, field, value)

        db_obj = await self.save(db_obj, commit=commit)
        logger.debug(f"Updated {self.model.__name__} with id: {id}")
        return db_obj

    async def delete(self, id: uuid.UUID, commit: bool = True) -> bool:
        """
        Delete a record by its ID.

        Args:
            id: UUID of the record to delete
            commit: Commit immediately, or only flush

        Returns:
            True if record was deleted, False if not found

        Raises:
            Exception: If database operation fails
        """
        try:
            db_obj = await self.get_by_id(id)
            if db_obj is None:
                logger.debug(f"{self.model.__name__} with id {id} not found for deletion")
                return False

            await self.db.delete(db_obj)
            if commit:
                await self.db.commit()
            else:
                await self.db.flush()

            logger.debug(f"Deleted {self.model.__name__} with id: {id}")
            return True
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {id}: {e}")
            raise

    async def delete_where(self, commit: bool = True, **criteria: Any) -> int:
        """
        Delete every record matching simple equality criteria.

        Returns:
            Number of records deleted
        """
        try:
            stmt = delete(self.model)
            for field, value in criteria.items():
                stmt = stmt.where(getattr(self.model, field) == value)
            result = await self.db.execute(stmt)
            if commit:
                await self.db.commit()
            logger.debug(f"Deleted {result.rowcount} {self.model.__name__} records matching {criteria}")
            return result.rowcount
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} records matching {criteria}: {e}")
            raise

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Count records with optional filtering.

        Args:
            filters: Dictionary of field filters

        Returns:
            Number of matching records
        """
        try:
            query = self._apply_filters(select(func.count(self.model.id)), filters)
            result = await self.db.execute(query)
            count = result.scalar() or 0

            logger.debug(f"Counted {count} {self.model.__name__} records")
            return count
        except Exception as e:
            logger.error(f"Failed to count {self.model.__name__} records: {e}")
            raise

    async def count_by(self, column_name: str, filters: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
        """
        Count records grouped by a column.

        Args:
            column_name: Column to group by (usually an enum status)
            filters: Dictionary of field filters

        Returns:
            Mapping of column value to record count
        """
        try:
            column = getattr(self.model, column_name)
            query = self._apply_filters(select(column, func.count(self.model.id)), filters)
            result = await self.db.execute(query.group_by(column))
            counts = {}
            for value, total in result.all():
                key = value.value if hasattr(value, "value") else str(value)
                counts[key] = total
            return counts
        except Exception as e:
            logger.error(f"Failed to count {self.model.__name__} records by {column_name}: {e}")
            raise

    async def exists(self, id: uuid.UUID) -> bool:
        """
        Check if a record exists by its ID.

        Args:
            id: UUID of the record to check

        Returns:
            True if record exists, False otherwise
        """
        try:
            query = select(func.count(self.model.id)).where(self.model.id == id)
            result = await self.db.execute(query)
            return (result.scalar() or 0) > 0
        except Exception as e:
            logger.error(f"Failed to check existence of {self.model.__name__} {id}: {e}")
            raise

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """
        Get a record by a specific field value.

        Args:
            field: Field name to search by
            value: Value to search for

        Returns:
            Model instance if found, None otherwise
        """
        try:
            if not hasattr(self.model, field):
                raise ValueError(f"Field '{field}' does not exist on {self.model.__name__}")

            query = select(self.model).where(getattr(self.model, field) == value)
            result = await self.db.execute(query)
            obj = result.scalars().first()

            if obj:
                logger.debug(f"Retrieved {self.model.__name__} by {field}: {value}")
            else:
                logger.debug(f"{self.model.__name__} with {field}={value} not found")

            return obj
        except Exception as e:
            logger.error(f"Failed to get {self.model.__name__} by {field}={value}: {e}")
            raise
