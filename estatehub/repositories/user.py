"""
User repository for authentication and user management operations.
Provides secure user operations with password handling and role-based access.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc
from estatehub.repositories.base import BaseRepository, LIKE_ESCAPE, escape_like
from estatehub.models.user import User, UserRole
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication and authorization support.
    Handles secure user operations and role-based access control.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: email, password, full_name
                      Optional: role (defaults to STUDENT), phone, is_active

        Returns:
            Created user instance

        Raises:
            ValueError: If validation fails or the email is taken
        """
        try:
            data = dict(user_data)
            email = User.validate_email_format(data.pop("email"))

            existing_user = await self.get_by_email(email)
            if existing_user:
                raise ValueError(f"User with email {email} already exists")

            password = data.pop("password")
            data.pop("confirm_password", None)

            create_data = {
                **data,
                "email": email,
                "hashed_password": User.hash_password(password),
                "role": data.get("role") or UserRole.STUDENT,
                "is_active": data.get("is_active", True),
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.error(f"User validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(User).where(User.email == normalized_email))
            user = result.scalar_one_or_none()

            if user:
                logger.debug(f"Retrieved user by email: {email}")
            else:
                logger.debug(f"User with email {email} not found")

            return user
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Inactive users are returned as-is so the caller can report the
        account state rather than a generic credential failure.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            User instance if the password matches, None otherwise
        """
        try:
            user = await self.get_by_email(email)

            if not user:
                logger.debug(f"Authentication failed: user {email} not found")
                return None

            if not user.verify_password(password):
                logger.debug(f"Authentication failed: invalid password for {email}")
                return None

            logger.info(f"User authenticated successfully: {email}")
            return user
        except Exception as e:
            logger.error(f"Failed to authenticate user {email}: {e}")
            raise

    async def update_password(self, user_id: uuid.UUID, new_password: str) -> Optional[User]:
        """
        Update user's password with proper hashing.

        Raises:
            ValueError: If password validation fails
        """
        hashed_password = User.hash_password(new_password)
        updated_user = await self.update(user_id, {"hashed_password": hashed_password})
        if updated_user:
            logger.info(f"Password updated for user: {updated_user.email}")
        return updated_user

    async def update_user_status(self, user_id: uuid.UUID, is_active: bool) -> Optional[User]:
        """Update user's active status."""
        try:
            user = await self.get_by_id(user_id)
            if user is None:
                return None
            # update() drops falsy-but-meaningful values like False, so set directly
            user.is_active = is_active
            user = await self.save(user)

            status = "activated" if is_active else "deactivated"
            logger.info(f"User {user.email} {status}")
            return user
        except Exception as e:
            logger.error(f"Failed to update user status {user_id}: {e}")
            raise

    async def update_user_role(self, user_id: uuid.UUID, new_role: UserRole) -> Optional[User]:
        """Update user's role."""
        try:
            updated_user = await self.update(user_id, {"role": new_role})
            if updated_user:
                logger.info(f"User {updated_user.email} role updated to {new_role.value}")
            return updated_user
        except Exception as e:
            logger.error(f"Failed to update user role {user_id}: {e}")
            raise

    async def search_users(
        self,
        search_term: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        """
        Search users by email or full name.

        Args:
            search_term: Term to search for in email or full name
            role: Optional role filter
            is_active: Optional account status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (users list, total count)
        """
        try:
            conditions = []
            if search_term:
                pattern = f"%{escape_like(search_term.strip())}%"
                conditions.append(or_(
                    User.email.ilike(pattern, escape=LIKE_ESCAPE),
                    User.full_name.ilike(pattern, escape=LIKE_ESCAPE)
                ))
            if role is not None:
                conditions.append(User.role == role)
            if is_active is not None:
                conditions.append(User.is_active == is_active)

            query = select(User)
            count_query = select(func.count(User.id))
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total = (await self.db.execute(count_query)).scalar() or 0
            result = await self.db.execute(
                query.order_by(desc(User.created_at)).offset(skip).limit(limit)
            )
            users = list(result.scalars().all())

            logger.debug(f"User search returned {len(users)} of {total}")
            return users, total
        except Exception as e:
            logger.error(f"Failed to search users: {e}")
            raise

    async def get_active_agents(self, limit: int = 100) -> List[User]:
        """
        Get all active agents (users with agent role).

        Args:
            limit: Maximum number of agents to return

        Returns:
            List of active agent users
        """
        try:
            query = (
                select(User)
                .where(and_(User.role == UserRole.AGENT, User.is_active.is_(True)))
                .order_by(User.full_name)
                .limit(limit)
            )
            result = await self.db.execute(query)
            agents = result.scalars().all()

            logger.debug(f"Retrieved {len(agents)} active agents")
            return list(agents)
        except Exception as e:
            logger.error(f"Failed to get active agents: {e}")
            raise

    async def get_user_statistics(self) -> Dict[str, Any]:
        """
        Get user statistics for the admin dashboard.

        Returns:
            Dictionary with totals and per-role counts of active users
        """
        try:
            total_users = await self.count()
            active_users = await self.count({"is_active": True})
            users_by_role = await self.count_by("role", {"is_active": True})

            return {
                "total_users": total_users,
                "active_users": active_users,
                "inactive_users": total_users - active_users,
                "users_by_role": users_by_role,
            }
        except Exception as e:
            logger.error(f"Failed to get user statistics: {e}")
            raise
