"""
UserRepository for database operations on the User profile model
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import User


class UserRepository:
    """
    Repository class for User database operations.
    Encapsulates all database logic for the profile table.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the repository with a database session.

        Args:
            db: AsyncSession instance for database operations
        """
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve a user by email address.

        Args:
            email: User's email address (case-insensitive search)

        Returns:
            User object if found, None otherwise
        """
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """
        Retrieve a user by identity ID.

        Args:
            user_id: Identity ID the profile row is keyed by

        Returns:
            User object if found, None otherwise
        """
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_user(self, user_data: dict) -> User:
        """
        Create a new profile row.

        Args:
            user_data: Dictionary containing user data. Must include:
                - id: str (identity ID)
                - email: str
                Optional: any other User column

        Returns:
            Created User object
        """
        data = dict(user_data)
        data["email"] = data["email"].strip().lower()
        user = User(**data)
        self.db.add(user)
        await self.db.flush()  # Flush to surface constraint errors early
        await self.db.refresh(user)
        return user

    async def update_user(self, user: User, updates: dict) -> User:
        """
        Update user fields.

        Args:
            user: User object to update
            updates: Dictionary of fields to update (e.g., {"slim_points": 3})

        Returns:
            Updated User object
        """
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)

        await self.db.flush()
        await self.db.refresh(user)
        return user
