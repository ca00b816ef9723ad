"""
User Repository
===============

Database access for registered users.
"""

import sqlite3
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import User, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class UserRepository:
    """Repository for managing users in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("user_repository")

    def create_user(self, name: str) -> User:
        """Create a new user.

        Args:
            name: Unique user name

        Returns:
            The created User

        Raises:
            DatabaseError: If the insert fails (including a taken name)
        """
        user = User(name=name)
        try:
            self.db.execute_update(
                """
                INSERT INTO users (id, name, created_at, updated_at)
                VALUES (?, ?, ?, ?)
            """,
                (
                    user.id,
                    user.name,
                    to_db_timestamp(user.created_at),
                    to_db_timestamp(user.updated_at),
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DatabaseError(
                f"Failed to create user {name}: {e}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
            ) from e
        except sqlite3.Error as e:
            self.logger.error(f"Failed to create user {name}: {e}")
            raise DatabaseError(
                f"Failed to create user: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

        self.logger.info(f"Created user {user.name}")
        return user

    def get_user_by_name(self, name: str) -> Optional[User]:
        """Get a user by name, or None if nobody has that name."""
        try:
            row = self.db.execute_one("SELECT * FROM users WHERE name = ?", (name,))
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get user {name}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
        return User.from_db_row(row) if row else None

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        try:
            row = self.db.execute_one("SELECT * FROM users WHERE id = ?", (user_id,))
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get user {user_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e
        return User.from_db_row(row) if row else None

    def list_users(self) -> List[User]:
        """All users ordered by name."""
        try:
            rows = self.db.execute_query("SELECT * FROM users ORDER BY name")
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list users: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
        return [User.from_db_row(row) for row in rows]

    def delete_all_users(self) -> int:
        """Delete every user. Feeds, follows and posts cascade.

        Returns:
            Number of users deleted
        """
        try:
            deleted = self.db.execute_update("DELETE FROM users")
        except sqlite3.Error as e:
            self.logger.error(f"Failed to reset users: {e}")
            raise DatabaseError(
                f"Failed to delete users: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

        self.logger.info(f"Deleted {deleted} users")
        return deleted
