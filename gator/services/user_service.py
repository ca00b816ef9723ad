"""
User Service
============

Registration, login and the "current user" lookup used by commands that
require a logged-in user.
"""

from typing import List, Optional

from ..config.user_config import UserConfig
from ..database.models import User
from ..storage.user_repository import UserRepository
from ..utils.logging import get_logger_for_component
from ..utils.validators import validate_name
from ..utils.exceptions import (
    AlreadyExistsError,
    ConfigurationError,
    ErrorCode,
    NotFoundError,
)


class UserService:
    """Service for user accounts and the logged-in user."""

    def __init__(self, user_repository: UserRepository, user_config: UserConfig):
        self.users = user_repository
        self.user_config = user_config
        self.logger = get_logger_for_component("user_service")

    @property
    def current_user_name(self) -> Optional[str]:
        return self.user_config.current_user_name

    def register(self, name: str) -> User:
        """Create a user and log in as them.

        Raises:
            AlreadyExistsError: If the name is taken
        """
        name = validate_name(name, "name")
        if self.users.get_user_by_name(name) is not None:
            raise AlreadyExistsError(f"User {name} already exists", resource="user")

        user = self.users.create_user(name)
        self.user_config.set_user(user.name)
        self.logger.info(f"Registered and logged in as {user.name}")
        return user

    def login(self, name: str) -> User:
        """Switch the current user.

        Raises:
            NotFoundError: If no user has this name
        """
        name = validate_name(name, "name")
        user = self.users.get_user_by_name(name)
        if user is None:
            raise NotFoundError(f"User {name} does not exist", resource="user")

        self.user_config.set_user(user.name)
        return user

    def reset(self) -> int:
        """Delete every user along with their feeds, follows and posts."""
        return self.users.delete_all_users()

    def list_users(self) -> List[User]:
        return self.users.list_users()

    def current_user(self) -> User:
        """The logged-in user.

        Raises:
            ConfigurationError: If nobody is logged in
            NotFoundError: If the configured user no longer exists
        """
        name = self.current_user_name
        if not name:
            raise ConfigurationError(
                "No current user in config",
                config_key="current_user_name",
                error_code=ErrorCode.NOT_LOGGED_IN,
                user_message="Not logged in. Run 'gator login <name>' first.",
            )

        user = self.users.get_user_by_name(name)
        if user is None:
            raise NotFoundError(
                f"Current user {name} does not exist",
                resource="user",
                user_message=f"User {name} does not exist. Register or log in again.",
            )
        return user

    def current_user_or_none(self) -> Optional[User]:
        """The logged-in user, or None when nobody is logged in or the user is gone."""
        name = self.current_user_name
        if not name:
            return None
        return self.users.get_user_by_name(name)
