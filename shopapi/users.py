"""Business rules for user accounts."""

from __future__ import annotations

import logging
from typing import List, Optional

from .database import Database
from .errors import InvalidCredentials, UserAlreadyExists, UserNotFound
from .models import User, UserFilter
from .passwords import PasswordHasher
from .tokens import TokenService

logger = logging.getLogger("shopapi.users")


class UserService:
    """Registration, authentication and CRUD for users."""

    def __init__(self, database: Database, hasher: PasswordHasher, tokens: TokenService) -> None:
        self._database = database
        self._hasher = hasher
        self._tokens = tokens

    def register(self, *, name: str, email: str, password: str, age: int) -> User:
        """Create a new account.

        The existence check and the insert are separate statements; a concurrent
        registration that wins the race is caught by the UNIQUE constraint and
        reported the same way.
        """

        logger.info("Registering user with email %s", email)
        if self._database.get_user_by_email(email) is not None:
            logger.warning("User with email %s already exists", email)
            raise UserAlreadyExists()

        password_hash = self._hasher.hash(password)
        user = self._database.create_user(
            name=name,
            email=email,
            age=age,
            password_hash=password_hash,
        )
        logger.info("Created user %s", user.id)
        return user

    def authenticate(self, *, email: str, password: str) -> str:
        """Return a bearer token for valid credentials.

        Unknown emails and wrong passwords raise the same error so callers
        cannot probe which addresses are registered.
        """

        credentials = self._database.get_credentials(email)
        if credentials is None:
            raise InvalidCredentials()
        user, password_hash = credentials
        if not self._hasher.verify(password, password_hash):
            raise InvalidCredentials()
        return self._tokens.issue(user.id)

    def get(self, user_id: int) -> User:
        user = self._database.get_user(user_id)
        if user is None:
            raise UserNotFound()
        return user

    def list(self, filters: UserFilter) -> List[User]:
        return self._database.list_users(filters)

    def count(self, filters: UserFilter) -> int:
        return self._database.count_users(filters)

    def update(
        self,
        user_id: int,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        age: Optional[int] = None,
    ) -> User:
        logger.info("Updating user %s", user_id)
        self.get(user_id)

        if email is not None:
            owner = self._database.get_user_by_email(email)
            if owner is not None and owner.id != user_id:
                logger.warning("Email %s is already used by user %s", email, owner.id)
                raise UserAlreadyExists()

        updated = self._database.update_user(user_id, name=name, email=email, age=age)
        if updated is None:
            raise UserNotFound()
        logger.info("Updated user %s", user_id)
        return updated

    def delete(self, user_id: int) -> None:
        """Delete the user; the store removes the user's orders with it."""

        logger.info("Deleting user %s", user_id)
        if not self._database.delete_user(user_id):
            raise UserNotFound()
        logger.info("Deleted user %s", user_id)


__all__ = ["UserService"]
