"""Domain records persisted by the store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class User:
    """Public projection of a user account; the password hash is never loaded here."""

    id: int
    name: str
    email: str
    age: int


@dataclass(frozen=True)
class Order:
    """An order placed by a user."""

    id: int
    user_id: int
    product: str
    quantity: int
    price: Decimal
    created_at: datetime


@dataclass(frozen=True)
class UserFilter:
    """Age range and page selection used when listing users."""

    min_age: Optional[int] = None
    max_age: Optional[int] = None
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


__all__ = ["Order", "User", "UserFilter"]
