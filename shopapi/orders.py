"""Business rules for orders placed by users."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from .database import Database
from .models import Order

logger = logging.getLogger("shopapi.orders")


class OrderService:
    def __init__(self, database: Database) -> None:
        self._database = database

    def create(self, user_id: int, *, product: str, quantity: int, price: Decimal) -> Order:
        logger.info("Creating order for user %s", user_id)
        order = self._database.create_order(
            user_id,
            product=product,
            quantity=quantity,
            price=price,
        )
        logger.info("Created order %s for user %s", order.id, user_id)
        return order

    def list_by_user(self, user_id: int) -> List[Order]:
        # Unknown users simply have no orders.
        return self._database.list_orders_for_user(user_id)


__all__ = ["OrderService"]
