"""Request and response models for the users and orders API."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field

from .models import Order, User
from .validation import check_email, check_price, require_text

# Largest value SQLite can store in an INTEGER column.
MAX_STORED_INT = 2**63 - 1
MAX_ID = MAX_STORED_INT
MAX_PAGE_VALUE = 2**31 - 1
MAX_PRICE = Decimal("999999999999.99")

Email = Annotated[str, AfterValidator(check_email)]
RequiredEmail = Annotated[str, AfterValidator(check_email), BeforeValidator(require_text)]
RequiredText = Annotated[str, BeforeValidator(require_text)]
PositiveInt = Annotated[int, Field(strict=True, gt=0, le=MAX_STORED_INT)]
Price = Annotated[Decimal, Field(gt=0, le=MAX_PRICE), AfterValidator(check_price)]


class RegisterRequest(BaseModel):
    name: Annotated[str, Field(min_length=2), BeforeValidator(require_text)]
    email: RequiredEmail
    password: Annotated[str, Field(min_length=6), BeforeValidator(require_text)]
    age: PositiveInt


class LoginRequest(BaseModel):
    email: RequiredEmail
    password: RequiredText


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[Email] = None
    age: Optional[PositiveInt] = None


class CreateOrderRequest(BaseModel):
    product: RequiredText
    quantity: PositiveInt
    price: Price


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    age: int


class UserListResponse(BaseModel):
    page: int
    limit: int
    total: int
    users: List[UserResponse]


class TokenResponse(BaseModel):
    token: str


class OrderResponse(BaseModel):
    id: int
    user_id: int
    product: str
    quantity: int
    price: float
    created_at: datetime


def user_to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, name=user.name, email=user.email, age=user.age)


def order_to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        product=order.product,
        quantity=order.quantity,
        price=float(order.price),
        created_at=order.created_at,
    )


__all__ = [
    "CreateOrderRequest",
    "LoginRequest",
    "MAX_ID",
    "MAX_PAGE_VALUE",
    "MAX_PRICE",
    "MAX_STORED_INT",
    "OrderResponse",
    "RegisterRequest",
    "TokenResponse",
    "UpdateUserRequest",
    "UserListResponse",
    "UserResponse",
    "order_to_response",
    "user_to_response",
]
