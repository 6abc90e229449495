"""HTTP API for managing users and their orders."""

from __future__ import annotations

import logging
from typing import Annotated, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, Path, Query, Response, status

from .api import (
    MAX_ID,
    MAX_PAGE_VALUE,
    CreateOrderRequest,
    LoginRequest,
    OrderResponse,
    RegisterRequest,
    TokenResponse,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
    order_to_response,
    user_to_response,
)
from .config import Settings, load_settings
from .database import Database
from .models import UserFilter
from .orders import OrderService
from .passwords import PasswordHasher
from .security import BearerAuth, Caller
from .tokens import RevocationSet, TokenService
from .users import UserService
from .validation import register_error_handlers

logger = logging.getLogger("shopapi.service")

UserId = Annotated[int, Path(gt=0, le=MAX_ID)]


def register_api_routes(
    app: FastAPI,
    users: UserService,
    orders: OrderService,
    tokens: TokenService,
    *,
    current_caller: Callable[..., Caller],
) -> None:
    """Expose the JSON API endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/users", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
    def register_user(request: RegisterRequest) -> UserResponse:
        user = users.register(
            name=request.name,
            email=request.email,
            password=request.password,
            age=request.age,
        )
        return user_to_response(user)

    @app.post("/auth/login", response_model=TokenResponse)
    def login(request: LoginRequest) -> TokenResponse:
        token = users.authenticate(email=request.email, password=request.password)
        return TokenResponse(token=token)

    @app.get("/users", response_model=UserListResponse)
    def list_users(
        page: int = Query(1, ge=1, le=MAX_PAGE_VALUE),
        limit: int = Query(10, ge=1, le=MAX_PAGE_VALUE),
        min_age: Optional[int] = Query(None, ge=0, le=MAX_PAGE_VALUE),
        max_age: Optional[int] = Query(None, ge=0, le=MAX_PAGE_VALUE),
        caller: Caller = Depends(current_caller),
    ) -> UserListResponse:
        filters = UserFilter(min_age=min_age, max_age=max_age, page=page, limit=limit)
        total = users.count(filters)
        page_items = users.list(filters)
        return UserListResponse(
            page=page,
            limit=limit,
            total=total,
            users=[user_to_response(user) for user in page_items],
        )

    @app.get("/users/{user_id}", response_model=UserResponse)
    def get_user(user_id: UserId, caller: Caller = Depends(current_caller)) -> UserResponse:
        return user_to_response(users.get(user_id))

    @app.put("/users/{user_id}", response_model=UserResponse)
    def update_user(
        request: UpdateUserRequest,
        user_id: UserId,
        caller: Caller = Depends(current_caller),
    ) -> UserResponse:
        updated = users.update(
            user_id,
            name=request.name,
            email=request.email,
            age=request.age,
        )
        return user_to_response(updated)

    @app.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_user(user_id: UserId, caller: Caller = Depends(current_caller)) -> Response:
        deleting_self = caller.is_user(user_id)
        if deleting_self:
            logger.info("User %s is deleting their own account", caller.user_id)
        else:
            logger.info("User %s is deleting account %s", caller.user_id, user_id)

        users.delete(user_id)

        if deleting_self:
            # Log the caller out: the token now names a user that no longer exists.
            tokens.revoke(caller.token)
            logger.info("Revoked the session token of deleted user %s", user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post(
        "/users/{user_id}/orders",
        status_code=status.HTTP_201_CREATED,
        response_model=OrderResponse,
    )
    def create_order(
        request: CreateOrderRequest,
        user_id: UserId,
        caller: Caller = Depends(current_caller),
    ) -> OrderResponse:
        users.get(user_id)
        order = orders.create(
            user_id,
            product=request.product,
            quantity=request.quantity,
            price=request.price,
        )
        logger.info("User %s placed order %s for user %s", caller.user_id, order.id, user_id)
        return order_to_response(order)

    @app.get("/users/{user_id}/orders", response_model=List[OrderResponse])
    def list_orders(user_id: UserId, caller: Caller = Depends(current_caller)) -> List[OrderResponse]:
        return [order_to_response(order) for order in orders.list_by_user(user_id)]


def create_app(
    *,
    settings: Settings | None = None,
    database: Database | None = None,
    revocations: RevocationSet | None = None,
    hasher: PasswordHasher | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the users and orders API."""

    app_settings = settings or load_settings()
    db = database or Database(app_settings.database_path)
    db.initialize()

    if not app_settings.jwt_secret:
        logger.warning("JWT_SECRET is not configured; login and protected routes will fail.")

    revoked = revocations if revocations is not None else RevocationSet()
    tokens = TokenService(app_settings.jwt_secret, revoked, ttl=app_settings.token_ttl)
    user_service = UserService(db, hasher or PasswordHasher(), tokens)
    order_service = OrderService(db)

    app = FastAPI(
        title="Shop API",
        version="0.1.0",
        description="Users and orders with bearer token authentication.",
    )

    app.state.revocations = revoked

    register_error_handlers(app)
    register_api_routes(
        app,
        user_service,
        order_service,
        tokens,
        current_caller=BearerAuth(tokens),
    )

    return app


__all__ = ["create_app", "register_api_routes"]
