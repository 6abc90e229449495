"""SQLite-backed persistence for users and orders."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .errors import UserAlreadyExists, UserNotFound
from .models import Order, User, UserFilter

_PRICE_QUANTUM = Decimal("0.01")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "shop.sqlite3").resolve(strict=False)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def normalize_price(value: Decimal | float | str) -> Decimal:
    return Decimal(str(value)).quantize(_PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def _age_clause(filters: UserFilter) -> Tuple[str, List[object]]:
    conditions: List[str] = []
    params: List[object] = []
    if filters.min_age is not None:
        conditions.append("age >= ?")
        params.append(filters.min_age)
    if filters.max_age is not None:
        conditions.append("age <= ?")
        params.append(filters.max_age)
    if not conditions:
        return "", params
    return " WHERE " + " AND ".join(conditions), params


class Database:
    """Simple wrapper around SQLite for persisting users and their orders."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    age INTEGER NOT NULL,
                    password_hash TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS orders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    product TEXT NOT NULL,
                    quantity INTEGER NOT NULL,
                    price TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_orders_user_id ON orders(user_id);
                CREATE INDEX IF NOT EXISTS idx_users_age ON users(age);
                """
            )

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(self, *, name: str, email: str, age: int, password_hash: str) -> User:
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (name, email, age, password_hash) VALUES (?, ?, ?, ?)",
                    (name, email, age, password_hash),
                )
            except sqlite3.IntegrityError as exc:
                raise UserAlreadyExists() from exc
            user_id = cursor.lastrowid

        return User(id=int(user_id), name=name, email=email, age=age)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_user_by_email(self, email: str) -> Optional[User]:
        credentials = self.get_credentials(email)
        if credentials is None:
            return None
        return credentials[0]

    def get_credentials(self, email: str) -> Optional[Tuple[User, str]]:
        """Return the user registered under ``email`` together with its password hash."""

        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row), str(row["password_hash"])

    def update_user(self, user_id: int, **fields: object) -> Optional[User]:
        allowed = ("name", "email", "age")

        updates: List[str] = []
        values: List[object] = []
        for column in allowed:
            value = fields.get(column)
            if value is None:
                continue
            updates.append(f"{column} = ?")
            values.append(value)

        if not updates:
            return self.get_user(user_id)

        values.append(user_id)
        query = f"UPDATE users SET {', '.join(updates)} WHERE id = ?"

        with self._connect() as conn:
            try:
                cursor = conn.execute(query, values)
            except sqlite3.IntegrityError as exc:
                raise UserAlreadyExists() from exc
            if cursor.rowcount == 0:
                return None

        return self.get_user(user_id)

    def delete_user(self, user_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cursor.rowcount > 0

    def list_users(self, filters: UserFilter) -> List[User]:
        where, params = _age_clause(filters)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM users{where} ORDER BY id LIMIT ? OFFSET ?",
                (*params, filters.limit, filters.offset),
            ).fetchall()
        return [self._row_to_user(row) for row in rows]

    def count_users(self, filters: UserFilter) -> int:
        where, params = _age_clause(filters)
        with self._connect() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS total FROM users{where}", params).fetchone()
        return int(row["total"])

    # ------------------------------------------------------------------
    # Order management
    # ------------------------------------------------------------------
    def create_order(
        self,
        user_id: int,
        *,
        product: str,
        quantity: int,
        price: Decimal,
    ) -> Order:
        created_at = _current_timestamp()
        stored_price = normalize_price(price)
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO orders (user_id, product, quantity, price, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        product,
                        quantity,
                        str(stored_price),
                        _serialize_datetime(created_at),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                # The only constraint left to violate is the owner reference.
                raise UserNotFound() from exc
            order_id = cursor.lastrowid

        return Order(
            id=int(order_id),
            user_id=user_id,
            product=product,
            quantity=quantity,
            price=stored_price,
            created_at=created_at,
        )

    def list_orders_for_user(self, user_id: int) -> List[Order]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM orders WHERE user_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_order(row) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            age=int(row["age"]),
        )

    def _row_to_order(self, row: sqlite3.Row) -> Order:
        return Order(
            id=int(row["id"]),
            user_id=int(row["user_id"]),
            product=str(row["product"]),
            quantity=int(row["quantity"]),
            price=Decimal(str(row["price"])),
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["Database", "normalize_price", "resolve_database_path"]
