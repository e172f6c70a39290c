"""
Pytest fixtures shared by the model_stats tests.
"""
from __future__ import annotations

import pytest
import sqlalchemy as sa
from sqlalchemy.pool import StaticPool

ORDERS = [
    {"id": 1, "amount": 10, "channel": "web", "status": "paid", "user_id": 1, "created_at": "2024-01-05"},
    {"id": 2, "amount": 20, "channel": "store", "status": "paid", "user_id": 2, "created_at": "2024-02-10"},
    {"id": 3, "amount": 30, "channel": "web", "status": "refunded", "user_id": 1, "created_at": "2024-03-15"},
]

USERS = [
    {"id": 1, "name": "alice", "country": "UK"},
    {"id": 2, "name": "bob", "country": "FR"},
]


def _create_schema(engine: sa.Engine) -> sa.MetaData:
    metadata = sa.MetaData()
    orders = sa.Table(
        "orders", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("channel", sa.String(20)),
        sa.Column("status", sa.String(20)),
        sa.Column("user_id", sa.Integer),
        sa.Column("created_at", sa.String(10)),
    )
    users = sa.Table(
        "users", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(50)),
        sa.Column("country", sa.String(2)),
    )
    metadata.create_all(engine)
    with engine.begin() as connection:
        connection.execute(orders.insert(), ORDERS)
        connection.execute(users.insert(), USERS)
    return metadata


@pytest.fixture
def engine():
    """In-memory SQLite engine with sample orders and users."""
    engine = sa.create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine, one connection per thread."""
    engine = sa.create_engine(f"sqlite:///{tmp_path / 'orders.db'}")
    _create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def orders_table(engine):
    """Reflected orders table."""
    return sa.Table("orders", sa.MetaData(), autoload_with=engine)


@pytest.fixture
def order_scopes():
    """Named scopes for the orders table."""
    return {
        "paid": "status = 'paid'",
        "web": ["channel = ?", "web"],
        "large": lambda collection: collection.where(["amount >= ?", 20]),
    }


class RecordingCollection:
    """In-memory stand-in for a collection that records what it is asked."""

    def __init__(self, result=0, known_scopes=("active", "recent"), applied=(), calls=None, error=None):
        self.result = result
        self.known_scopes = tuple(known_scopes)
        self.applied = tuple(applied)
        self.calls = calls if calls is not None else []
        self.error = error

    def apply_scope(self, name):
        if name not in self.known_scopes:
            raise KeyError(name)
        return RecordingCollection(self.result, self.known_scopes, self.applied + (name,), self.calls, self.error)

    def calculate(self, kind, column, options):
        self.calls.append({"kind": kind, "column": column, "options": options, "scopes": self.applied})
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def recording_collection():
    """Factory for RecordingCollection instances."""
    def _create(**kwargs) -> RecordingCollection:
        return RecordingCollection(**kwargs)
    return _create
