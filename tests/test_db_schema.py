"""Tests for database schema creation."""

from datetime import UTC, datetime

from sqlalchemy import inspect

from interaction_router import Base
from interaction_router.db import get_engine, init_db
from interaction_router.models import RoutingStateRecord


def test_init_db_creates_routing_state_table(settings_env):
    init_db()
    engine = get_engine()

    inspector = inspect(engine)
    assert "routing_states" in inspector.get_table_names()

    columns = {column["name"] for column in inspector.get_columns("routing_states")}
    assert columns.issuperset({"key", "value_json", "created_at", "expires_at"})

    with engine.begin() as connection:
        connection.execute(
            RoutingStateRecord.__table__.insert(),
            {
                "key": "modal-t_1",
                "value_json": '{"routing_id": "send"}',
                "created_at": datetime.now(UTC),
                "expires_at": None,
            },
        )
        rows = connection.execute(RoutingStateRecord.__table__.select()).fetchall()
        assert len(rows) == 1

    Base.metadata.drop_all(engine)
