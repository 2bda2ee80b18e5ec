"""Alembic migrations against SQLite."""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

pytestmark = pytest.mark.integration

ALEMBIC_DIR = Path(__file__).resolve().parents[2] / "alembic"
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def migration_engine():
    engine = create_engine(TEST_DATABASE_URL)
    yield engine
    engine.dispose()


@pytest.fixture
def alembic_cfg():
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    cfg.set_main_option("sqlalchemy.url", TEST_DATABASE_URL)
    return cfg


def _run(cfg, engine, fn, revision):
    with engine.begin() as connection:
        cfg.attributes["connection"] = connection
        fn(cfg, revision)


def test_upgrade_creates_schema(migration_engine, alembic_cfg):
    _run(alembic_cfg, migration_engine, command.upgrade, "head")

    inspector = inspect(migration_engine)
    assert {"payment_tokens", "orders", "order_payment_tokens"} <= set(
        inspector.get_table_names()
    )

    columns = {c["name"] for c in inspector.get_columns("payment_tokens")}
    assert {"token", "gateway_id", "user_id", "token_type", "last4", "expiry_year"} <= columns

    unique_columns = [u["column_names"] for u in inspector.get_unique_constraints("payment_tokens")]
    assert ["token"] in unique_columns


def test_downgrade_removes_schema(migration_engine, alembic_cfg):
    _run(alembic_cfg, migration_engine, command.upgrade, "head")
    _run(alembic_cfg, migration_engine, command.downgrade, "base")

    tables = set(inspect(migration_engine).get_table_names())
    assert "payment_tokens" not in tables
    assert "orders" not in tables
