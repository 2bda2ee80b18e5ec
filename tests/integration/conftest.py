"""Fixtures for integration tests against an in-memory SQLite database."""

import pytest
from sqlalchemy.orm import sessionmaker

from reepay_tokens.config import GatewaySettings
from reepay_tokens.infrastructure.cache import InMemoryTokenCache
from reepay_tokens.infrastructure.database import (
    create_db_engine,
    drop_all_tables,
    init_db,
)
from reepay_tokens.infrastructure.repository import OrderRepository, TokenRepository
from reepay_tokens.service import ReepayTokenService

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables created."""
    engine = create_db_engine(TEST_DATABASE_URL)
    init_db(engine)

    yield engine

    drop_all_tables(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create a database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def token_repository(session):
    return TokenRepository(session)


@pytest.fixture
def order_repository(session):
    return OrderRepository(session)


@pytest.fixture
def token_cache():
    return InMemoryTokenCache(max_entries=100)


@pytest.fixture
def service(token_repository, order_repository, token_cache, gateway, catalog):
    """Token service over real repositories and a mocked Reepay gateway."""
    return ReepayTokenService(
        tokens=token_repository,
        orders=order_repository,
        cache=token_cache,
        gateway=gateway,
        catalog=catalog,
        wallet_recurring_prefix=GatewaySettings().wallet_recurring_prefix,
    )
