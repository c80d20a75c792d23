import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import init_models
from store import MemoryURLStore, SQLURLStore

SQLALCHEMY_TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_test_engine():
    return create_async_engine(
        SQLALCHEMY_TEST_DATABASE_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool
    )


@pytest.fixture(params=["sql", "memory"])
def make_store(request):
    """Factory for a fresh, empty store of each backend."""
    engines = []

    def factory(**kwargs):
        if request.param == "memory":
            return MemoryURLStore(**kwargs)
        engine = make_test_engine()
        engines.append(engine)
        asyncio.run(init_models(engine))
        session_factory = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        return SQLURLStore(session_factory, **kwargs)

    yield factory
    for engine in engines:
        asyncio.run(engine.dispose())
