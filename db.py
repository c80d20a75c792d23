from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

import config

engine = create_async_engine(config.DATABASE_URL, echo=config.SQL_ECHO, future=True)
SessionLocal = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()


async def init_models(bind: AsyncEngine = engine):
    """Create the tables if they do not exist yet."""
    # Import here so the model is registered on Base.metadata.
    import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
