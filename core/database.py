# core/database.py

import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from core.config import get_settings

logger = logging.getLogger(__name__)

# ==========================================================
# ✅ ENGINE CREATION
# ==========================================================
settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,  # True = log SQL
    future=True,
    pool_pre_ping=True,      # reconnect automatically if dropped
    poolclass=NullPool       # avoids too many open connections
)

# ==========================================================
# ✅ SESSION FACTORY
# ==========================================================
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

# ✅ Base model
Base = declarative_base()


# ==========================================================
# ✅ FASTAPI DEPENDENCY
# ==========================================================
async def get_db():
    """Yields a database session for FastAPI routes."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def transaction(db: AsyncSession):
    """Commit everything done inside the block, or roll all of it back."""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


# ==========================================================
# ✅ CREATE TABLES
# ==========================================================
async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Database tables are ready")

