from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from fastapi import Request
from typing import AsyncGenerator
import logging
from .models import Base

logger = logging.getLogger(__name__)

class Database:
    """Owns the async engine and session factory for one process.

    Built at startup (FastAPI lifespan or arq worker startup) and disposed
    at shutdown, then handed to whoever needs sessions.
    """

    def __init__(self, url: str, **engine_options):
        if not url.startswith("sqlite"):
            engine_options.setdefault("pool_size", 30)
            engine_options.setdefault("max_overflow", 100)
            engine_options.setdefault("pool_timeout", 30)
            engine_options.setdefault("pool_recycle", 3600)
        self.engine = create_async_engine(
            url,
            echo=False,
            pool_pre_ping=True,
            **engine_options
        )
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            class_=AsyncSession
        )

    async def create_all(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def dispose(self):
        await self.engine.dispose()
        logger.info("Database engine disposed")

async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        yield session
