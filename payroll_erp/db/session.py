"""
Async SQLAlchemy engine & session factory (asyncpg driver).

The :class:`Database` value is built once at process start, handed to the
application factory and disposed on shutdown. Nothing here is global.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Hashable
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from payroll_erp.db.base import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns one async engine and the session factory bound to it."""

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        engine_args: dict[str, Any] = {
            "echo": False,
            "pool_pre_ping": True,
        }
        if "postgresql" in url:
            engine_args.update(
                {
                    "pool_size": 20,
                    "max_overflow": 10,
                    "pool_recycle": 300,
                }
            )
        engine_args.update(engine_kwargs)

        self.url = url
        self.engine = create_async_engine(url, **engine_args)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._locks: dict[Hashable, asyncio.Lock] = {}

    async def create_all(self) -> None:
        # Ensure every model module is imported so metadata sees all tables
        import payroll_erp.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialised")

    def lock(self, key: Hashable) -> asyncio.Lock:
        """Process-local lock for writes sharing *key*.

        Taken together with a row lock, since SQLite ignores ``FOR UPDATE``.
        """
        return self._locks.setdefault(key, asyncio.Lock())

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.warning("Database ping failed: %s", exc)
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")
