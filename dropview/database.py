"""
Database configuration and session management.

Async SQLAlchemy engine tuned for AWS RDS (SSL, pre-ping, recycled
connections) plus the session factory and the FastAPI session dependency.
"""

import logging
from datetime import datetime
from typing import AsyncGenerator

from sqlalchemy import DateTime, event, func
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from dropview.config import settings


class Base(DeclarativeBase):
    """
    Base model class for all database models.

    Every table gets an integer primary key and created/updated timestamps.
    """

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


def create_aws_optimized_engine():
    """Create database engine optimized for AWS RDS deployment."""
    database_url = settings.database_url_with_ssl

    engine_kwargs = {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "echo": settings.debug,
        "pool_pre_ping": True,
        "pool_recycle": 3600,  # RDS drops idle connections
    }

    if settings.is_aws_environment:
        engine_kwargs.update(
            {
                "connect_args": {
                    "server_settings": {
                        "application_name": f"{settings.app_name}_{settings.environment}",
                        "client_encoding": "utf8",
                    }
                },
                "pool_timeout": 30,
                "pool_reset_on_return": "commit",
            }
        )

    return create_async_engine(database_url, **engine_kwargs)


engine = create_aws_optimized_engine()

logger = logging.getLogger("database")


@event.listens_for(Engine, "connect")
def log_rds_connection(dbapi_connection, connection_record):
    if settings.is_aws_environment:
        logger.info("Connected to AWS RDS database")


AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting a database session.

    @router.get("/posts")
    async def list_posts(db: AsyncSession = Depends(get_db)):
        ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Create all tables (local development only; production uses Alembic)."""
    async with engine.begin() as conn:
        from dropview.models import community, interaction, user  # noqa

        await conn.run_sync(Base.metadata.create_all)
