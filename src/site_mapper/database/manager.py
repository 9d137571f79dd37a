"""
Database manager for handling database connections and sessions.
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..config import DatabaseConfig
from ..logging import log_database_config, setup_logger
from ..redis_client import RedisClient

logger = setup_logger("site_mapper.database.manager")


class DatabaseManager:
    """Manages database connections and provides session management."""

    def __init__(self):
        self.engine = None
        self.async_session = None
        self.redis_client: Optional[RedisClient] = None
        self.config: Optional[DatabaseConfig] = None

    async def init(
        self,
        config: Optional[DatabaseConfig] = None,
        redis_client: Optional[RedisClient] = None,
    ) -> None:
        """Initialize database connections.

        Args:
            config: Database configuration
            redis_client: Optional Redis client instance
        """
        self.config = config or DatabaseConfig()

        try:
            # Log database configuration before connecting
            log_database_config(self.config, logger)

            self.engine = create_async_engine(
                self.config.postgres_url,
                echo=self.config.echo_sql,
                pool_pre_ping=True,  # Enable connection health checks
                pool_size=5,
                max_overflow=10
            )

            self.async_session = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            # Test the PostgreSQL connection
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

            self.redis_client = redis_client or RedisClient(
                host=self.config.redis_host,
                port=self.config.redis_port,
                db=self.config.redis_db,
                password=self.config.redis_password,
            )
            await self.redis_client.__aenter__()

            # Redis is only a cache; run without it when unreachable
            if not await self.redis_client.health_check():
                logger.warning("Redis connection test failed, continuing without Redis cache")
                await self.redis_client.__aexit__(None, None, None)
                self.redis_client = None
            else:
                logger.info("Redis connection test successful")

            logger.info("Successfully initialized database connections")

        except Exception as e:
            logger.error(f"Failed to initialize database connections: {str(e)}")
            await self.cleanup()
            raise

    def get_session(self) -> AsyncSession:
        """Get a new database session."""
        if not self.async_session:
            raise RuntimeError("DatabaseManager not initialized. Call init() first.")
        return self.async_session()

    async def cleanup(self) -> None:
        """Cleanup database connections."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None

        if self.redis_client:
            await self.redis_client.__aexit__(None, None, None)
            self.redis_client = None

        logger.debug("Database connections cleaned up")
