"""
Base model class for SQLAlchemy models.
"""

from typing import Any, Dict

from sqlalchemy.orm import declarative_base


class Base:
    """Base class for all models."""

    def to_redis_data(self) -> Dict[str, Any]:
        """Convert instance to Redis-storable format."""
        raise NotImplementedError("Implement to_redis_data for Redis support")


Base = declarative_base(cls=Base)
