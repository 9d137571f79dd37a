"""
Database connection management.
"""

from .manager import DatabaseManager
from .context import DatabaseContext

__all__ = ["DatabaseManager", "DatabaseContext"]
