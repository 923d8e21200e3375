"""
User repository for database operations.

Users are owned by the database and read-only from this service, so the
repository only lists them.
"""

import structlog
from typing import Any, Dict, List

from blog.src.database import Database

logger = structlog.get_logger(__name__)

LIST_USERS_SQL = """
    SELECT id, created_at, updated_at, first_name, last_name, email
    FROM "user"
"""


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, db: Database):
        """
        Initialize user repository.

        Args:
            db: Data accessor backed by the connection pool
        """
        self.db = db

    async def list_users(self) -> List[Dict[str, Any]]:
        """
        List every user with the public column projection.

        Returns:
            User rows
        """
        try:
            rows = await self.db.get_results(LIST_USERS_SQL)
            logger.debug("users_listed", count=len(rows))
            return rows

        except Exception as e:
            logger.error("user_list_failed", error=str(e))
            raise
