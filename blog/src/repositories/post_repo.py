"""
Post repository for database operations.

Provides the read queries behind the post endpoints and the single
insert used to create a post. Each method maps onto one parameterized
statement run through the data accessor.
"""

import structlog
from typing import Any, Dict, List

from blog.src.database import Database
from blog.src.models.blog import WriteOutcome

logger = structlog.get_logger(__name__)

# Largest id PostgreSQL can compare against; anything above matches no post
MAX_POST_ID = 2**63 - 1

LIST_POSTS_SQL = """
    SELECT id, created_at, updated_at, title
    FROM post
"""

GET_POST_SQL = """
    SELECT *
    FROM post
    WHERE id = $1::bigint
"""

CREATE_POST_SQL = """
    INSERT INTO post (title, content, user_id)
    VALUES ($1, $2, $3)
"""


class PostRepository:
    """Repository for post database operations."""

    def __init__(self, db: Database):
        """
        Initialize post repository.

        Args:
            db: Data accessor backed by the connection pool
        """
        self.db = db

    async def list_posts(self) -> List[Dict[str, Any]]:
        """
        List every post with the summary column projection.

        Returns:
            Post rows without their content
        """
        try:
            rows = await self.db.get_results(LIST_POSTS_SQL)
            logger.debug("posts_listed", count=len(rows))
            return rows

        except Exception as e:
            logger.error("post_list_failed", error=str(e))
            raise

    async def get_post(self, post_id: int) -> List[Dict[str, Any]]:
        """
        Get a post by ID.

        Args:
            post_id: Post ID

        Returns:
            A list holding the full post row, or an empty list if not found
        """
        if not -MAX_POST_ID <= post_id <= MAX_POST_ID:
            logger.debug("post_not_found", post_id=post_id)
            return []

        try:
            rows = await self.db.get_results(GET_POST_SQL, [post_id])

            if not rows:
                logger.debug("post_not_found", post_id=post_id)

            return rows

        except Exception as e:
            logger.error("post_get_by_id_failed", error=str(e), post_id=post_id)
            raise

    async def create_post(self, title: str, content: str, user_id: int) -> WriteOutcome:
        """
        Create a new post.

        Args:
            title: Post title
            content: Post body
            user_id: Owning user ID

        Returns:
            Outcome of the insert
        """
        try:
            outcome = await self.db.get_results(CREATE_POST_SQL, [title, content, user_id])

            if outcome.affected_rows:
                logger.info("post_created", user_id=user_id, title=title)
            else:
                logger.warning("post_not_created", user_id=user_id, status=outcome.status)

            return outcome

        except Exception as e:
            logger.error("post_create_failed", error=str(e), user_id=user_id)
            raise
