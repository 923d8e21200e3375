"""
Blog request and write-outcome models.

Read endpoints return database rows as-is, so the only schemas here are:
- the body accepted when creating a post
- the outcome of a statement that does not return rows
- the column projections used by the list endpoints
"""

from pydantic import BaseModel, Field


# ============================================================================
# Column Projections
# ============================================================================

USER_COLUMNS = ("id", "created_at", "updated_at", "first_name", "last_name", "email")
POST_SUMMARY_COLUMNS = ("id", "created_at", "updated_at", "title")


# ============================================================================
# Request Schemas
# ============================================================================


class CreatePostRequest(BaseModel):
    """Body of POST /posts, sent either as a form or as JSON."""

    title: str = Field(..., description="Post title")
    content: str = Field(..., description="Post body")


# ============================================================================
# Write Outcome
# ============================================================================


class WriteOutcome(BaseModel):
    """
    Parsed command tag of a statement that does not return rows.

    PostgreSQL reports the result of a write as a tag such as
    ``INSERT 0 1`` or ``UPDATE 3``; the trailing number is the
    affected-row count.
    """

    command: str = Field(..., description="SQL command keyword, e.g. INSERT")
    affected_rows: int = Field(0, ge=0, description="Rows touched by the statement")
    status: str = Field(..., description="Raw command tag returned by the server")


def parse_command_tag(status: str) -> WriteOutcome:
    """
    Build a WriteOutcome from a PostgreSQL command tag.

    Args:
        status: Tag returned by ``Connection.execute`` (e.g. ``"INSERT 0 1"``)

    Returns:
        Parsed outcome; tags without a trailing count report zero rows
    """
    parts = (status or "").split()
    command = parts[0].upper() if parts else ""
    affected_rows = 0

    if len(parts) > 1 and parts[-1].isdigit():
        affected_rows = int(parts[-1])

    return WriteOutcome(command=command, affected_rows=affected_rows, status=status or "")
