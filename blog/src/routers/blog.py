"""
Blog router for users and posts.

Provides REST API endpoints for:
- Listing users
- Listing posts
- Fetching a single post
- Creating a post from a form submission

Each endpoint is a thin pass-through to one repository call.
"""

import structlog
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from blog.src.models.blog import CreatePostRequest, WriteOutcome
from blog.src.repositories.user_repo import UserRepository
from blog.src.repositories.post_repo import PostRepository
from blog.src.dependencies import (
    get_user_repository,
    get_post_repository,
    get_author_id,
    get_create_post_request,
    get_redirect_target,
)

logger = structlog.get_logger(__name__)

users_router = APIRouter(prefix="/users", tags=["Users"])

posts_router = APIRouter(prefix="/posts", tags=["Posts"])


# ============================================================================
# USER ENDPOINTS
# ============================================================================


@users_router.get(
    "",
    summary="List Users",
    description="Return every user with id, timestamps, names and email."
)
async def list_users(
    user_repo: UserRepository = Depends(get_user_repository)
) -> List[Dict[str, Any]]:
    return await user_repo.list_users()


# ============================================================================
# POST ENDPOINTS
# ============================================================================


@posts_router.get(
    "",
    summary="List Posts",
    description="Return every post with id, timestamps and title."
)
async def list_posts(
    post_repo: PostRepository = Depends(get_post_repository)
) -> List[Dict[str, Any]]:
    return await post_repo.list_posts()


@posts_router.get(
    "/{post_id}",
    summary="Get Post",
    description="""
    Return the post with the given id as a one-element array.

    A missing post yields an empty array with status 200.
    """
)
async def get_post(
    post_id: int,
    post_repo: PostRepository = Depends(get_post_repository)
) -> List[Dict[str, Any]]:
    return await post_repo.get_post(post_id)


@posts_router.post(
    "",
    response_model=None,
    summary="Create Post",
    description="""
    Create a post from `title` and `content` (form fields or JSON).

    **Success:** 302 redirect to the origin of the submitting page.

    **No rows inserted:** 200 with the raw write outcome.
    """,
    responses={
        302: {"description": "Post created, redirect to the referring origin"},
        200: {"description": "Insert affected no rows", "model": WriteOutcome},
    }
)
async def create_post(
    post: CreatePostRequest = Depends(get_create_post_request),
    author_id: int = Depends(get_author_id),
    redirect_to: str = Depends(get_redirect_target),
    post_repo: PostRepository = Depends(get_post_repository)
):
    """
    Insert a post owned by the request's author.

    Args:
        post: Title and content
        author_id: Owning user id
        redirect_to: Where to send the browser on success
        post_repo: Post repository

    Returns:
        Redirect on success, otherwise the write outcome
    """
    outcome = await post_repo.create_post(post.title, post.content, author_id)

    if outcome.affected_rows:
        return RedirectResponse(url=redirect_to, status_code=status.HTTP_302_FOUND)

    return outcome
