"""
Render the blog's user list as HTML.

The renderer issues one GET against the users endpoint, then appends a
``<div>last, first</div>`` fragment per user to the end of the page body.
Names are HTML-escaped before interpolation.
"""

import html
import re
from typing import Any, Dict, List, Optional

import requests
import structlog

logger = structlog.get_logger(__name__)

EMPTY_PAGE = "<!DOCTYPE html>\n<html>\n<head><title>Users</title></head>\n<body>\n</body>\n</html>\n"

_BODY_CLOSE = re.compile(r"</body\s*>", re.IGNORECASE)


class RendererError(Exception):
    """Raised when the user list cannot be fetched or decoded."""


def render_user(user: Dict[str, Any]) -> str:
    """Build the HTML fragment for one user."""
    last_name = html.escape(str(user.get("last_name", "")))
    first_name = html.escape(str(user.get("first_name", "")))
    return f"<div>{last_name}, {first_name}</div>"


def insert_adjacent_html(document: str, fragment: str) -> str:
    """
    Insert a fragment as the last child of the document body.

    Args:
        document: HTML page
        fragment: HTML to insert

    Returns:
        The page with the fragment placed just before ``</body>``, or
        appended at the end when the page has no closing body tag
    """
    matches = list(_BODY_CLOSE.finditer(document))
    if not matches:
        return document + fragment + "\n"

    position = matches[-1].start()
    return document[:position] + fragment + "\n" + document[position:]


class UserRenderer:
    """Fetches users over HTTP and renders them into a page."""

    def __init__(
        self,
        users_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the renderer.

        Args:
            users_url: Endpoint returning a JSON array of users
            timeout: HTTP timeout in seconds
            session: Optional requests session (a new one is created if omitted)
        """
        self.users_url = users_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_users(self) -> List[Dict[str, Any]]:
        """
        Fetch the user list.

        Returns:
            Decoded JSON array

        Raises:
            RendererError: On transport failure, non-2xx status or a body
                that is not a JSON array
        """
        try:
            response = self.session.get(
                self.users_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"}
            )
            response.raise_for_status()
            users = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("users_fetch_failed", url=self.users_url, error=str(e))
            raise RendererError(f"Could not fetch users from {self.users_url}: {e}") from e
        except ValueError as e:
            logger.error("users_decode_failed", url=self.users_url, error=str(e))
            raise RendererError(f"Response from {self.users_url} is not valid JSON") from e

        if not isinstance(users, list):
            raise RendererError(f"Expected a JSON array from {self.users_url}")

        logger.info("users_fetched", url=self.users_url, count=len(users))
        return users

    def show_users(self, document: str = EMPTY_PAGE) -> str:
        """
        Fetch users and append one fragment per user to the page body.

        Args:
            document: HTML page to render into

        Returns:
            The rendered page
        """
        for user in self.get_users():
            document = insert_adjacent_html(document, render_user(user))
        return document
