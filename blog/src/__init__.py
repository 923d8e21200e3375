"""FastAPI service for the example blog.

This package provides the REST endpoints that list users and posts,
fetch a single post and create new posts.
"""

__version__ = "1.0.0"
