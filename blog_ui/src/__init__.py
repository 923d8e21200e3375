"""User list renderer for the example blog.

Fetches the user list from the Blog API and renders one HTML fragment
per user into a page body.
"""

__version__ = "1.0.0"
