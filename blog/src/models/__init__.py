"""Data models for the FastAPI service.

This package contains Pydantic models for request validation and
write outcomes. Read results are passed through as plain rows.
"""
