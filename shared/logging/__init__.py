"""Structured logging module using structlog."""

from .structured_logger import (
    configure_logging,
    bind_context,
    unbind_context,
)

__all__ = [
    "configure_logging",
    "bind_context",
    "unbind_context",
]
