from __future__ import annotations

"""Small shared utilities."""

from .logger import Logger, new_logger

__all__ = ["Logger", "new_logger"]
