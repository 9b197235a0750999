"""Utility helpers for initgraph."""

from .annotations import is_assignable, is_failure_type, is_type_key, type_name
from .logger import get_logger, setup_logger

__all__ = ["get_logger", "is_assignable", "is_failure_type", "is_type_key", "setup_logger", "type_name"]
