"""Core package exposing shared configuration helpers."""

from .config import get_settings

__all__ = ["get_settings"]
