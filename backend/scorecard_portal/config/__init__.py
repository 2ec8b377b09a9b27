"""Configuration package for the scorecard portal service."""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
