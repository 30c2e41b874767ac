"""
Application configuration.

Settings come from environment variables (or .env) and are frozen once
loaded. Mock modes cover Snowflake and S3 for local development.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
