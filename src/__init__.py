"""
Tubely Media API - upload ingestion for video thumbnails and files.

This package contains the complete application:
- core: Framework-agnostic upload pipeline
- infrastructure: Auth, Snowflake metadata store, asset storage backends
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
