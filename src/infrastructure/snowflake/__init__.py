"""
Snowflake integration for video metadata.

Connection management (real and in-memory mock) and the video repository.
"""
