"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- auth: Bearer token (JWT) validation
- snowflake: Video metadata persistence
- storage: Asset storage (local disk, inline data URLs, S3)

These wrappers translate between external formats and our domain models.
"""
