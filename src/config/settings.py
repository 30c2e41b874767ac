"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

The settings object is frozen: it is built once per process and passed
to whatever needs it. Mock modes enable local development without
external services.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MB = 1024 * 1024


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Tubely Media API"
    api_version: str = Field(
        default="v1",
        description="API revision reported by the health endpoint"
    )
    port: int = Field(
        default=8091,
        description="Port the API listens on"
    )
    base_url: str = Field(
        default="http://localhost:8091",
        description="Public base URL. Local asset locators are built from it."
    )

    # Authentication
    jwt_secret: str = Field(
        default="",
        description="HMAC secret used to verify bearer tokens. Required."
    )
    jwt_issuer: str = Field(
        default="tubely-access",
        description="Expected 'iss' claim of bearer tokens"
    )

    # Asset Storage
    assets_root: str = Field(
        default="./assets",
        description="Directory for locally stored thumbnails, served under /assets"
    )
    thumbnail_storage: Literal["local", "inline"] = Field(
        default="local",
        description="Where thumbnails go: files under assets_root, or inline data URLs on the record"
    )
    staging_dir: Optional[str] = Field(
        default=None,
        description="Directory for temporary video staging files. System temp dir if unset."
    )
    max_thumbnail_size_mb: int = Field(
        default=10,
        description="Maximum thumbnail size in MB. Thumbnails are buffered in memory."
    )
    max_video_size_mb: int = Field(
        default=1024,
        description="Maximum video size in MB. Videos are staged on disk."
    )
    upload_chunk_size_kb: int = Field(
        default=1024,
        description="Read size while staging uploads"
    )

    # S3 Object Storage
    s3_bucket: str = Field(
        default="tubely-videos",
        description="Bucket for uploaded videos"
    )
    s3_region: str = Field(
        default="us-east-1",
        description="Bucket region. Part of the public object URL."
    )
    s3_access_key_id: str = Field(
        default="",
        description="Access key ID. Leave empty to use the default AWS credential chain."
    )
    s3_secret_access_key: str = Field(
        default="",
        description="Secret access key"
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Endpoint for S3-compatible stores (R2, MinIO). AWS if unset."
    )
    s3_public_base_url: Optional[str] = Field(
        default=None,
        description="Base URL objects are served from, when not the canonical AWS URL"
    )
    s3_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real S3. Enables local dev without object storage."
    )

    # Snowflake Configuration
    snowflake_account: str = Field(
        default="",
        description="Snowflake account identifier"
    )
    snowflake_user: str = Field(
        default="",
        description="Snowflake service account username"
    )
    snowflake_password: str = Field(
        default="",
        description="Snowflake service account password"
    )
    snowflake_private_key_path: Optional[str] = Field(
        default=None,
        description="Path to RSA private key file for key-pair authentication"
    )
    snowflake_database: str = Field(
        default="TUBELY",
        description="Snowflake database name"
    )
    snowflake_schema: str = Field(
        default="MEDIA",
        description="Snowflake schema name"
    )
    snowflake_warehouse: str = Field(
        default="COMPUTE_WH",
        description="Snowflake warehouse for query execution"
    )
    snowflake_role: Optional[str] = Field(
        default=None,
        description="Snowflake role to use (optional)"
    )
    snowflake_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real Snowflake connection. Enables local dev without DB."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def assets_path(self) -> Path:
        return Path(self.assets_root)

    @property
    def max_thumbnail_size_bytes(self) -> int:
        return self.max_thumbnail_size_mb * MB

    @property
    def max_video_size_bytes(self) -> int:
        return self.max_video_size_mb * MB

    @property
    def upload_chunk_size_bytes(self) -> int:
        return self.upload_chunk_size_kb * 1024

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        # Tokens can't be verified without a secret, mock mode or not
        if not self.jwt_secret:
            missing.append("JWT_SECRET")

        # Snowflake only required if not in mock mode
        if not self.snowflake_mock_mode:
            if not self.snowflake_account:
                missing.append("SNOWFLAKE_ACCOUNT")
            if not self.snowflake_user:
                missing.append("SNOWFLAKE_USER")
            if not self.snowflake_password and not self.snowflake_private_key_path:
                missing.append("SNOWFLAKE_PASSWORD or SNOWFLAKE_PRIVATE_KEY_PATH")

        # S3 bucket only required if not in mock mode; credentials may come
        # from the default AWS chain
        if not self.s3_mock_mode and not self.s3_bucket:
            missing.append("S3_BUCKET")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    This is safe because settings don't change during runtime.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
