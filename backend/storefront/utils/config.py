"""
Environment configuration loader with validation for the storefront backend.
"""

import os
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator
from dotenv import load_dotenv

TRUTHY = ("true", "1", "yes", "on")


class StorefrontConfig(BaseModel):
    """Configuration model for the storefront backend with validation."""

    # Document store
    database_url: str = Field(
        default="sqlite:///storefront.db", description="Database connection URL"
    )

    # Valkey cache
    valkey_host: str = Field(default="localhost", description="Valkey server host")
    valkey_port: int = Field(
        default=6379, ge=1, le=65535, description="Valkey server port"
    )
    valkey_password: Optional[str] = Field(
        default=None, description="Valkey server password"
    )
    valkey_database: int = Field(
        default=0, ge=0, le=15, description="Valkey database number"
    )
    valkey_max_connections: int = Field(
        default=10, ge=1, description="Maximum Valkey connections"
    )
    valkey_socket_timeout: float = Field(
        default=5.0, gt=0, description="Valkey socket timeout in seconds"
    )

    # Cache behaviour
    cache_backend: str = Field(
        default="valkey", description="Cache backend (valkey or memory)"
    )
    cache_ttl: int = Field(
        default=14400, ge=1, description="TTL of read-through entries in seconds"
    )
    product_list_ttl: int = Field(
        default=30, ge=1, description="TTL of filtered product listings in seconds"
    )
    cache_ttl_jitter: float = Field(
        default=0.1, ge=0.0, le=1.0, description="TTL jitter as a fraction of the TTL"
    )
    purge_product_listings: bool = Field(
        default=False,
        description="Pattern-delete filtered product listings on product mutations",
    )

    # Catalogue
    products_per_page: int = Field(default=8, ge=1, description="Products per page")
    latest_products_limit: int = Field(
        default=5, ge=1, description="Number of products in the latest listing"
    )

    # Image host
    image_host: str = Field(default="local", description="Image host (local or cloudinary)")
    image_upload_dir: str = Field(
        default="uploads", description="Directory used by the local image host"
    )
    cloudinary_cloud_name: Optional[str] = Field(default=None)
    cloudinary_api_key: Optional[str] = Field(default=None)
    cloudinary_api_secret: Optional[str] = Field(default=None)

    # Server
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        if v.lower() not in ("valkey", "memory"):
            raise ValueError("Cache backend must be 'valkey' or 'memory'")
        return v.lower()

    @field_validator("image_host")
    @classmethod
    def validate_image_host(cls, v: str) -> str:
        if v.lower() not in ("local", "cloudinary"):
            raise ValueError("Image host must be 'local' or 'cloudinary'")
        return v.lower()

    @model_validator(mode="after")
    def validate_cloudinary_credentials(self) -> "StorefrontConfig":
        """Cloudinary uploads need every credential."""
        if self.image_host == "cloudinary" and not all(
            (self.cloudinary_cloud_name, self.cloudinary_api_key, self.cloudinary_api_secret)
        ):
            raise ValueError(
                "CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET "
                "are required when IMAGE_HOST=cloudinary"
            )
        return self


def load_config(env_file: Optional[str] = None) -> StorefrontConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Optional path to .env file. If None, looks for .env in current directory.

    Returns:
        StorefrontConfig: Validated configuration object

    Raises:
        ValueError: If configuration is missing or invalid
    """
    if env_file is None:
        env_file = ".env"

    if os.path.exists(env_file):
        load_dotenv(env_file)

    try:
        config_data: Dict[str, Any] = {
            "database_url": os.getenv("DATABASE_URL", "sqlite:///storefront.db"),
            "valkey_host": os.getenv("VALKEY_HOST", "localhost"),
            "valkey_port": int(os.getenv("VALKEY_PORT", "6379")),
            "valkey_password": os.getenv("VALKEY_PASSWORD") or None,
            "valkey_database": int(os.getenv("VALKEY_DATABASE", "0")),
            "valkey_max_connections": int(os.getenv("VALKEY_MAX_CONNECTIONS", "10")),
            "valkey_socket_timeout": float(os.getenv("VALKEY_SOCKET_TIMEOUT", "5")),
            "cache_backend": os.getenv("CACHE_BACKEND", "valkey"),
            "cache_ttl": int(os.getenv("CACHE_TTL", "14400")),
            "product_list_ttl": int(os.getenv("PRODUCT_LIST_TTL", "30")),
            "cache_ttl_jitter": float(os.getenv("CACHE_TTL_JITTER", "0.1")),
            "purge_product_listings": os.getenv(
                "CACHE_PURGE_PRODUCT_LISTINGS", "false"
            ).lower()
            in TRUTHY,
            "products_per_page": int(os.getenv("PRODUCT_PER_PAGE", "8")),
            "latest_products_limit": int(os.getenv("LATEST_PRODUCTS_LIMIT", "5")),
            "image_host": os.getenv("IMAGE_HOST", "local"),
            "image_upload_dir": os.getenv("IMAGE_UPLOAD_DIR", "uploads"),
            "cloudinary_cloud_name": os.getenv("CLOUDINARY_CLOUD_NAME") or None,
            "cloudinary_api_key": os.getenv("CLOUDINARY_API_KEY") or None,
            "cloudinary_api_secret": os.getenv("CLOUDINARY_API_SECRET") or None,
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "debug": os.getenv("STOREFRONT_DEBUG", "false").lower() in TRUTHY,
            "host": os.getenv("STOREFRONT_HOST", "0.0.0.0"),
            "port": int(os.getenv("STOREFRONT_PORT", "8000")),
        }
        return StorefrontConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e
