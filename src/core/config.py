"""Runtime configuration read from the Lambda environment."""

import os

from pydantic import BaseModel, Field

from core.models.compression import CompressionOptions
from core.utils.constants import (
    DEFAULT_DATABASE_URL,
    ENV_COMPRESSION_GENERATE_AVIF,
    ENV_COMPRESSION_GENERATE_WEBP,
    ENV_COMPRESSION_MAX_HEIGHT,
    ENV_COMPRESSION_MAX_WIDTH,
    ENV_COMPRESSION_PRESERVE_ANIMATION,
    ENV_COMPRESSION_QUALITY,
    ENV_DEFAULT_EXPIRY_MINUTES,
    ENV_IMAGE_DATABASE_URL,
    ENV_IMAGE_PUBLIC_BASE_URL,
)


class ServiceSettings(BaseModel):
    """Settings shared by every handler in the process.

    Storage, cache and queue names are read by their adapters directly;
    this model only carries what the application services need.
    """

    database_url: str = DEFAULT_DATABASE_URL
    public_base_url: str = ""
    default_expiry_minutes: int = Field(0, ge=0)
    compression: CompressionOptions = Field(default_factory=CompressionOptions)

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        compression = CompressionOptions(
            quality=os.getenv(ENV_COMPRESSION_QUALITY),
            max_width=os.getenv(ENV_COMPRESSION_MAX_WIDTH),
            max_height=os.getenv(ENV_COMPRESSION_MAX_HEIGHT),
            preserve_animation=os.getenv(ENV_COMPRESSION_PRESERVE_ANIMATION),
            generate_webp=os.getenv(ENV_COMPRESSION_GENERATE_WEBP),
            generate_avif=os.getenv(ENV_COMPRESSION_GENERATE_AVIF),
        )

        expiry = os.getenv(ENV_DEFAULT_EXPIRY_MINUTES) or "0"

        return cls(
            database_url=os.getenv(ENV_IMAGE_DATABASE_URL) or DEFAULT_DATABASE_URL,
            public_base_url=os.getenv(ENV_IMAGE_PUBLIC_BASE_URL, ""),
            default_expiry_minutes=int(expiry) if expiry.isdigit() else 0,
            compression=compression,
        )

    def compression_options(self, overrides: dict | None = None) -> CompressionOptions:
        """Merge per-request overrides on top of the configured defaults."""
        if not overrides:
            return self.compression

        merged = self.compression.model_dump()
        merged.update(
            CompressionOptions.model_validate(
                {key: value for key, value in overrides.items() if value is not None}
            ).model_dump(exclude_unset=True)
        )
        return CompressionOptions(**merged)
