"""Relational schema for images, tags and their associations."""

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)

metadata_schema = MetaData()

images = Table(
    "images",
    metadata_schema,
    Column("id", String(64), primary_key=True),
    Column("original_name", String(255), nullable=False),
    Column("upload_time", String(40), nullable=False),
    Column("expiry_time", String(40), nullable=True),
    Column("orientation", String(16), nullable=False),
    Column("format", String(16), nullable=False),
    Column("width", Integer, nullable=False),
    Column("height", Integer, nullable=False),
    Column("path_original", String(512), nullable=False),
    Column("path_webp", String(512), nullable=True),
    Column("path_avif", String(512), nullable=True),
    Column("size_original", Integer, nullable=False, default=0),
    Column("size_webp", Integer, nullable=False, default=0),
    Column("size_avif", Integer, nullable=False, default=0),
    Index("idx_images_upload_time", "upload_time"),
    Index("idx_images_orientation", "orientation"),
    Index("idx_images_expiry_time", "expiry_time"),
)

tags = Table(
    "tags",
    metadata_schema,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(64), nullable=False, unique=True),
)

image_tags = Table(
    "image_tags",
    metadata_schema,
    Column(
        "image_id",
        String(64),
        ForeignKey("images.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Index("idx_image_tags_tag_id", "tag_id"),
)
