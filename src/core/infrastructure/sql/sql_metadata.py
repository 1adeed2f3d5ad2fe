"""SQL-backed implementation of ImageMetadataRepository."""

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

from aws_lambda_powertools import Logger
from sqlalchemy import Connection, Table, delete, func, insert, literal, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.infrastructure.adapters.sql_adapter import SQLAdapter
from core.infrastructure.sql.schema import image_tags, images, tags
from core.models.errors import (
    DuplicateTagError,
    ImageServiceError,
    MetadataOperationFailedError,
)
from core.models.image import (
    ImageFilters,
    ImageMetadata,
    ImagePage,
    ImagePaths,
    ImageSizes,
    ImageUpdate,
    RandomImageFilters,
    Tag,
)
from core.models.jobs import ImageObjectRef, ObjectPaths
from core.repositories.metadata_repository import ImageMetadataRepository
from core.utils.chunking import chunked
from core.utils.constants import (
    ERROR_CODE_METADATA_CREATE_FAILED,
    ERROR_CODE_METADATA_DELETE_FAILED,
    ERROR_CODE_METADATA_FETCH_FAILED,
    ERROR_CODE_METADATA_LIST_FAILED,
    ERROR_CODE_METADATA_UPDATE_FAILED,
    ERROR_CODE_TAG_OPERATION_FAILED,
    MAX_TAGS_LIMIT,
    SQL_PARAM_CHUNK_SIZE,
)
from core.utils.time import utc_now_iso

logger = Logger(UTC=True)


def _insert_ignore(conn: Connection, table: Table) -> Any:
    """INSERT that silently skips rows violating a unique constraint."""
    dialect = postgresql if conn.dialect.name == "postgresql" else sqlite
    return dialect.insert(table)


@contextmanager
def _store_errors(message: str, error_code: str, **details: Any) -> Iterator[None]:
    """Translate SQLAlchemy failures into MetadataOperationFailedError."""
    try:
        yield
    except ImageServiceError:
        raise
    except SQLAlchemyError as exc:
        logger.error(message, extra={"error_code": error_code, **details})
        raise MetadataOperationFailedError(
            message=message,
            error_code=error_code,
            details=details,
        ) from exc


class SQLMetadataStore(ImageMetadataRepository):
    """Relational metadata storage with atomic batches.

    Every multi-statement write runs inside one transaction, so concurrent
    readers never observe a half-applied batch. IN-lists that grow with the
    number of images are chunked to stay under the bound-parameter limit.
    """

    def __init__(self, adapter: SQLAdapter | None = None) -> None:
        """Initialize with SQL adapter."""
        self._db = adapter or SQLAdapter()

    # === Image CRUD ===

    def save_image(self, metadata: ImageMetadata) -> None:
        logger.debug(
            "Saving image metadata",
            extra={"image_id": metadata.id, "tags": metadata.tags},
        )

        try:
            with self._db.transaction() as conn:
                conn.execute(insert(images).values(**self._metadata_to_row(metadata)))

                for tag in dict.fromkeys(metadata.tags):
                    self._ensure_tag(conn, tag)
                    self._associate(conn, metadata.id, tag)

        except IntegrityError as exc:
            logger.error("Image metadata insert conflicted", extra={"image_id": metadata.id})
            raise MetadataOperationFailedError(
                message="Image metadata already exists",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": metadata.id},
            ) from exc

        except SQLAlchemyError as exc:
            logger.error("Image metadata batch failed", extra={"image_id": metadata.id})
            raise MetadataOperationFailedError(
                message="Unable to save image metadata at this time",
                error_code=ERROR_CODE_METADATA_CREATE_FAILED,
                details={"image_id": metadata.id},
            ) from exc

        logger.info(
            "Image metadata saved",
            extra={"image_id": metadata.id, "tag_count": len(metadata.tags)},
        )

    def get_image(self, image_id: str) -> ImageMetadata | None:
        with _store_errors(
            "Unable to retrieve image metadata",
            ERROR_CODE_METADATA_FETCH_FAILED,
            image_id=image_id,
        ):
            with self._db.connect() as conn:
                row = conn.execute(select(images).where(images.c.id == image_id)).mappings().first()
                if row is None:
                    return None
                return self._row_to_metadata(row, self._tags_for(conn, image_id))

    def update_image(self, image_id: str, updates: ImageUpdate) -> ImageMetadata | None:
        logger.debug(
            "Updating image metadata",
            extra={"image_id": image_id, "fields": sorted(updates.model_fields_set)},
        )

        with _store_errors(
            "Unable to update image metadata",
            ERROR_CODE_METADATA_UPDATE_FAILED,
            image_id=image_id,
        ):
            with self._db.transaction() as conn:
                row = conn.execute(select(images).where(images.c.id == image_id)).mappings().first()
                if row is None:
                    return None

                current_tags = self._tags_for(conn, image_id)
                final_tags = current_tags
                final_expiry = row["expiry_time"]

                if updates.tags is not None:
                    new_tags = list(dict.fromkeys(updates.tags))
                    removed = [tag for tag in current_tags if tag not in new_tags]
                    added = [tag for tag in new_tags if tag not in current_tags]

                    if removed:
                        conn.execute(
                            delete(image_tags).where(
                                image_tags.c.image_id == image_id,
                                image_tags.c.tag_id.in_(
                                    select(tags.c.id).where(tags.c.name.in_(removed))
                                ),
                            )
                        )

                    for tag in added:
                        self._ensure_tag(conn, tag)
                        self._associate(conn, image_id, tag)

                    final_tags = sorted(new_tags)

                if "expiry_time" in updates.model_fields_set:
                    final_expiry = updates.expiry_time or None
                    conn.execute(
                        update(images)
                        .where(images.c.id == image_id)
                        .values(expiry_time=final_expiry)
                    )

        logger.info("Image metadata updated", extra={"image_id": image_id})

        # Built from what was written; no second read
        return self._row_to_metadata({**row, "expiry_time": final_expiry}, final_tags)

    def delete_image(self, image_id: str) -> bool:
        logger.debug("Deleting image metadata", extra={"image_id": image_id})

        with _store_errors(
            "Unable to delete image metadata",
            ERROR_CODE_METADATA_DELETE_FAILED,
            image_id=image_id,
        ):
            with self._db.transaction() as conn:
                # image_tags rows go through ON DELETE CASCADE
                deleted = conn.execute(delete(images).where(images.c.id == image_id)).rowcount > 0

        logger.info("Image metadata deleted", extra={"image_id": image_id, "existed": deleted})
        return deleted

    # === Image Queries ===

    def get_images(self, filters: ImageFilters) -> ImagePage:
        offset = (filters.page - 1) * filters.limit

        source: Any = images
        conditions: list[Any] = []

        if filters.tag:
            source = images.join(image_tags, images.c.id == image_tags.c.image_id).join(
                tags, image_tags.c.tag_id == tags.c.id
            )
            conditions.append(tags.c.name == filters.tag)

        if filters.orientation:
            conditions.append(images.c.orientation == filters.orientation)

        count_query = (
            select(func.count(func.distinct(images.c.id))).select_from(source).where(*conditions)
        )
        page_query = (
            select(images)
            .select_from(source)
            .where(*conditions)
            .distinct()
            .order_by(images.c.upload_time.desc(), images.c.id)
            .limit(filters.limit)
            .offset(offset)
        )

        with _store_errors(
            "Unable to list images",
            ERROR_CODE_METADATA_LIST_FAILED,
            tag=filters.tag,
            orientation=filters.orientation,
        ):
            with self._db.connect() as conn:
                total = conn.execute(count_query).scalar_one()
                rows = conn.execute(page_query).mappings().all()
                page = self._enrich_with_tags(conn, rows)

        return ImagePage(images=page, total=int(total))

    def get_random_image(self, filters: RandomImageFilters | None = None) -> ImageMetadata | None:
        """Pick one matching image with a single ``ORDER BY RANDOM() LIMIT 1`` query.

        Required tags use AND semantics: the image must match as many distinct
        requested names as were requested. The full scan behind RANDOM() is
        fine for catalogs up to roughly ten thousand rows.
        """
        filters = filters or RandomImageFilters()
        required = list(dict.fromkeys(filters.tags))

        query = select(images)

        if required:
            query = (
                query.select_from(
                    images.join(image_tags, images.c.id == image_tags.c.image_id).join(
                        tags, image_tags.c.tag_id == tags.c.id
                    )
                )
                .where(tags.c.name.in_(required))
                .group_by(images.c.id)
                .having(func.count(func.distinct(tags.c.name)) == len(required))
            )

        if filters.exclude:
            excluded_ids = (
                select(image_tags.c.image_id)
                .select_from(image_tags.join(tags, image_tags.c.tag_id == tags.c.id))
                .where(tags.c.name.in_(filters.exclude))
            )
            query = query.where(images.c.id.not_in(excluded_ids))

        if filters.orientation:
            query = query.where(images.c.orientation == filters.orientation)

        query = query.order_by(func.random()).limit(1)

        with _store_errors("Unable to select a random image", ERROR_CODE_METADATA_FETCH_FAILED):
            with self._db.connect() as conn:
                row = conn.execute(query).mappings().first()
                if row is None:
                    return None
                return self._row_to_metadata(row, self._tags_for(conn, row["id"]))

    # === Tag Management ===

    def get_all_tags(self, limit: int = MAX_TAGS_LIMIT) -> list[Tag]:
        query = (
            select(tags.c.name, func.count(image_tags.c.image_id).label("count"))
            .select_from(tags.outerjoin(image_tags, tags.c.id == image_tags.c.tag_id))
            .group_by(tags.c.id, tags.c.name)
            .order_by(tags.c.name)
            .limit(limit)
        )

        with _store_errors("Unable to list tags", ERROR_CODE_TAG_OPERATION_FAILED):
            with self._db.connect() as conn:
                rows = conn.execute(query).all()

        return [Tag(name=row.name, count=int(row.count)) for row in rows]

    def create_tag(self, name: str) -> None:
        with _store_errors("Unable to create tag", ERROR_CODE_TAG_OPERATION_FAILED, tag=name):
            with self._db.transaction() as conn:
                self._ensure_tag(conn, name)

        logger.info("Tag created", extra={"tag": name})

    def tag_exists(self, name: str) -> bool:
        with _store_errors("Unable to look up tag", ERROR_CODE_TAG_OPERATION_FAILED, tag=name):
            with self._db.connect() as conn:
                return conn.execute(select(tags.c.id).where(tags.c.name == name)).first() is not None

    def rename_tag(self, old_name: str, new_name: str) -> int:
        logger.debug("Renaming tag", extra={"old_name": old_name, "new_name": new_name})

        with _store_errors(
            "Unable to rename tag",
            ERROR_CODE_TAG_OPERATION_FAILED,
            old_name=old_name,
            new_name=new_name,
        ):
            with self._db.transaction() as conn:
                if conn.execute(select(tags.c.id).where(tags.c.name == new_name)).first():
                    raise DuplicateTagError(
                        message=f"Tag '{new_name}' already exists",
                        details={"tag": new_name},
                    )

                affected = conn.execute(
                    select(func.count())
                    .select_from(image_tags.join(tags, image_tags.c.tag_id == tags.c.id))
                    .where(tags.c.name == old_name)
                ).scalar_one()

                conn.execute(update(tags).where(tags.c.name == old_name).values(name=new_name))

        logger.info(
            "Tag renamed",
            extra={"old_name": old_name, "new_name": new_name, "affected_images": affected},
        )
        return int(affected)

    def get_image_paths_by_tag(self, tag_name: str) -> list[ImageObjectRef]:
        """Storage keys only; skips tag enrichment so no IN-list is built."""
        query = (
            select(images.c.id, images.c.path_original, images.c.path_webp, images.c.path_avif)
            .select_from(
                images.join(image_tags, images.c.id == image_tags.c.image_id).join(
                    tags, image_tags.c.tag_id == tags.c.id
                )
            )
            .where(tags.c.name == tag_name)
            .distinct()
        )

        with _store_errors("Unable to list image paths", ERROR_CODE_METADATA_LIST_FAILED, tag=tag_name):
            with self._db.connect() as conn:
                rows = conn.execute(query).mappings().all()

        return [self._row_to_object_ref(row) for row in rows]

    def delete_tag_with_images(self, name: str) -> int:
        logger.debug("Deleting tag with images", extra={"tag": name})

        tagged_image_ids = (
            select(image_tags.c.image_id)
            .select_from(image_tags.join(tags, image_tags.c.tag_id == tags.c.id))
            .where(tags.c.name == name)
        )

        with _store_errors("Unable to delete tag", ERROR_CODE_METADATA_DELETE_FAILED, tag=name):
            with self._db.transaction() as conn:
                deleted = max(conn.execute(delete(images).where(images.c.id.in_(tagged_image_ids))).rowcount, 0)
                conn.execute(delete(tags).where(tags.c.name == name))

        logger.info("Tag and images deleted", extra={"tag": name, "deleted_images": deleted})
        return deleted

    def batch_update_tags(
        self,
        image_ids: list[str],
        add_tags: list[str],
        remove_tags: list[str],
    ) -> int:
        if not image_ids:
            return 0

        ids = list(dict.fromkeys(image_ids))
        add = list(dict.fromkeys(add_tags))
        remove = list(dict.fromkeys(remove_tags))

        logger.debug(
            "Batch updating tags",
            extra={"image_count": len(ids), "add_tags": add, "remove_tags": remove},
        )

        with _store_errors("Unable to update tags", ERROR_CODE_TAG_OPERATION_FAILED):
            with self._db.transaction() as conn:
                for tag in add:
                    self._ensure_tag(conn, tag)

                if remove:
                    remove_ids = select(tags.c.id).where(tags.c.name.in_(remove))
                    for chunk in chunked(ids, SQL_PARAM_CHUNK_SIZE):
                        conn.execute(
                            delete(image_tags).where(
                                image_tags.c.image_id.in_(chunk),
                                image_tags.c.tag_id.in_(remove_ids),
                            )
                        )

                for tag in add:
                    tag_id = select(tags.c.id).where(tags.c.name == tag).scalar_subquery()
                    for chunk in chunked(ids, SQL_PARAM_CHUNK_SIZE):
                        conn.execute(
                            _insert_ignore(conn, image_tags)
                            .from_select(
                                ["image_id", "tag_id"],
                                select(images.c.id, tag_id).where(images.c.id.in_(chunk)),
                            )
                            .on_conflict_do_nothing()
                        )

        logger.info("Tags batch updated", extra={"image_count": len(ids)})
        return len(image_ids)

    # === Cleanup ===

    def delete_expired_images(self) -> list[ImageObjectRef]:
        """Delete every expired image in one transaction.

        Keys are read inside the same transaction and rows are deleted by id,
        so the returned refs are exactly the rows removed. On failure nothing
        is deleted.
        """
        now = utc_now_iso()
        query = select(images.c.id, images.c.path_original, images.c.path_webp, images.c.path_avif).where(
            images.c.expiry_time.is_not(None),
            images.c.expiry_time < now,
        )

        with _store_errors("Unable to delete expired images", ERROR_CODE_METADATA_DELETE_FAILED):
            with self._db.transaction() as conn:
                refs = [self._row_to_object_ref(row) for row in conn.execute(query).mappings()]
                for chunk in chunked([ref.id for ref in refs], SQL_PARAM_CHUNK_SIZE):
                    conn.execute(delete(images).where(images.c.id.in_(chunk)))

        logger.info("Expired images deleted", extra={"deleted_images": len(refs)})
        return refs

    # === Private Helper Methods ===

    @staticmethod
    def _ensure_tag(conn: Connection, name: str) -> None:
        conn.execute(_insert_ignore(conn, tags).values(name=name).on_conflict_do_nothing())

    @staticmethod
    def _associate(conn: Connection, image_id: str, tag: str) -> None:
        conn.execute(
            _insert_ignore(conn, image_tags)
            .from_select(
                ["image_id", "tag_id"],
                select(literal(image_id), tags.c.id).where(tags.c.name == tag),
            )
            .on_conflict_do_nothing()
        )

    @staticmethod
    def _tags_for(conn: Connection, image_id: str) -> list[str]:
        query = (
            select(tags.c.name)
            .select_from(tags.join(image_tags, tags.c.id == image_tags.c.tag_id))
            .where(image_tags.c.image_id == image_id)
            .order_by(tags.c.name)
        )
        return list(conn.execute(query).scalars())

    def _enrich_with_tags(
        self,
        conn: Connection,
        rows: Sequence[Mapping[str, Any]],
    ) -> list[ImageMetadata]:
        if not rows:
            return []

        tag_map: dict[str, list[str]] = {}

        for chunk in chunked([row["id"] for row in rows], SQL_PARAM_CHUNK_SIZE):
            query = (
                select(image_tags.c.image_id, tags.c.name)
                .select_from(image_tags.join(tags, image_tags.c.tag_id == tags.c.id))
                .where(image_tags.c.image_id.in_(chunk))
                .order_by(tags.c.name)
            )
            for image_id, name in conn.execute(query):
                tag_map.setdefault(image_id, []).append(name)

        return [self._row_to_metadata(row, tag_map.get(row["id"], [])) for row in rows]

    @staticmethod
    def _metadata_to_row(metadata: ImageMetadata) -> dict[str, Any]:
        return {
            "id": metadata.id,
            "original_name": metadata.original_name,
            "upload_time": metadata.upload_time,
            "expiry_time": metadata.expiry_time or None,
            "orientation": metadata.orientation,
            "format": metadata.format,
            "width": metadata.width,
            "height": metadata.height,
            "path_original": metadata.paths.original,
            "path_webp": metadata.paths.webp or None,
            "path_avif": metadata.paths.avif or None,
            "size_original": metadata.sizes.original,
            "size_webp": metadata.sizes.webp,
            "size_avif": metadata.sizes.avif,
        }

    @staticmethod
    def _row_to_metadata(row: Mapping[str, Any], tag_names: list[str]) -> ImageMetadata:
        return ImageMetadata(
            id=row["id"],
            original_name=row["original_name"],
            upload_time=row["upload_time"],
            expiry_time=row["expiry_time"] or None,
            orientation=row["orientation"],
            tags=tag_names,
            format=row["format"],
            width=row["width"],
            height=row["height"],
            paths=ImagePaths(
                original=row["path_original"],
                webp=row["path_webp"] or "",
                avif=row["path_avif"] or "",
            ),
            sizes=ImageSizes(
                original=row["size_original"] or 0,
                webp=row["size_webp"] or 0,
                avif=row["size_avif"] or 0,
            ),
        )

    @staticmethod
    def _row_to_object_ref(row: Mapping[str, Any]) -> ImageObjectRef:
        return ImageObjectRef(
            id=row["id"],
            paths=ObjectPaths(
                original=row["path_original"],
                webp=row["path_webp"] or None,
                avif=row["path_avif"] or None,
            ),
        )
