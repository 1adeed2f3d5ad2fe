"""Process-wide dependency container.

Lambda reuses the process between invocations, so the SQL engine, boto3
clients and the thread pool are created once and shared. Each component is
built on first use; a function that never touches the queue does not need
the queue URL configured.
"""

from concurrent.futures import ThreadPoolExecutor
from functools import cached_property

from aws_lambda_powertools import Logger

from core.config import ServiceSettings
from core.infrastructure.adapters.sql_adapter import SQLAdapter
from core.infrastructure.aws.dynamodb_cache import DynamoDBCache
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.infrastructure.aws.sqs_deletion_queue import SQSDeletionQueue
from core.infrastructure.sql.sql_metadata import SQLMetadataStore
from core.repositories.metadata_repository import ImageMetadataRepository
from core.repositories.queue_repository import DeletionQueueRepository
from core.repositories.storage_repository import ImageStorageRepository
from core.services.cache import CacheService
from core.services.compression import CompressionService
from core.services.deletion_pipeline import DeletionPipeline, DeletionWorker

logger = Logger(UTC=True)

MAX_WORKERS = 4


class Container:
    """Lazily built services shared by every handler in the process.

    Tests pass their own collaborators through the constructor; anything not
    passed is built from the environment when first accessed.
    """

    def __init__(
        self,
        settings: ServiceSettings | None = None,
        *,
        sql: SQLAdapter | None = None,
        metadata: ImageMetadataRepository | None = None,
        storage: ImageStorageRepository | None = None,
        cache: CacheService | None = None,
        queue: DeletionQueueRepository | None = None,
        compression: CompressionService | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.settings = settings or ServiceSettings.from_env()
        overrides = {
            "sql": sql,
            "metadata": metadata,
            "storage": storage,
            "cache": cache,
            "queue": queue,
            "compression": compression,
            "executor": executor,
        }
        # cached_property reads the instance dict first
        self.__dict__.update({name: value for name, value in overrides.items() if value is not None})

    @cached_property
    def sql(self) -> SQLAdapter:
        adapter = SQLAdapter(self.settings.database_url)
        adapter.create_schema()
        logger.info("Metadata store ready", extra={"dialect": adapter.engine.dialect.name})
        return adapter

    @cached_property
    def metadata(self) -> ImageMetadataRepository:
        return SQLMetadataStore(self.sql)

    @cached_property
    def storage(self) -> ImageStorageRepository:
        return S3ImageStorage()

    @cached_property
    def cache(self) -> CacheService:
        return CacheService(DynamoDBCache())

    @cached_property
    def queue(self) -> DeletionQueueRepository:
        return SQSDeletionQueue()

    @cached_property
    def compression(self) -> CompressionService:
        return CompressionService()

    @cached_property
    def executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="image-hosting")

    @cached_property
    def pipeline(self) -> DeletionPipeline:
        return DeletionPipeline(self.metadata, self.cache, self.queue)

    @cached_property
    def worker(self) -> DeletionWorker:
        return DeletionWorker(self.storage)


_container: Container | None = None


def get_container() -> Container:
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container | None) -> None:
    """Replace the process container; ``None`` resets it."""
    global _container
    _container = container
