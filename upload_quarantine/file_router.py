import logging

from upload_quarantine.errors import MoveError, StorageError
from upload_quarantine.models import FileMoveOperation
from upload_quarantine.storage import ObjectStore

logger = logging.getLogger("quarantine.router")


class FileRouter:
    def __init__(self, store: ObjectStore):
        self.store = store

    def move(self, operation: FileMoveOperation) -> None:
        """
        Copy the object to its destination, then delete the original.

        Not transactional: a failure between the two steps leaves a duplicate,
        never a loss.
        """
        name = operation.object_name
        try:
            self.store.copy_object(operation.source_bucket, name, operation.destination_bucket)
        except StorageError as exc:
            raise MoveError(str(exc), stage="copy", missing_source=exc.missing) from exc

        try:
            self.store.delete_object(operation.source_bucket, name)
        except StorageError as exc:
            logger.warning(
                "Object %s copied to %s but not removed from %s: %s",
                name, operation.destination_bucket, operation.source_bucket, exc,
            )
            raise MoveError(str(exc), stage="delete") from exc

        logger.info("Object %s moved from %s to %s", name, operation.source_bucket, operation.destination_bucket)
