from pathlib import PurePath
from typing import BinaryIO, Iterable, Optional, Union

from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from ..errors import BadRequest, FileCollision, FileExchangeError, InternalError
from ..models.files import StoredFile
from ..utils.logging import logger
from .naming import FilenameGenerator
from .storage import StorageDirectory

CHUNK_SIZE = 64 * 1024
MAX_NAME_ATTEMPTS = 5


class UploadService:
    """Validates incoming images and persists them under generated names."""

    def __init__(
        self,
        storage: StorageDirectory,
        generator: FilenameGenerator,
        allowed_extensions: Iterable[str],
        max_size_bytes: int,
    ) -> None:
        self.storage = storage
        self.generator = generator
        self.allowed_extensions = {ext.lower() for ext in allowed_extensions}
        self.max_size_bytes = max_size_bytes
        logger.log_step("upload_service_initialized", {
            "allowed_extensions": sorted(self.allowed_extensions),
            "max_size_bytes": max_size_bytes
        })

    async def ingest(self, item: Optional[Union[UploadFile, str]]) -> StoredFile:
        """Store the ``image`` form field, whatever shape the form gave it."""
        if not isinstance(item, UploadFile):
            logger.log_error("upload_rejected", {"reason": "missing file"})
            raise BadRequest("missing file")

        if item.size is not None and item.size > self.max_size_bytes:
            logger.log_error("upload_rejected", {
                "reason": "file too large",
                "size_bytes": item.size,
                "max_bytes": self.max_size_bytes
            })
            raise BadRequest("parse error")

        return await run_in_threadpool(self.store, item.file, item.filename)

    def extension_of(self, original_filename: Optional[str]) -> str:
        basename = PurePath(original_filename or "").name
        dot = basename.rfind(".")
        extension = basename[dot:].lower() if dot >= 0 else ""
        if extension not in self.allowed_extensions:
            logger.log_error("upload_rejected", {
                "reason": "unsupported format",
                "filename": original_filename,
                "extension": extension
            })
            raise BadRequest("unsupported format")
        return extension

    def store(self, source: BinaryIO, original_filename: Optional[str]) -> StoredFile:
        """Copy ``source`` into a new file named by the generator.

        The client filename only contributes its extension. A partially
        written file is removed before any error leaves this method.
        """
        extension = self.extension_of(original_filename)

        for _ in range(MAX_NAME_ATTEMPTS):
            name = self.generator.generate(extension)
            try:
                destination = self.storage.create(name)
            except FileCollision:
                logger.log_warning("stored_name_collision", {"filename": name})
                continue
            except FileExchangeError as exc:
                raise InternalError("write failed") from exc
            break
        else:
            raise InternalError("write failed")

        try:
            with destination:
                written = self._copy(source, destination)
        except BadRequest:
            self.storage.remove(name)
            raise
        except OSError as exc:
            self.storage.remove(name)
            logger.log_error("upload_write_failed", {"filename": name, "error": str(exc)})
            raise InternalError("write failed") from exc
        except BaseException:
            self.storage.remove(name)
            raise

        logger.log_step("file_stored", {
            "filename": name,
            "original_filename": original_filename,
            "size_bytes": written
        })
        return StoredFile(name=name, size=written)

    def _copy(self, source: BinaryIO, destination: BinaryIO) -> int:
        written = 0
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > self.max_size_bytes:
                logger.log_error("upload_rejected", {
                    "reason": "file too large",
                    "max_bytes": self.max_size_bytes
                })
                raise BadRequest("parse error")
            destination.write(chunk)
        return written
