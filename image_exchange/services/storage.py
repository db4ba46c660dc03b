import os
from pathlib import Path
from typing import BinaryIO, List

from ..errors import FileCollision, InvalidFilename, NotFound, StorageUnavailable
from ..models.files import StoredFile
from ..utils.logging import logger


class StorageDirectory:
    """Flat directory holding every stored file.

    Names handed to this class are single path components. Anything that
    could address a location outside the root is rejected before touching
    the filesystem.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.log_step("storage_directory_ready", {"storage_root": str(self.root)})

    def list(self) -> List[StoredFile]:
        """Return the regular files directly inside the root, sorted by name."""
        try:
            entries = []
            with os.scandir(self.root) as it:
                for entry in it:
                    if entry.is_file(follow_symlinks=False):
                        entries.append(StoredFile(name=entry.name, size=entry.stat(follow_symlinks=False).st_size))
        except OSError as exc:
            logger.log_error("storage_list_failed", {"storage_root": str(self.root), "error": str(exc)})
            raise StorageUnavailable("unable to list files") from exc

        entries.sort(key=lambda item: item.name)
        return entries

    def path_for(self, name: str) -> Path:
        """Join ``name`` onto the root, refusing anything but a plain file name."""
        if not name or name in (".", "..") or any(sep in name for sep in ("/", "\\", "\x00")):
            raise InvalidFilename()

        path = self.root / name
        if path.resolve().parent != self.root:
            raise InvalidFilename()
        return path

    def resolve(self, name: str) -> Path:
        path = self.path_for(name)
        if not path.is_file():
            raise NotFound()
        return path

    def create(self, name: str) -> BinaryIO:
        """Open a new file for exclusive writing."""
        path = self.path_for(name)
        try:
            return path.open("xb")
        except FileExistsError as exc:
            raise FileCollision() from exc
        except OSError as exc:
            logger.log_error("storage_create_failed", {"filename": name, "error": str(exc)})
            raise StorageUnavailable("write failed") from exc

    def remove(self, name: str) -> None:
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.log_error("storage_remove_failed", {"filename": name, "error": str(exc)})

    def is_available(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.R_OK | os.W_OK)
