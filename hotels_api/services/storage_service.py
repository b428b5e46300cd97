"""
Local picture storage service.
Stores uploaded pictures under the public storage root and removes them again.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from hotels_api.config import settings
from hotels_api.exceptions import StorageError

logger = logging.getLogger(__name__)

# Attempts at drawing a fresh random name before giving up
MAX_NAME_ATTEMPTS = 5


@dataclass
class StoredPicture:
    """Reference to a stored file: path relative to the storage root and size in bytes."""
    path: str
    size: int


class PictureStorage:
    """
    Filesystem storage rooted at a public-readable directory.

    Files are written to <directory>/<random hex>.<ext> in exclusive-create
    mode, so an existing file is never reused or overwritten.
    """

    def __init__(self, root, directory: str = "hotels"):
        self.root = Path(root)
        self.directory = directory.strip("/")

    def absolute_path(self, path: str) -> Path:
        resolved = (self.root / path).resolve()
        if not resolved.is_relative_to(self.root.resolve()):
            raise StorageError(f"Path '{path}' is outside the storage root")
        return resolved

    def exists(self, path: str) -> bool:
        return self.absolute_path(path).is_file()

    def ensure_directory(self) -> Path:
        target = self.root / self.directory
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create pictures directory '{target}': {str(e)}")
        return target

    def save(self, data: bytes, extension: str) -> StoredPicture:
        """
        Write picture bytes under a new random name.

        Raises:
            StorageError: If the file cannot be written
        """
        target_dir = self.ensure_directory()

        for _ in range(MAX_NAME_ATTEMPTS):
            name = f"{uuid.uuid4().hex}.{extension}"
            try:
                with open(target_dir / name, "xb") as f:
                    f.write(data)
            except FileExistsError:
                logger.warning(f"Picture name collision on {name}, drawing a new name")
                continue
            except OSError as e:
                logger.error(f"Failed to write picture {name}: {str(e)}")
                raise StorageError(f"Failed to store picture: {str(e)}")

            path = f"{self.directory}/{name}"
            logger.info(f"Stored picture {path} ({len(data):,} bytes)")
            return StoredPicture(path=path, size=len(data))

        raise StorageError(f"Could not find a free picture name after {MAX_NAME_ATTEMPTS} attempts")

    def delete(self, path: str) -> bool:
        """
        Delete a stored picture.

        Returns:
            bool: True if a file was removed, False if it was already absent

        Raises:
            StorageError: If the file exists but cannot be removed
        """
        try:
            self.absolute_path(path).unlink()
        except FileNotFoundError:
            logger.info(f"Picture {path} already absent from storage")
            return False
        except OSError as e:
            logger.error(f"Failed to delete picture {path}: {str(e)}")
            raise StorageError(f"Failed to delete picture '{path}': {str(e)}")

        logger.info(f"Deleted picture {path}")
        return True

    def is_writable(self) -> bool:
        try:
            target = self.ensure_directory()
            probe = target / f".probe-{uuid.uuid4().hex}"
            probe.touch()
            probe.unlink()
            return True
        except (StorageError, OSError) as e:
            logger.warning(f"Storage root {self.root} is not writable: {str(e)}")
            return False


async def store_picture(storage: PictureStorage, data: bytes, extension: str) -> StoredPicture:
    """Store picture bytes without blocking the event loop."""
    return await asyncio.to_thread(storage.save, data, extension)


async def remove_picture(storage: PictureStorage, path: str) -> bool:
    """Remove a stored picture without blocking the event loop."""
    return await asyncio.to_thread(storage.delete, path)


def get_picture_storage() -> PictureStorage:
    """FastAPI dependency returning the configured picture storage."""
    return PictureStorage(settings.STORAGE_ROOT, settings.PICTURES_DIRECTORY)
