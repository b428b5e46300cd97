"""
Picture gallery service.

Keeps a hotel's ordered picture collection in line with what the client
asks for: pictures to keep (with their new positions), pictures to remove
and new files to append. A picture row is only deleted once its file is
gone, and the deletion is committed right away.

Position policy:
    - on creation, pictures take their 0-based submission index;
    - on update, new files are appended after the highest surviving
      position, in submission order;
    - after every update the collection is renumbered to 0..N-1 sorted by
      (position, id), so positions are always unique and contiguous.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotels_api.exceptions import PictureRemovalError, StorageError
from hotels_api.models import Hotel, HotelPicture
from hotels_api.schemas import PicturePosition
from hotels_api.services.storage_service import PictureStorage, StoredPicture, store_picture, remove_picture
from hotels_api.utils.image_validator import PictureCandidate

logger = logging.getLogger(__name__)


@dataclass
class PictureChanges:
    """Desired end state of a gallery, as submitted with an update."""
    keep: List[PicturePosition] = field(default_factory=list)
    remove: List[int] = field(default_factory=list)
    new_files: List[PictureCandidate] = field(default_factory=list)


@dataclass
class ReconcileResult:
    pictures: List[HotelPicture]
    errors: List[PictureRemovalError] = field(default_factory=list)
    stored: List[StoredPicture] = field(default_factory=list)


def renumber_positions(pictures: Iterable[HotelPicture]) -> List[HotelPicture]:
    """
    Rewrite positions to 0..N-1 following the current (position, id) order.

    Returns:
        List[HotelPicture]: The pictures in their new order
    """
    ordered = sorted(pictures, key=lambda p: (p.position, p.id))
    for position, picture in enumerate(ordered):
        if picture.position != position:
            picture.position = position
    return ordered


async def load_pictures(db: AsyncSession, hotel_id: int) -> List[HotelPicture]:
    """Pictures of a hotel, ascending by position."""
    result = await db.execute(
        select(HotelPicture)
        .where(HotelPicture.hotel_id == hotel_id)
        .order_by(HotelPicture.position.asc(), HotelPicture.id.asc())
    )
    return list(result.scalars().all())


async def _store_candidates(
    storage: PictureStorage,
    candidates: Sequence[PictureCandidate],
) -> List[StoredPicture]:
    """
    Write every candidate to storage, in order.
    If one write fails, the files already written by this call are removed.
    """
    stored = []
    try:
        for candidate in candidates:
            stored.append(await store_picture(storage, candidate.data, candidate.extension))
    except StorageError:
        await discard_files(storage, [s.path for s in stored])
        raise
    return stored


async def discard_files(storage: PictureStorage, paths: Iterable[str]) -> None:
    """
    Best-effort removal of files that no row references anymore.
    Used to undo writes when the surrounding operation fails.
    """
    for path in paths:
        try:
            await remove_picture(storage, path)
        except StorageError as e:
            logger.error(f"Could not clean up orphaned picture {path}: {e.message}")


async def attach_pictures(
    db: AsyncSession,
    storage: PictureStorage,
    hotel_id: int,
    candidates: Sequence[PictureCandidate],
    first_position: int = 0,
) -> List[StoredPicture]:
    """
    Store new files and add their rows to the session.

    Positions are first_position + submission index. Rows are only added
    to the session; the caller commits, and removes the returned files
    if the commit fails.

    Returns:
        List[StoredPicture]: The written files, in submission order
    """
    stored = await _store_candidates(storage, candidates)

    for offset, ref in enumerate(stored):
        db.add(HotelPicture(
            hotel_id=hotel_id,
            filepath=ref.path,
            filesize=ref.size,
            position=first_position + offset,
        ))
        logger.info(f"Added picture {ref.path} to hotel {hotel_id} at position {first_position + offset}")

    return stored


async def reconcile(
    db: AsyncSession,
    storage: PictureStorage,
    hotel_id: int,
    changes: PictureChanges,
) -> ReconcileResult:
    """
    Apply removals, then repositions, then insertions to a hotel's gallery.

    Ids in keep or remove that do not belong to the hotel are ignored. A
    picture whose file cannot be deleted is kept and reported in
    ReconcileResult.errors; the other removals go on.

    Removals are committed before any new file is written, so a later
    failure never brings back a row whose file is already gone. The rest
    is only flushed: the caller commits, and removes ReconcileResult.stored
    if that commit fails.

    Args:
        db: Database session
        storage: Picture storage
        hotel_id: Owner of the gallery
        changes: Pictures to keep/reposition, remove and add

    Returns:
        ReconcileResult: The gallery ordered by position, the removal errors
        and the files written for new pictures

    Raises:
        StorageError: If a new file cannot be written
    """
    current = {picture.id: picture for picture in await load_pictures(db, hotel_id)}
    errors: List[PictureRemovalError] = []

    # 1. Removals
    removed = 0
    for picture_id in changes.remove:
        picture = current.get(picture_id)
        if picture is None:
            logger.debug(f"Ignoring removal of unknown picture {picture_id} for hotel {hotel_id}")
            continue
        try:
            await remove_picture(storage, picture.filepath)
        except StorageError as e:
            logger.warning(f"Keeping picture {picture_id} of hotel {hotel_id}: {e.message}")
            errors.append(PictureRemovalError(picture_id, e.message, picture.filepath))
            continue
        await db.delete(picture)
        del current[picture_id]
        removed += 1
        logger.info(f"Removed picture {picture_id} from hotel {hotel_id}")

    if removed:
        await db.commit()

    # 2. Repositions (last write wins)
    for entry in changes.keep:
        picture = current.get(entry.id)
        if picture is None:
            logger.debug(f"Ignoring position of unknown picture {entry.id} for hotel {hotel_id}")
            continue
        picture.position = entry.position

    # 3. Insertions after the highest surviving position
    next_position = max((p.position for p in current.values()), default=-1) + 1
    stored = await attach_pictures(db, storage, hotel_id, changes.new_files, first_position=next_position)

    try:
        await db.flush()
        # 4. Renumbering to 0..N-1
        pictures = renumber_positions(await load_pictures(db, hotel_id))
        await db.flush()
    except Exception:
        await discard_files(storage, [ref.path for ref in stored])
        raise

    if errors:
        logger.warning(
            f"Gallery of hotel {hotel_id} updated with {len(errors)} removal failure(s)"
        )

    return ReconcileResult(pictures=pictures, errors=errors, stored=stored)


async def discard_pictures(db: AsyncSession, storage: PictureStorage, hotel: Hotel) -> int:
    """
    Remove all pictures of a hotel for good, one at a time: file first
    (already absent is fine), then row.

    Each row deletion is committed as soon as its file is gone. If a file
    cannot be deleted, the pictures not reached yet keep their rows and files.

    Returns:
        int: Number of pictures removed

    Raises:
        StorageError: If a file exists but cannot be deleted
    """
    count = 0
    for picture in list(hotel.pictures):
        await remove_picture(storage, picture.filepath)
        hotel.pictures.remove(picture)
        await db.commit()
        count += 1
    return count
