"""
Hotel service.
Creates, reads, updates and deletes hotels together with their picture galleries.
"""
import logging
from typing import List, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hotels_api.config import settings
from hotels_api.exceptions import HotelNotFoundError, PictureRemovalError, ValidationFailedError
from hotels_api.models import Hotel
from hotels_api.schemas import HotelCreate, HotelUpdate
from hotels_api.services.picture_service import (
    PictureChanges,
    attach_pictures,
    discard_files,
    discard_pictures,
    reconcile,
)
from hotels_api.services.storage_service import PictureStorage
from hotels_api.utils.image_validator import PictureCandidate

logger = logging.getLogger(__name__)


async def get_hotel(db: AsyncSession, hotel_id: int) -> Hotel:
    """
    Fetch a hotel with its pictures ordered by position.

    Raises:
        HotelNotFoundError: If no hotel has this id
    """
    result = await db.execute(
        select(Hotel)
        .options(selectinload(Hotel.pictures))
        .where(Hotel.id == hotel_id)
        .execution_options(populate_existing=True)
    )
    hotel = result.scalar_one_or_none()
    if hotel is None:
        raise HotelNotFoundError(hotel_id)
    return hotel


def _check_picture_count(candidates: Sequence[PictureCandidate], minimum: int) -> None:
    maximum = settings.PICTURES_MAX_PER_REQUEST
    if len(candidates) < minimum:
        raise ValidationFailedError({"pictures": ["At least one picture is required."]})
    if len(candidates) > maximum:
        raise ValidationFailedError({"pictures": [f"No more than {maximum} pictures can be uploaded at once."]})


async def create_hotel(
    db: AsyncSession,
    storage: PictureStorage,
    fields: HotelCreate,
    candidates: Sequence[PictureCandidate],
) -> Hotel:
    """
    Create a hotel and its gallery as one unit.

    The hotel row and picture rows are committed in a single transaction.
    If anything fails, the transaction is rolled back and the files written
    so far are deleted, so a failed create leaves nothing behind.

    Args:
        db: Database session
        storage: Picture storage
        fields: Validated hotel fields
        candidates: Validated pictures (1 to PICTURES_MAX_PER_REQUEST)

    Returns:
        Hotel: The created hotel with its pictures at positions 0..N-1

    Raises:
        ValidationFailedError: If the number of pictures is out of range
        StorageError: If a picture cannot be written
    """
    _check_picture_count(candidates, minimum=1)

    stored = []
    try:
        hotel = Hotel(**fields.model_dump())
        db.add(hotel)
        await db.flush()

        stored = await attach_pictures(db, storage, hotel.id, candidates)
        await db.commit()
    except Exception:
        await db.rollback()
        await discard_files(storage, [ref.path for ref in stored])
        logger.error(f"Hotel creation failed, removed {len(stored)} stored picture(s)")
        raise

    logger.info(f"Created hotel {hotel.id} ({hotel.name}) with {len(stored)} picture(s)")
    return await get_hotel(db, hotel.id)


async def update_hotel(
    db: AsyncSession,
    storage: PictureStorage,
    hotel_id: int,
    fields: HotelUpdate,
    changes: PictureChanges,
) -> Tuple[Hotel, List[PictureRemovalError]]:
    """
    Apply a partial update to a hotel and reconcile its gallery.

    Only the fields present in the request are written. Picture changes
    follow picture_service.reconcile: removals are committed first, the
    field changes, repositions and new pictures are committed together
    afterwards. If that last commit fails, the new files are deleted.

    Returns:
        Tuple[Hotel, List[PictureRemovalError]]: The re-read hotel and the
        pictures that could not be removed

    Raises:
        HotelNotFoundError: If no hotel has this id
        ValidationFailedError: If too many new pictures are submitted
        StorageError: If a new picture cannot be written
    """
    hotel = await get_hotel(db, hotel_id)
    _check_picture_count(changes.new_files, minimum=0)

    try:
        result = await reconcile(db, storage, hotel_id, changes)
    except Exception:
        await db.rollback()
        raise

    updates = fields.changes()
    for name, value in updates.items():
        setattr(hotel, name, value)
    if updates:
        logger.info(f"Updating hotel {hotel_id} fields: {sorted(updates)}")

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        await discard_files(storage, [ref.path for ref in result.stored])
        logger.error(f"Hotel {hotel_id} update failed, removed {len(result.stored)} new picture(s)")
        raise

    logger.info(
        f"Updated hotel {hotel_id}: {len(result.pictures)} picture(s), "
        f"{len(result.stored)} added, {len(result.errors)} removal error(s)"
    )
    return await get_hotel(db, hotel_id), result.errors


async def delete_hotel(db: AsyncSession, storage: PictureStorage, hotel_id: int) -> None:
    """
    Delete a hotel, its picture rows and their files.

    Files already missing from storage are not an error. Pictures are
    removed one by one before the hotel row; if a file cannot be deleted
    the hotel stays, with the pictures that were not removed yet.

    Raises:
        HotelNotFoundError: If no hotel has this id
        StorageError: If a picture file cannot be deleted
    """
    hotel = await get_hotel(db, hotel_id)

    try:
        count = await discard_pictures(db, storage, hotel)
        await db.delete(hotel)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Deleted hotel {hotel_id} and {count} picture(s)")
