"""
Hotel routes.
Listing, detail, creation, partial update and deletion of hotels with their picture galleries.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Literal, Optional
import logging

from hotels_api.config import settings
from hotels_api.database import get_db
from hotels_api.exceptions import HotelsAPIError
from hotels_api.schemas import (
    HotelCreate,
    HotelListParams,
    HotelMutationResponse,
    HotelResponse,
    HotelsPageResponse,
    HotelUpdate,
    MessageResponse,
    PaginationMetadata,
)
from hotels_api.services import hotel_service
from hotels_api.services.listing_service import list_hotels
from hotels_api.services.picture_service import PictureChanges
from hotels_api.services.storage_service import PictureStorage, get_picture_storage
from hotels_api.utils.form_parser import parse_hotel_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hotels")


def _error(exc: HotelsAPIError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())


def _internal_error(message: str, exc: Exception) -> HTTPException:
    logger.error(f"{message}: {str(exc)}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "internal_error", "message": message}
    )


@router.get("", response_model=HotelsPageResponse)
async def get_hotels(
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    name: Optional[str] = None,
    city: Optional[str] = None,
    sort: Optional[Literal["name", "city", "price_per_night"]] = None,
    order: Literal["asc", "desc"] = "asc",
    db: AsyncSession = Depends(get_db)
):
    """
    Get a page of hotels with their pictures.

    Args:
        page: 1-based page number (default: 1)
        per_page: Hotels per page (default: 10, max: 100)
        name: Case-insensitive substring of the hotel name
        city: Exact, case-sensitive city
        sort: name, city or price_per_night (default: insertion order)
        order: asc or desc (default: asc)
        db: Database session (injected by FastAPI dependency)

    Returns:
        HotelsPageResponse: Hotels of the page and pagination metadata

    Raises:
        HTTPException: 422 if a parameter is invalid, 500 if the query fails
    """
    try:
        params = HotelListParams(
            page=page, per_page=per_page, name=name, city=city, sort=sort, order=order
        )
        result = await list_hotels(db, params)

        return HotelsPageResponse(
            data=[HotelResponse.model_validate(hotel) for hotel in result.items],
            meta=PaginationMetadata(
                current_page=result.page,
                last_page=result.last_page,
                per_page=result.per_page,
                total=result.total
            )
        )

    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("Failed to retrieve hotels", e)


@router.get("/{hotel_id}", response_model=HotelResponse)
async def get_hotel(hotel_id: int, db: AsyncSession = Depends(get_db)):
    """
    Get one hotel with its pictures ordered by position.

    Raises:
        HTTPException: 404 if the hotel does not exist
    """
    try:
        hotel = await hotel_service.get_hotel(db, hotel_id)
        return HotelResponse.model_validate(hotel)

    except HTTPException:
        raise
    except HotelsAPIError as e:
        raise _error(e)
    except Exception as e:
        raise _internal_error("Failed to retrieve hotel", e)


@router.post("", response_model=HotelMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_hotel(
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: PictureStorage = Depends(get_picture_storage)
):
    """
    Create a hotel from multipart form data.

    Scalar fields are sent by name and pictures as files under "pictures[]"
    (or "pictures"). Pictures take positions 0..N-1 in submission order.

    Args:
        request: FastAPI Request object to parse multipart form data
        db: Database session (injected by FastAPI dependency)
        storage: Picture storage (injected by FastAPI dependency)

    Returns:
        HotelMutationResponse: Success message and the created hotel

    Raises:
        HTTPException: 422 if a field or file is invalid, 500 if storing fails
    """
    try:
        form = await request.form()

        parsed = await parse_hotel_form(form, HotelCreate)

        hotel = await hotel_service.create_hotel(db, storage, parsed.fields, parsed.pictures)

        return HotelMutationResponse(
            message="Hotel created successfully",
            hotel=HotelResponse.model_validate(hotel)
        )

    except HTTPException:
        raise
    except HotelsAPIError as e:
        if e.status_code >= 500:
            logger.error(f"Failed to create hotel: {e.message}")
        raise _error(e)
    except Exception as e:
        raise _internal_error("Failed to create hotel", e)


@router.patch("/{hotel_id}", response_model=HotelMutationResponse)
async def update_hotel(
    hotel_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    storage: PictureStorage = Depends(get_picture_storage)
):
    """
    Partially update a hotel and its gallery from multipart form data.

    Any subset of scalar fields may be sent; an empty value clears address2.
    Gallery changes in the same request:
        - existing_pictures[i][id] / existing_pictures[i][position]: pictures kept and their positions
        - deleted_pictures[]: ids of pictures to remove
        - pictures[]: new files, appended after the kept pictures

    Unknown picture ids are ignored. Positions are renumbered 0..N-1 afterwards.

    Returns:
        HotelMutationResponse: Success message, the updated hotel and the
        pictures that could not be removed (if any)

    Raises:
        HTTPException: 404 if the hotel does not exist, 422 if a field or file is invalid,
        500 if storing fails
    """
    try:
        form = await request.form()

        parsed = await parse_hotel_form(form, HotelUpdate)

        hotel, errors = await hotel_service.update_hotel(
            db, storage, hotel_id, parsed.fields,
            PictureChanges(keep=parsed.keep, remove=parsed.remove, new_files=parsed.pictures)
        )

        return HotelMutationResponse(
            message="Hotel updated successfully" if not errors else "Hotel updated with picture errors",
            hotel=HotelResponse.model_validate(hotel),
            errors=[error.to_dict() for error in errors] or None
        )

    except HTTPException:
        raise
    except HotelsAPIError as e:
        if e.status_code >= 500:
            logger.error(f"Failed to update hotel {hotel_id}: {e.message}")
        raise _error(e)
    except Exception as e:
        raise _internal_error("Failed to update hotel", e)


@router.delete("/{hotel_id}", response_model=MessageResponse)
async def delete_hotel(
    hotel_id: int,
    db: AsyncSession = Depends(get_db),
    storage: PictureStorage = Depends(get_picture_storage)
):
    """
    Delete a hotel together with its pictures (rows and files).

    Raises:
        HTTPException: 404 if the hotel does not exist, 500 if deletion fails
    """
    try:
        await hotel_service.delete_hotel(db, storage, hotel_id)
        return {"message": "Hotel deleted successfully", "hotel_id": hotel_id}

    except HTTPException:
        raise
    except HotelsAPIError as e:
        if e.status_code >= 500:
            logger.error(f"Failed to delete hotel {hotel_id}: {e.message}")
        raise _error(e)
    except Exception as e:
        raise _internal_error("Failed to delete hotel", e)
