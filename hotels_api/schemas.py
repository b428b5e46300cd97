"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional, List

# Fields that may be omitted on update but never set to null
NON_NULLABLE_FIELDS = (
    "name", "address1", "zipcode", "city", "country", "lat", "lng",
    "description", "max_capacity", "price_per_night",
)


class HotelPictureResponse(BaseModel):
    """
    Response schema for a gallery picture.
    filepath is relative to the public storage root.
    """
    id: int
    hotel_id: int
    filepath: str
    filesize: int
    position: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HotelResponse(BaseModel):
    """
    Response schema for hotel data with its gallery ordered by position.
    """
    id: int
    name: str
    address1: str
    address2: Optional[str] = None
    zipcode: str
    city: str
    country: str
    lat: Decimal
    lng: Decimal
    description: str
    max_capacity: int
    price_per_night: Decimal
    created_at: datetime
    updated_at: datetime
    pictures: List[HotelPictureResponse] = []

    model_config = ConfigDict(from_attributes=True)


class HotelCreate(BaseModel):
    """
    Scalar fields of POST /api/hotels.
    Pictures travel separately as multipart files.
    """
    name: str = Field(min_length=3, max_length=255)
    address1: str = Field(min_length=5, max_length=500)
    address2: Optional[str] = Field(default=None, max_length=500)
    zipcode: str = Field(min_length=2, max_length=20)
    city: str = Field(min_length=2, max_length=100)
    country: str = Field(min_length=2, max_length=100)
    lat: Decimal = Field(ge=-90, le=90)
    lng: Decimal = Field(ge=-180, le=180)
    description: str = Field(min_length=10, max_length=5000)
    max_capacity: int = Field(ge=1, le=1000)
    price_per_night: Decimal = Field(ge=0, le=Decimal("999999.99"), decimal_places=2)

    model_config = ConfigDict(str_strip_whitespace=True)


class HotelUpdate(BaseModel):
    """
    Scalar fields of PATCH /api/hotels/{id}.

    Every field is optional. A field missing from the request is left
    untouched (it is absent from model_fields_set); address2 accepts an
    explicit null, the other fields reject it.
    """
    name: Optional[str] = Field(default=None, min_length=3, max_length=255)
    address1: Optional[str] = Field(default=None, min_length=5, max_length=500)
    address2: Optional[str] = Field(default=None, max_length=500)
    zipcode: Optional[str] = Field(default=None, min_length=2, max_length=20)
    city: Optional[str] = Field(default=None, min_length=2, max_length=100)
    country: Optional[str] = Field(default=None, min_length=2, max_length=100)
    lat: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    lng: Optional[Decimal] = Field(default=None, ge=-180, le=180)
    description: Optional[str] = Field(default=None, min_length=10, max_length=5000)
    max_capacity: Optional[int] = Field(default=None, ge=1, le=1000)
    price_per_night: Optional[Decimal] = Field(default=None, ge=0, le=Decimal("999999.99"), decimal_places=2)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator(*NON_NULLABLE_FIELDS, mode="before")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field may not be null")
        return v

    def changes(self) -> dict:
        """Fields present in the request, with their new values."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class PicturePosition(BaseModel):
    """Kept picture and its new position (existing_pictures[i])."""
    id: int
    position: int = Field(ge=0)


class HotelListParams(BaseModel):
    """Query parameters of GET /api/hotels."""
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=10, ge=1)
    name: Optional[str] = None
    city: Optional[str] = None
    sort: Optional[Literal["name", "city", "price_per_night"]] = None
    order: Literal["asc", "desc"] = "asc"


class PaginationMetadata(BaseModel):
    """
    Pagination metadata for page-number pagination.
    """
    current_page: int
    last_page: int
    per_page: int
    total: int


class HotelsPageResponse(BaseModel):
    """
    Paginated response for hotels.
    """
    data: List[HotelResponse]
    meta: PaginationMetadata


class PictureErrorResponse(BaseModel):
    error: str
    picture_id: int
    message: str


class HotelMutationResponse(BaseModel):
    """
    Response of create and update.
    errors lists pictures that could not be removed during an update.
    """
    message: str
    hotel: HotelResponse
    errors: Optional[List[PictureErrorResponse]] = None


class MessageResponse(BaseModel):
    message: str
    hotel_id: int
