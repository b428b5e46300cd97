"""
Domain errors raised by the services and mapped to HTTP responses by the routes.
"""
from typing import Dict, List, Optional


class HotelsAPIError(Exception):
    """Base class for errors with a machine-readable kind and an HTTP status."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class HotelNotFoundError(HotelsAPIError):
    kind = "not_found"
    status_code = 404

    def __init__(self, hotel_id: int):
        super().__init__(f"Hotel {hotel_id} not found")
        self.hotel_id = hotel_id


class ValidationFailedError(HotelsAPIError):
    """
    One or more fields or files violate a rule.
    errors maps a field name (pictures.<index> for files) to its messages.
    """
    kind = "validation_failed"
    status_code = 422

    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid"):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, "errors": self.errors}


class StorageError(HotelsAPIError):
    """Picture storage unreachable or failing (disk full, permissions...)."""
    kind = "storage_failure"
    status_code = 500


class PictureRemovalError:
    """
    Failure to remove one picture during a gallery update.
    Collected and returned next to the updated hotel, never raised.
    """
    kind = "partial_reconciliation_failure"

    def __init__(self, picture_id: int, message: str, filepath: Optional[str] = None):
        self.picture_id = picture_id
        self.message = message
        self.filepath = filepath

    def to_dict(self) -> dict:
        return {"error": self.kind, "picture_id": self.picture_id, "message": self.message}
