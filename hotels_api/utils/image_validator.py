"""
Picture validation utility.
Checks uploaded files against the allowed types, size ceiling and minimum dimensions.
"""
import io
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from PIL import Image, UnidentifiedImageError

from hotels_api.config import settings
from hotels_api.exceptions import ValidationFailedError

logger = logging.getLogger(__name__)

# Allowed MIME types and the Pillow format each one must decode as
ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}

EXTENSIONS = {
    "JPEG": "jpg",
    "PNG": "png",
    "WEBP": "webp",
}


@dataclass
class PictureCandidate:
    """A validated upload, ready to be stored."""
    index: int
    filename: str
    content_type: str
    data: bytes
    format: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return EXTENSIONS[self.format]


class PictureValidationError(Exception):
    """A single upload broke one rule (type, size, image or dimensions)."""

    def __init__(self, index: int, rule: str, message: str):
        super().__init__(message)
        self.index = index
        self.rule = rule
        self.message = message

    @property
    def field(self) -> str:
        return f"pictures.{self.index}"


def validate_picture(
    index: int,
    filename: str,
    content_type: Optional[str],
    data: bytes,
    max_bytes: Optional[int] = None,
    min_width: Optional[int] = None,
    min_height: Optional[int] = None,
) -> PictureCandidate:
    """
    Validate one uploaded picture.

    Args:
        index: Position of the file in the submitted list
        filename: Client-side filename (for messages only)
        content_type: Declared MIME type
        data: File content
        max_bytes: Size ceiling (default: PICTURE_MAX_BYTES)
        min_width: Minimum width in pixels, 0 disables (default: PICTURE_MIN_WIDTH)
        min_height: Minimum height in pixels, 0 disables (default: PICTURE_MIN_HEIGHT)

    Returns:
        PictureCandidate: The decoded picture metadata and content

    Raises:
        PictureValidationError: On the first rule the file breaks
    """
    max_bytes = settings.PICTURE_MAX_BYTES if max_bytes is None else max_bytes
    min_width = settings.PICTURE_MIN_WIDTH if min_width is None else min_width
    min_height = settings.PICTURE_MIN_HEIGHT if min_height is None else min_height

    if content_type not in ALLOWED_CONTENT_TYPES:
        raise PictureValidationError(
            index, "type",
            f"File '{filename}' has type '{content_type}'. Accepted formats: JPEG, PNG, WEBP."
        )

    if len(data) > max_bytes:
        raise PictureValidationError(
            index, "size",
            f"File '{filename}' is larger than the maximum of {max_bytes:,} bytes."
        )

    try:
        image = Image.open(io.BytesIO(data))
        image.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        logger.warning(f"Cannot decode picture '{filename}': {str(e)}")
        raise PictureValidationError(index, "image", f"File '{filename}' is not a valid image.")

    if image.format not in EXTENSIONS:
        raise PictureValidationError(
            index, "type",
            f"File '{filename}' is a {image.format} image. Accepted formats: JPEG, PNG, WEBP."
        )

    width, height = image.size
    if width < min_width or height < min_height:
        raise PictureValidationError(
            index, "dimensions",
            f"File '{filename}' is {width}x{height} pixels, the minimum is {min_width}x{min_height}."
        )

    return PictureCandidate(
        index=index,
        filename=filename,
        content_type=content_type,
        data=data,
        format=image.format,
        width=width,
        height=height,
    )


async def read_pictures(files: Sequence) -> List[PictureCandidate]:
    """
    Read and validate every uploaded file of a request.

    Each file is validated independently; if any of them fails the whole
    batch is rejected with one error per failing file.

    Args:
        files: Starlette UploadFile objects in submission order

    Returns:
        List[PictureCandidate]: Validated pictures in submission order

    Raises:
        ValidationFailedError: If at least one file is invalid
    """
    candidates = []
    errors: Dict[str, List[str]] = {}

    for index, file in enumerate(files):
        filename = getattr(file, "filename", None) or f"file_{index}"
        if not hasattr(file, "read"):
            errors[f"pictures.{index}"] = [f"Field 'pictures' item {index} is not a file."]
            continue

        # At most one byte past the ceiling is buffered
        data = await file.read(settings.PICTURE_MAX_BYTES + 1)
        try:
            candidates.append(
                validate_picture(index, filename, getattr(file, "content_type", None), data)
            )
        except PictureValidationError as e:
            errors[e.field] = [e.message]

    if errors:
        logger.info(f"Rejected picture batch: {len(errors)} of {len(files)} file(s) invalid")
        raise ValidationFailedError(errors)

    return candidates
