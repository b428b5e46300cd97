"""
Multipart form helpers for hotel create/update requests.

Scalar fields are sent by name, new files under pictures / pictures[],
kept pictures as existing_pictures[i][id] + existing_pictures[i][position]
and removed pictures as deleted_pictures / deleted_pictures[].
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError
from starlette.datastructures import FormData, UploadFile

from hotels_api.config import settings
from hotels_api.exceptions import ValidationFailedError
from hotels_api.schemas import PicturePosition
from hotels_api.utils.image_validator import PictureCandidate, read_pictures

EXISTING_PICTURE_KEY = re.compile(r"^existing_pictures\[(\d+)\]\[(\w+)\]$")


@dataclass
class HotelForm:
    fields: Optional[BaseModel]
    keep: List[PicturePosition] = field(default_factory=list)
    remove: List[int] = field(default_factory=list)
    pictures: List[PictureCandidate] = field(default_factory=list)


def validation_errors(exc: ValidationError, prefix: str = "") -> Dict[str, List[str]]:
    """Turn a pydantic ValidationError into a field -> messages map."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        key = f"{prefix}.{location}" if prefix and location else (prefix or location or "__root__")
        errors.setdefault(key, []).append(error["msg"])
    return errors


def parse_fields(form: FormData, schema: Type[BaseModel]) -> BaseModel:
    """
    Validate the scalar fields of a form against a schema.
    Only fields present in the form are passed; an empty value means null.

    Raises:
        ValidationFailedError: If a field breaks a rule
    """
    data = {}
    for name in schema.model_fields:
        if name not in form:
            continue
        value = form.get(name)
        data[name] = None if isinstance(value, str) and value.strip() == "" else value

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ValidationFailedError(validation_errors(e))


def get_files(form: FormData) -> List[UploadFile]:
    """New picture files in submission order, skipping empty file inputs."""
    files = form.getlist("pictures") + form.getlist("pictures[]")
    return [
        f for f in files
        if not (isinstance(f, UploadFile) and not f.filename and not f.size)
    ]


def parse_picture_changes(form: FormData) -> Tuple[List[PicturePosition], List[int]]:
    """
    Read kept pictures (with positions) and removed picture ids.

    Returns:
        Tuple[List[PicturePosition], List[int]]: keep entries in index order, ids to remove

    Raises:
        ValidationFailedError: On malformed keys, non-integer values or too many entries
    """
    errors: Dict[str, List[str]] = {}
    entries: Dict[int, dict] = {}

    for key, value in form.multi_items():
        if not key.startswith("existing_pictures"):
            continue
        match = EXISTING_PICTURE_KEY.match(key)
        if not match or match.group(2) not in ("id", "position"):
            errors.setdefault(key, []).append("Expected existing_pictures[<index>][id|position]")
            continue
        entries.setdefault(int(match.group(1)), {})[match.group(2)] = value

    keep = []
    for index in sorted(entries):
        try:
            keep.append(PicturePosition.model_validate(entries[index]))
        except ValidationError as e:
            errors.update(validation_errors(e, prefix=f"existing_pictures.{index}"))

    if len(entries) > settings.PICTURES_MAX_PER_REQUEST:
        errors.setdefault("existing_pictures", []).append(
            f"No more than {settings.PICTURES_MAX_PER_REQUEST} pictures are allowed."
        )

    remove = []
    for index, value in enumerate(form.getlist("deleted_pictures") + form.getlist("deleted_pictures[]")):
        try:
            remove.append(int(value))
        except (TypeError, ValueError):
            errors.setdefault(f"deleted_pictures.{index}", []).append("Picture id must be an integer.")

    if errors:
        raise ValidationFailedError(errors)

    return keep, remove


async def parse_hotel_form(form: FormData, schema: Type[BaseModel]) -> HotelForm:
    """
    Validate scalar fields, gallery changes and new files of a hotel form.
    Every error is reported at once, before anything is written.

    Raises:
        ValidationFailedError: With the errors of all parts combined
    """
    errors: Dict[str, List[str]] = {}
    parsed = HotelForm(fields=None)

    try:
        parsed.fields = parse_fields(form, schema)
    except ValidationFailedError as e:
        errors.update(e.errors)

    try:
        parsed.keep, parsed.remove = parse_picture_changes(form)
    except ValidationFailedError as e:
        errors.update(e.errors)

    try:
        parsed.pictures = await read_pictures(get_files(form))
    except ValidationFailedError as e:
        errors.update(e.errors)

    if errors:
        raise ValidationFailedError(errors)

    return parsed
