"""
Decoding of server image records into domain models.

Every nested object has its own validator returning either the decoded
value or a DecodeFailure. Required fields are read through a single
short-circuiting helper, so the first missing or mistyped field aborts
the record and names itself in the failure reason. Optional parts
(url, timestamp, weather, individual tags) are dropped silently instead.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from bluepic.config import TIMESTAMP_FORMAT
from bluepic.domain.models.image import DecodedImage, Location, Tag, UploadCandidate, Weather
from bluepic.domain.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeFailure:
    """
    Reason a record could not be decoded. Returned, never raised.
    """
    reason: str


Reader = Callable[[Any], Any]


def _as_string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _is_number(value: Any) -> bool:
    # JSON booleans parse to bool, which is an int subclass
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_float(value: Any) -> Optional[float]:
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    # NaN and infinities have no JSON form and break equality
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> Optional[int]:
    if not _is_number(value):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return value


def _as_object(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def _read_fields(
    source: Any,
    fields: Sequence[Tuple[str, Reader]],
    path: str
) -> Union[Dict[str, Any], DecodeFailure]:
    """
    Read a group of fields, stopping at the first one that fails.

    Args:
        source (Any): Candidate object to read from
        fields (Sequence[Tuple[str, Reader]]): Field names with their readers
        path (str): Dotted prefix used in failure reasons

    Returns:
        Union[Dict[str, Any], DecodeFailure]: Converted values by field name,
        or the failure for the first missing or mistyped field
    """
    if not isinstance(source, dict):
        return DecodeFailure(f"{path or 'record'} is missing or not an object")

    values = {}
    for key, reader in fields:
        value = reader(source.get(key))
        if value is None:
            return DecodeFailure(f"missing or mistyped field '{path}.{key}'" if path
                                 else f"missing or mistyped field '{key}'")
        values[key] = value
    return values


REQUIRED_IMAGE_FIELDS = (
    ("_id", _as_string),
    ("caption", _as_string),
    ("fileName", _as_string),
    ("width", _as_float),
    ("height", _as_float),
    ("user", _as_object),
)
USER_FIELDS = (("_id", _as_string), ("name", _as_string))
LOCATION_FIELDS = (("name", _as_string), ("latitude", _as_float), ("longitude", _as_float))
WEATHER_FIELDS = (("temperature", _as_int), ("iconId", _as_int), ("description", _as_string))
TAG_FIELDS = (("label", _as_string), ("confidence", _as_float))


def _parse_timestamp(value: Any) -> Optional[datetime]:
    text = _as_string(value)
    if text is None:
        return None
    try:
        return datetime.strptime(text, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        logger.debug("Ignoring unparseable upload timestamp %r", text)
        return None


def _read_tags(value: Any) -> List[Tag]:
    if not isinstance(value, list):
        return []

    tags = []
    for entry in value:
        fields = _read_fields(entry, TAG_FIELDS, "tags")
        if isinstance(fields, DecodeFailure):
            logger.debug("Skipping tag entry: %s", fields.reason)
            continue
        tags.append(Tag(label=fields["label"], confidence=fields["confidence"]))
    return tags


def _validate_user(value: Any) -> Union[User, DecodeFailure]:
    fields = _read_fields(value, USER_FIELDS, "user")
    if isinstance(fields, DecodeFailure):
        return fields
    return User(facebook_id=fields["_id"], name=fields["name"])


def _validate_weather(value: Any) -> Optional[Weather]:
    # All or nothing, and never fatal to the location
    if value is None:
        return None
    fields = _read_fields(value, WEATHER_FIELDS, "location.weather")
    if isinstance(fields, DecodeFailure):
        logger.debug("Dropping weather: %s", fields.reason)
        return None
    return Weather(
        temperature=fields["temperature"],
        icon_id=fields["iconId"],
        description=fields["description"]
    )


def _validate_location(value: Any) -> Union[Location, DecodeFailure]:
    fields = _read_fields(value, LOCATION_FIELDS, "location")
    if isinstance(fields, DecodeFailure):
        return fields
    return Location(
        name=fields["name"],
        latitude=fields["latitude"],
        longitude=fields["longitude"],
        weather=_validate_weather(value.get("weather"))
    )


def parse_image(raw: Any) -> Union[DecodedImage, DecodeFailure]:
    """
    Decode a server image record.

    Args:
        raw (Any): Untyped mapping as produced by a JSON parser

    Returns:
        Union[DecodedImage, DecodeFailure]: The decoded image, or the reason
        the record was rejected
    """
    if not isinstance(raw, dict):
        return DecodeFailure("record is not an object")

    url = _as_string(raw.get("url"))
    time_stamp = _parse_timestamp(raw.get("uploadedTs"))
    tags = _read_tags(raw.get("tags"))

    fields = _read_fields(raw, REQUIRED_IMAGE_FIELDS, "")
    if isinstance(fields, DecodeFailure):
        return fields

    user = _validate_user(fields["user"])
    if isinstance(user, DecodeFailure):
        return user

    location = _validate_location(raw.get("location"))
    if isinstance(location, DecodeFailure):
        return location

    upload = UploadCandidate(
        caption=fields["caption"],
        file_name=fields["fileName"],
        width=fields["width"],
        height=fields["height"],
        location=location,
        user=user
    )
    return DecodedImage(upload=upload, id=fields["_id"], time_stamp=time_stamp, url=url, tags=tags)


def decode_image(raw: Any) -> Optional[DecodedImage]:
    """
    Decode a server image record, returning None if it is invalid.

    Args:
        raw (Any): Untyped mapping as produced by a JSON parser

    Returns:
        Optional[DecodedImage]: The decoded image or None
    """
    result = parse_image(raw)
    if isinstance(result, DecodeFailure):
        logger.warning("invalid image json: %s", result.reason)
        return None
    return result


def decode_images(items: Iterable[Any]) -> List[DecodedImage]:
    """
    Decode a feed of image records, dropping the malformed ones.
    """
    images = []
    dropped = 0
    for item in items:
        image = decode_image(item)
        if image is None:
            dropped += 1
        else:
            images.append(image)

    if dropped:
        logger.info("Dropped %d malformed image record(s) out of %d", dropped, dropped + len(images))
    return images
