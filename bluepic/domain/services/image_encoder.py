from datetime import timezone
from typing import Any, Dict

from bluepic.config import TIMESTAMP_FORMAT
from bluepic.domain.models.image import DecodedImage, Location, UploadCandidate


def _encode_location(location: Location) -> Dict[str, Any]:
    encoded = {
        "name": location.name,
        "latitude": location.latitude,
        "longitude": location.longitude,
    }
    if location.weather is not None:
        encoded["weather"] = {
            "temperature": location.weather.temperature,
            "iconId": location.weather.icon_id,
            "description": location.weather.description,
        }
    return encoded


def encode_upload(candidate: UploadCandidate) -> Dict[str, Any]:
    """
    Build the payload sent to the server when uploading a new image.

    Args:
        candidate (UploadCandidate): Image assembled by the capturing UI

    Returns:
        Dict[str, Any]: JSON-serialisable upload payload
    """
    return {
        "caption": candidate.caption,
        "fileName": candidate.file_name,
        "width": candidate.width,
        "height": candidate.height,
        "location": _encode_location(candidate.location),
        "user": {"_id": candidate.user.facebook_id, "name": candidate.user.name},
    }


def encode_image(image: DecodedImage) -> Dict[str, Any]:
    """
    Convert a decoded image back to the server record shape.

    Unset optional fields are left out rather than written as null.

    Args:
        image (DecodedImage): Image to encode

    Returns:
        Dict[str, Any]: JSON-serialisable image record
    """
    encoded = encode_upload(image.upload)
    encoded["_id"] = image.id
    if image.url is not None:
        encoded["url"] = image.url
    if image.time_stamp is not None:
        time_stamp = image.time_stamp
        if time_stamp.tzinfo is not None:
            time_stamp = time_stamp.astimezone(timezone.utc)
        encoded["uploadedTs"] = time_stamp.strftime(TIMESTAMP_FORMAT)
    encoded["tags"] = [{"label": tag.label, "confidence": tag.confidence} for tag in image.tags]
    return encoded
