import json
import logging
import os
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from PIL import Image

from bluepic.config import FEED_FILENAME, SUPPORTED_IMAGE_FORMATS
from bluepic.domain.models.image import DecodedImage, UploadCandidate
from bluepic.domain.repositories.image_repository import ImageRepository
from bluepic.domain.services.image_decoder import decode_images
from bluepic.domain.services.image_encoder import encode_image

logger = logging.getLogger(__name__)


class FilesystemImageRepository(ImageRepository):
    """
    Concrete implementation of ImageRepository backed by a local directory.

    Image files are stored as <id><ext> in the base directory. Records are
    kept in a JSON array in the server wire format, so every read goes
    through the same decoder as a fetched feed and malformed entries are
    skipped rather than failing the whole listing.
    """

    def __init__(self, base_directory: str):
        """
        Initialize the repository with a base directory for image storage.

        Args:
            base_directory (str): Root directory for images and the feed file
        """
        self.base_directory = os.path.abspath(base_directory)
        os.makedirs(self.base_directory, exist_ok=True)

        self.feed_path = os.path.join(self.base_directory, FEED_FILENAME)

    def _load_records(self) -> List[Any]:
        if not os.path.exists(self.feed_path):
            return []

        try:
            with open(self.feed_path, 'r') as f:
                records = json.load(f)
        except ValueError as e:
            logger.warning("Error parsing feed file %s, treating it as empty: %s", self.feed_path, e)
            return []

        if not isinstance(records, list):
            logger.warning("Feed file %s does not hold a list, ignoring it", self.feed_path)
            return []
        return records

    def _write_records(self, records: List[Any]) -> None:
        # Write to a sibling file, then swap it in
        tmp_path = f"{self.feed_path}.tmp"
        with open(tmp_path, 'w') as f:
            json.dump(records, f, indent=2)
        os.replace(tmp_path, self.feed_path)

    def _stored_file_path(self, image_id: str) -> Optional[str]:
        """
        Locate the stored image file for an identifier.

        Args:
            image_id (str): Image identifier

        Returns:
            Optional[str]: Path to the stored file, or None if absent
        """
        for filename in os.listdir(self.base_directory):
            base_name, ext = os.path.splitext(filename)
            if base_name == image_id and ext.lower() in SUPPORTED_IMAGE_FORMATS:
                return os.path.join(self.base_directory, filename)
        return None

    def save(self, candidate: UploadCandidate, source_path: str) -> DecodedImage:
        """
        Copy an image file into the repository and append its record.

        Args:
            candidate (UploadCandidate): Record assembled before upload
            source_path (str): Path to the image file to store

        Returns:
            DecodedImage: Stored image with id, timestamp and url assigned
        """
        ext = os.path.splitext(source_path)[1].lower()
        if ext not in SUPPORTED_IMAGE_FORMATS:
            raise ValueError(f"Unsupported image format: {ext or source_path}")
        if not os.path.isfile(source_path):
            raise ValueError(f"Image file does not exist: {source_path}")

        image_id = str(uuid.uuid4())
        destination_path = os.path.join(self.base_directory, f"{image_id}{ext}")

        try:
            shutil.copy2(source_path, destination_path)
        except IOError as e:
            raise IOError(f"Failed to save image file: {e}")

        image = DecodedImage(
            upload=candidate,
            id=image_id,
            time_stamp=datetime.now(timezone.utc).replace(microsecond=0),
            url=Path(destination_path).as_uri(),
            tags=[]
        )

        records = self._load_records()
        records.append(encode_image(image))
        self._write_records(records)

        logger.info("Saved image %s (%s)", image_id, candidate.file_name)
        return image

    def merge_records(self, records: Iterable[Dict[str, Any]]) -> List[DecodedImage]:
        """
        Merge records fetched from the server into the local feed.

        Malformed records are dropped. A record whose id is already present
        replaces the stored one.

        Args:
            records (Iterable[Dict[str, Any]]): Raw records as parsed from JSON

        Returns:
            List[DecodedImage]: The records that were merged
        """
        images = decode_images(records)
        incoming = {image.id: encode_image(image) for image in images}

        merged = []
        for record in self._load_records():
            record_id = record.get("_id") if isinstance(record, dict) else None
            if isinstance(record_id, str) and record_id in incoming:
                merged.append(incoming.pop(record_id))
            else:
                merged.append(record)
        merged.extend(incoming.values())

        self._write_records(merged)
        logger.info("Merged %d image record(s) into %s", len(images), self.feed_path)
        return images

    def list_images(self) -> List[DecodedImage]:
        """
        List all valid images in the feed, in stored order.

        Returns:
            List[DecodedImage]: All decodable images
        """
        return decode_images(self._load_records())

    def find_by_id(self, image_id: str) -> Optional[DecodedImage]:
        for image in self.list_images():
            if image.id == image_id:
                return image
        return None

    def find_by_tag(self, label: str) -> List[DecodedImage]:
        return [image for image in self.list_images() if image.has_tag(label)]

    def find_by_user(self, user_id: str) -> List[DecodedImage]:
        return [image for image in self.list_images() if image.user.facebook_id == user_id]

    def delete(self, image_id: str) -> bool:
        """
        Delete an image file and its record.

        Args:
            image_id (str): Identifier of the image to delete

        Returns:
            bool: Whether deletion was successful
        """
        records = self._load_records()
        remaining = [
            record for record in records
            if not (isinstance(record, dict) and record.get("_id") == image_id)
        ]

        if len(remaining) == len(records):
            return False

        # Remove the file first so a failure leaves the record in place
        file_path = self._stored_file_path(image_id)
        if file_path is not None:
            try:
                os.remove(file_path)
            except OSError as e:
                logger.error("Error deleting image file %s: %s", file_path, e)
                return False

        self._write_records(remaining)

        logger.info("Deleted image %s", image_id)
        return True

    def load_bitmap(self, image: DecodedImage) -> Optional[Image.Image]:
        """
        Load the stored bitmap for an image and attach it to the record.

        Args:
            image (DecodedImage): Image whose bitmap should be loaded

        Returns:
            Optional[Image.Image]: The loaded bitmap, or None if no file is stored
        """
        file_path = self._stored_file_path(image.id)
        if file_path is None:
            return None

        bitmap = Image.open(file_path)
        bitmap.load()
        image.image = bitmap
        return bitmap
