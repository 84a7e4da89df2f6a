import logging
import os
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import exif
from PIL import Image

from bluepic.config import JPEG_FORMATS
from bluepic.domain.models.image import DecodedImage, Location, UploadCandidate
from bluepic.domain.models.user import User
from bluepic.domain.repositories.image_repository import ImageRepository

logger = logging.getLogger(__name__)


class ImageService:
    """
    Application service for preparing uploads and querying the image feed.
    Coordinates between domain models and repository.
    """

    def __init__(self, image_repository: ImageRepository):
        """
        Initialize image service with a repository.

        Args:
            image_repository (ImageRepository): Repository for image operations
        """
        self._repository = image_repository

    @staticmethod
    def _convert_gps_coordinates(coordinates: tuple, ref: str) -> Optional[float]:
        """
        Convert an EXIF (degrees, minutes, seconds) triple to signed decimal degrees.

        Southern and western references are negative.

        Args:
            coordinates (tuple): GPS coordinates as (degrees, minutes, seconds)
            ref (str): Reference direction (N/S or E/W)

        Returns:
            Optional[float]: Decimal degrees, or None for a malformed triple
        """
        try:
            degrees, minutes, seconds = (float(part) for part in coordinates)
        except (TypeError, ValueError):
            return None

        sign = -1.0 if ref in ('S', 'W') else 1.0
        return sign * (degrees + minutes / 60.0 + seconds / 3600.0)

    def _read_gps(self, file_path: str) -> Optional[Tuple[float, float]]:
        """
        Read GPS coordinates from the EXIF block of a JPEG file.

        Args:
            file_path (str): Path to the image

        Returns:
            Optional[Tuple[float, float]]: (latitude, longitude) or None
        """
        if os.path.splitext(file_path)[1].lower() not in JPEG_FORMATS:
            return None

        try:
            with open(file_path, 'rb') as img_file:
                img = exif.Image(img_file)

                if not img.has_exif:
                    return None

                if not (hasattr(img, 'gps_latitude') and hasattr(img, 'gps_longitude')):
                    return None

                lat = self._convert_gps_coordinates(img.gps_latitude, img.gps_latitude_ref)
                lon = self._convert_gps_coordinates(img.gps_longitude, img.gps_longitude_ref)
        except (AttributeError, IOError, ValueError) as e:
            logger.debug("Could not read EXIF GPS from %s: %s", file_path, e)
            return None

        if lat is None or lon is None:
            return None
        return lat, lon

    def prepare_upload(
        self,
        file_path: str,
        caption: str,
        user: User,
        location_name: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None
    ) -> UploadCandidate:
        """
        Build an upload candidate from an image file on disk.

        Dimensions come from the image itself. Coordinates not passed in
        are taken from the EXIF GPS block.

        Args:
            file_path (str): Path to the captured image
            caption (str): Caption entered by the user
            user (User): Uploader
            location_name (str): Human-readable place name
            latitude (Optional[float]): Latitude override
            longitude (Optional[float]): Longitude override

        Returns:
            UploadCandidate: Candidate ready to be uploaded
        """
        if not os.path.isfile(file_path):
            raise ValueError(f"Image file does not exist: {file_path}")

        with Image.open(file_path) as bitmap:
            width, height = bitmap.size

        if latitude is None or longitude is None:
            gps = self._read_gps(file_path)
            if gps is None:
                raise ValueError(f"No coordinates given and none found in EXIF data: {file_path}")
            latitude, longitude = gps

        return UploadCandidate(
            caption=caption,
            file_name=os.path.basename(file_path),
            width=float(width),
            height=float(height),
            location=Location(name=location_name, latitude=float(latitude), longitude=float(longitude)),
            user=user
        )

    def upload(self, candidate: UploadCandidate, source_path: str) -> DecodedImage:
        return self._repository.save(candidate, source_path)

    def images_for_tag(self, label: str) -> List[DecodedImage]:
        return self._repository.find_by_tag(label)

    def images_for_user(self, user_id: str) -> List[DecodedImage]:
        return self._repository.find_by_user(user_id)

    def feed(self) -> List[DecodedImage]:
        """
        List images newest first. Images without a timestamp come last.

        Returns:
            List[DecodedImage]: Ordered feed
        """
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(
            self._repository.list_images(),
            key=lambda image: image.time_stamp or oldest,
            reverse=True
        )
