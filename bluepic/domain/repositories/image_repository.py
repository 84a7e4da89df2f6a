from abc import ABC, abstractmethod
from typing import List, Optional

from bluepic.domain.models.image import DecodedImage, UploadCandidate


class ImageRepository(ABC):
    """
    Abstract base class defining the contract for image feed operations.
    """

    @abstractmethod
    def save(self, candidate: UploadCandidate, source_path: str) -> DecodedImage:
        """
        Store a new image and its record.

        Args:
            candidate (UploadCandidate): Record assembled before upload
            source_path (str): Path to the image file to store

        Returns:
            DecodedImage: The stored image with server-assigned fields set
        """
        pass

    @abstractmethod
    def find_by_id(self, image_id: str) -> Optional[DecodedImage]:
        """
        Retrieve an image by its identifier.

        Args:
            image_id (str): Identifier assigned on save

        Returns:
            Optional[DecodedImage]: The found image or None
        """
        pass

    @abstractmethod
    def find_by_tag(self, label: str) -> List[DecodedImage]:
        """
        Find images carrying a tag, ignoring case.

        Args:
            label (str): Tag label to search for

        Returns:
            List[DecodedImage]: Images with the tag
        """
        pass

    @abstractmethod
    def find_by_user(self, user_id: str) -> List[DecodedImage]:
        """
        Find images uploaded by a user.

        Args:
            user_id (str): Uploader's facebook ID

        Returns:
            List[DecodedImage]: Images from that user
        """
        pass

    @abstractmethod
    def list_images(self) -> List[DecodedImage]:
        pass

    @abstractmethod
    def delete(self, image_id: str) -> bool:
        """
        Delete an image and its record.

        Args:
            image_id (str): Identifier of the image to delete

        Returns:
            bool: Whether deletion was successful
        """
        pass
