from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from PIL import Image

from bluepic.domain.models.user import User


@dataclass(frozen=True)
class Tag:
    """
    Machine-generated label with a confidence score (expected in 0..1).
    """
    label: str
    confidence: float


@dataclass(frozen=True)
class Weather:
    temperature: int
    icon_id: int
    description: str


@dataclass(frozen=True)
class Location:
    """
    Place an image was taken at, optionally annotated with the weather.
    """
    name: str
    latitude: float
    longitude: float
    weather: Optional[Weather] = None


@dataclass
class UploadCandidate:
    """
    Image record held client-side before upload.

    Fields are mutable: the capturing UI fills them in incrementally
    before a single upload consumes the candidate.
    """
    caption: str
    file_name: str
    width: float
    height: float
    location: Location
    user: User


@dataclass
class DecodedImage:
    """
    Image record that has been round-tripped through the server.

    Composes the upload fields with the server-assigned ones. The bitmap
    is heavyweight, so it is held by reference and ignored by equality.
    """
    upload: UploadCandidate
    id: str
    time_stamp: Optional[datetime] = None
    url: Optional[str] = None
    tags: List[Tag] = field(default_factory=list)
    image: Optional[Image.Image] = field(default=None, compare=False, repr=False)

    @property
    def caption(self) -> str:
        return self.upload.caption

    @property
    def file_name(self) -> str:
        return self.upload.file_name

    @property
    def width(self) -> float:
        return self.upload.width

    @property
    def height(self) -> float:
        return self.upload.height

    @property
    def location(self) -> Location:
        return self.upload.location

    @property
    def user(self) -> User:
        return self.upload.user

    def has_tag(self, label: str) -> bool:
        """
        Check whether the image carries a tag, ignoring case.

        Args:
            label (str): Tag label to look for

        Returns:
            bool: True if any tag matches
        """
        wanted = label.strip().lower()
        return any(tag.label.lower() == wanted for tag in self.tags)
