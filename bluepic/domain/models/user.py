from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """
    Uploader identity attached to every image.
    """
    facebook_id: str
    name: str
