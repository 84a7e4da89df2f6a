"""
Pytest configuration and fixtures
"""
import copy

import pytest
from PIL import Image


VALID_RECORD = {
    "_id": "1ac3cf5b6b6e4d1c",
    "caption": "Sunset over the bay",
    "fileName": "sunset.jpg",
    "width": 640,
    "height": 480.5,
    "url": "https://example.com/images/sunset.jpg",
    "uploadedTs": "2016-05-04T18:30:12",
    "user": {"_id": "1000123", "name": "Jane Doe"},
    "location": {
        "name": "Austin, Texas",
        "latitude": 30.2672,
        "longitude": -97.7431,
        "weather": {"temperature": 88, "iconId": 32, "description": "Sunny"},
    },
    "tags": [
        {"label": "sunset", "confidence": 0.92},
        {"label": "water", "confidence": 1},
    ],
}


@pytest.fixture
def record():
    """A fully populated server image record"""
    return copy.deepcopy(VALID_RECORD)


@pytest.fixture
def make_jpeg(tmp_path):
    """Factory writing a small JPEG and returning its path"""
    def _make(name="capture.jpg", size=(32, 24)):
        path = tmp_path / name
        Image.new("RGB", size, color=(30, 120, 200)).save(path, format="JPEG")
        return str(path)
    return _make
