import logging
import os


# Server timestamps carry no zone designator and are always UTC
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

FEED_FILENAME = "images.json"

JPEG_FORMATS = ('.jpg', '.jpeg')
SUPPORTED_IMAGE_FORMATS = JPEG_FORMATS + ('.png', '.gif', '.bmp', '.tif', '.tiff', '.heic')

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DEFAULT_LOG_LEVEL = os.environ.get("BLUEPIC_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """
    Configure root logging for applications embedding the models.

    Args:
        level (str): Logging level name, e.g. "DEBUG" or "INFO"
    """
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
