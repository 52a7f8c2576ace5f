"""Utility modules."""

from .logger import get_logger, setup_logging
from .file_utils import (
    ensure_directory,
    save_json,
    load_json,
    read_upload_as_base64,
    strip_data_url,
    to_data_url,
    data_url_mime,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "ensure_directory",
    "save_json",
    "load_json",
    "read_upload_as_base64",
    "strip_data_url",
    "to_data_url",
    "data_url_mime",
]
