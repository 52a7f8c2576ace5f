"""
File utility functions.
"""

import base64
import json
from pathlib import Path
from typing import Any, Tuple, Union

from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_IMAGE_MIME = "image/jpeg"


def ensure_directory(directory: Union[Path, str]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        directory: Path to the directory

    Returns:
        Path object for the directory
    """
    path = Path(directory) if isinstance(directory, str) else directory
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_json(data: Any, filepath: Union[Path, str], indent: int = 2) -> None:
    """
    Save data to a JSON file, replacing whatever was there.

    The file is written next to its destination first and then moved into
    place so a reader never sees a half-written blob.

    Args:
        data: JSON-serialisable data
        filepath: Path to the JSON file
        indent: JSON indentation level
    """
    path = Path(filepath)
    ensure_directory(path.parent)

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)
    tmp_path.replace(path)

    logger.debug(f"Saved JSON to {path}")


def load_json(filepath: Union[Path, str]) -> Any:
    """
    Load data from a JSON file.

    Args:
        filepath: Path to the JSON file

    Returns:
        Loaded data

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    path = Path(filepath)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    logger.debug(f"Loaded JSON from {path}")
    return data


def read_upload_as_base64(upload) -> Tuple[str, str]:
    """
    Read an uploaded file (werkzeug ``FileStorage``) into base64 text.

    Returns:
        Tuple of (base64_data, mime_type)
    """
    raw = upload.read()
    if not raw:
        raise ValueError("Uploaded file is empty")
    mime_type = upload.mimetype or DEFAULT_IMAGE_MIME
    return base64.b64encode(raw).decode("ascii"), mime_type


def strip_data_url(data: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix if present."""
    if data.startswith("data:") and "," in data:
        return data.split(",", 1)[1]
    return data


def to_data_url(base64_data: str, mime_type: str = DEFAULT_IMAGE_MIME) -> str:
    return f"data:{mime_type};base64,{base64_data}"


def data_url_mime(data: str, default: str = DEFAULT_IMAGE_MIME) -> str:
    """Mime type of a data URL, or ``default`` for bare base64."""
    if data.startswith("data:") and ";" in data:
        return data[5:data.index(";")] or default
    return default
