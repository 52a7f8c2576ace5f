"""
Local persistent storage: independently keyed JSON blobs on disk.

Each key is one file, read when a store starts and overwritten wholesale on
every change. No versioning, last write wins.
"""

import json
from pathlib import Path
from typing import Any, List, Optional, Union

from jobflow.utils.file_utils import ensure_directory, load_json, save_json
from jobflow.utils.logger import get_logger

logger = get_logger(__name__)

JOBS_KEY = "jobflow_jobs"
PROFILE_KEY = "jobflow_profile"
RESUME_KEY = "jobflow_resume"


class JsonStorage:
    """Key-value store of JSON blobs, one file per key."""

    def __init__(self, data_dir: Union[Path, str]):
        """
        Initialize storage.

        Args:
            data_dir: Directory holding the ``<key>.json`` files
        """
        self.data_dir = ensure_directory(data_dir)
        logger.info(f"📁 Storage directory: {self.data_dir}")

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        """
        Read a blob.

        Returns:
            The decoded value, or None when the key was never written or
            its blob is not valid JSON
        """
        path = self._path(key)
        try:
            return load_json(path)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ Ignoring malformed blob for '{key}': {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        """Overwrite a blob."""
        save_json(value, self._path(key))

    def remove(self, key: str) -> bool:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.debug(f"Removed {path}")
            return True
        return False

    def keys(self) -> List[str]:
        return sorted(p.stem for p in self.data_dir.glob("*.json"))
