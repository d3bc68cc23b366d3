"""JSON file storage: one <key>.json document per key."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union
from challenge_player.core.exceptions import StorageError
from challenge_player.utils.log import get_logger

logger = get_logger(__name__)


class JsonFileStorage:
    """Stores each document as a JSON file inside a directory."""

    def __init__(self, directory: Union[str, Path]):
        """
        Initialize JSON file storage.

        Args:
            directory: Directory holding the documents (created on first save).
        """
        self._directory = Path(directory)

    def path_for(self, key: str) -> Path:
        """File path a key is stored at."""
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Read the document stored under key.

        Returns:
            The document, or None if nothing is stored.

        Raises:
            StorageError: If the file cannot be read or is not a JSON object.
        """
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e
        if not isinstance(document, dict):
            raise StorageError(f"Expected a JSON object in {path}")
        return document

    def save(self, key: str, document: Dict[str, Any]) -> None:
        """
        Write document under key, replacing the file atomically.

        Raises:
            StorageError: If the file cannot be written.
        """
        path = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self._directory), prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Could not write {path}: {e}") from e
        logger.debug(f"Saved {path}")
