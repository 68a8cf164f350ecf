import os
import logging
from pathlib import Path
from typing import Optional
from ..settings import settings

logger = logging.getLogger("dishwise.storage")


class LocalStorage:
    """Writes generated recipe images under the media root."""

    def __init__(self, root: Optional[Path] = None):
        self._root = root

    @property
    def root(self) -> Path:
        if self._root is None:
            self._root = Path(settings.media_root) if settings.media_root else (Path(os.getcwd()) / "media")
        return self._root

    def put_bytes(self, key: str, data: bytes, content_type: str = "image/webp") -> str:
        """
        Save bytes to local disk.
        key: recipes/generated/{image_id}.webp
        Returns: Public relative URL
        """
        if ".." in key or key.startswith("/"):
            raise ValueError("Invalid storage key")

        file_path = self.root / key
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "wb") as f:
            f.write(data)

        logger.info(f"Saved {len(data)} bytes ({content_type}) to {file_path}")
        return f"/media/{key}"


# Singleton
storage = LocalStorage()
