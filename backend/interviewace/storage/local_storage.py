"""
Local Filesystem Storage Implementation.
Stores every record as a file below a base directory on the server.
"""

import logging
import os
import uuid
import aiofiles
from pathlib import Path
from typing import Optional, List
from .interface import StorageInterface

logger = logging.getLogger(__name__)


class LocalStorage(StorageInterface):
    """
    Local filesystem storage implementation.
    Writes go to a temporary sibling file first and are then renamed into
    place, so readers never observe a half-written record.
    """

    def __init__(self, base_dir: str = "./data"):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all stored files
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, path: str) -> Path:
        """Convert relative path to full absolute path within base directory."""
        full_path = (self.base_dir / path).resolve()

        # Security check: ensure path is within base_dir
        if not full_path.is_relative_to(self.base_dir):
            raise ValueError(f"Invalid path: {path} - path traversal detected")

        return full_path

    async def save(self, path: str, content: bytes | str) -> bool:
        """Save content to local filesystem."""
        try:
            full_path = self._get_full_path(path)
            full_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = full_path.with_name(f".{full_path.name}.{uuid.uuid4().hex}.tmp")

            if isinstance(content, str):
                async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
                    await f.write(content)
            else:
                async with aiofiles.open(tmp_path, 'wb') as f:
                    await f.write(content)

            os.replace(tmp_path, full_path)
            return True
        except Exception as e:
            logger.error(f"Error saving file {path}: {e}", exc_info=True)
            return False

    async def load(self, path: str) -> Optional[bytes]:
        """Load content from local filesystem."""
        full_path = self._get_full_path(path)
        if not full_path.exists():
            return None

        async with aiofiles.open(full_path, 'rb') as f:
            return await f.read()

    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """List files in directory."""
        full_path = self._get_full_path(path)
        if not full_path.exists():
            return []

        files = [p for p in full_path.glob(pattern or "*") if p.is_file()]
        return sorted(
            str(p.relative_to(self.base_dir))
            for p in files
            if not p.name.startswith(".")
        )
