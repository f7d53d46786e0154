"""
Storage Interface - Abstract base class for all storage implementations.
Session and credit repositories are written against this contract, so the
local filesystem backend can be swapped for an object store later.
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class StorageError(Exception):
    """Raised by repositories when a record could not be persisted."""


class StorageInterface(ABC):
    """
    Abstract storage interface that defines the contract for all storage implementations.
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content to the specified path, replacing any previous content.

        Args:
            path: Relative path (e.g., "users/123/sessions/abc.json")
            content: Content to save (bytes or str)

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Returns:
            Optional[bytes]: File content as bytes, or None if file doesn't exist
        """
        pass

    @abstractmethod
    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """
        List files in the specified directory.

        Args:
            path: Directory path to list
            pattern: Optional glob pattern to filter files (e.g., "*.json")

        Returns:
            List[str]: Sorted relative file paths
        """
        pass
