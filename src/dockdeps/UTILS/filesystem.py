"""
Filesystem access used by the resolvers, behind a small interface so tests can
substitute their own.
"""
import glob
import os
from abc import ABC, abstractmethod
from typing import IO, Iterator, List


class FileSystem(ABC):
    """Read-only filesystem interface."""

    @abstractmethod
    def open_text(self, path: str) -> IO[str]:
        """Open a file for reading text"""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a path exists"""
        pass

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Check if a path is a directory"""
        pass

    @abstractmethod
    def glob(self, pattern: str) -> List[str]:
        """Paths matching a shell glob pattern, sorted"""
        pass

    @abstractmethod
    def walk_files(self, root: str) -> Iterator[str]:
        """Every regular file below a directory, recursively"""
        pass


def _raise(error: OSError):
    raise error


class LocalFileSystem(FileSystem):
    """The real filesystem."""

    def open_text(self, path: str) -> IO[str]:
        return open(path, 'r', encoding='utf-8')

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def glob(self, pattern: str) -> List[str]:
        if not glob.has_magic(pattern):
            return [pattern] if os.path.lexists(pattern) else []
        return sorted(glob.glob(pattern))

    def walk_files(self, root: str) -> Iterator[str]:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            dirnames.sort()
            for name in sorted(filenames):
                yield os.path.join(dirpath, name)
