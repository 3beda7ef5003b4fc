"""
Expansion of dependency paths into the concrete files they cover.
"""
import logging
import os
import posixpath
from typing import Iterable, List, Optional

from .filesystem import FileSystem, LocalFileSystem
from ..exceptions import PathExpansionError

logger = logging.getLogger(__name__)


def join_workspace(workspace: str, path: str) -> str:
    """
    Joins a Dockerfile path to the workspace root.

    Absolute paths are taken relative to the workspace too, as the build
    context is the root of every ADD/COPY source. ``..`` cannot climb above it.
    """
    rooted = posixpath.normpath('/' + path).lstrip('/')
    return posixpath.normpath(posixpath.join(workspace, rooted))


def expand_paths(workspace: str, paths: Iterable[str],
                 fs: Optional[FileSystem] = None) -> List[str]:
    """
    Expands glob patterns and directories into the files they contain.

    :param workspace: Root that relative paths are joined to.
    :param paths: Dependency paths or glob patterns.
    :param fs: Filesystem to read, defaults to the local one.
    :return: Sorted, deduplicated file paths.
    :raises PathExpansionError: If a pattern matches nothing or a directory cannot be read.
    """
    fs = fs or LocalFileSystem()
    paths = list(paths)
    files = set()
    for path in paths:
        if not os.path.isabs(path):
            path = os.path.join(workspace, path)

        matches = fs.glob(path)
        if not matches:
            raise PathExpansionError(f"File pattern must match at least one file {path}")

        for match in matches:
            if not fs.is_dir(match):
                files.add(match)
                continue
            try:
                for found in fs.walk_files(match):
                    files.add(found)
            except OSError as e:
                raise PathExpansionError(f"walking directory {match}: {e}") from e

    logger.debug("Expanded %d dependency paths into %d files", len(paths), len(files))
    return sorted(files)
