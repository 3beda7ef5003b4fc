"""
Removal of .dockerignore'd paths from a dependency list.
"""
import logging
import os
from typing import Iterable, List, Optional

import pathspec

from ..PARSERS.ignore_parser import DockerIgnoreParser
from ..UTILS.filesystem import FileSystem, LocalFileSystem
from ..exceptions import IgnoreFileError

logger = logging.getLogger(__name__)


def read_ignore_patterns(ignore_file_path: str, fs: Optional[FileSystem] = None) -> List[str]:
    """
    Reads the exclusion patterns of an ignore file.

    A missing file yields no patterns. An existing one also excludes itself.

    :raises IgnoreFileError: If the file exists but cannot be read or parsed.
    """
    fs = fs or LocalFileSystem()
    if not fs.exists(ignore_file_path):
        return []
    try:
        with fs.open_text(ignore_file_path) as f:
            patterns = DockerIgnoreParser.parse(f)
    except (OSError, UnicodeDecodeError) as e:
        raise IgnoreFileError(f"reading {ignore_file_path}: {e}") from e
    patterns.append(os.path.basename(ignore_file_path))
    return patterns


def build_matcher(patterns: List[str]) -> pathspec.PathSpec:
    """
    Compiles ignore patterns anchored at the ignore file's directory.

    Docker patterns always start at the context root, so each is anchored
    before handing it to the gitwildmatch engine.
    """
    anchored = []
    for pattern in patterns:
        if pattern.startswith('!'):
            anchored.append(f"!/{pattern[1:]}")
        else:
            anchored.append(f"/{pattern}")
    try:
        return pathspec.PathSpec.from_lines("gitwildmatch", anchored)
    except ValueError as e:
        raise IgnoreFileError(f"invalid ignore pattern: {e}") from e


def apply_docker_ignore(paths: Iterable[str], ignore_file_path: str,
                        fs: Optional[FileSystem] = None) -> List[str]:
    """
    Filters out paths excluded by an ignore file.

    :param paths: Candidate paths, absolute or relative to the current directory.
    :param ignore_file_path: The ignore file; its directory is the root patterns are matched from.
    :param fs: Filesystem to read the ignore file from.
    :return: Absolute paths that are not excluded, sorted.
    :raises IgnoreFileError: If the ignore file exists but is unreadable or malformed.
    """
    abs_paths = [os.path.abspath(p) for p in paths]
    patterns = read_ignore_patterns(ignore_file_path, fs)
    if not patterns:
        return sorted(set(abs_paths))

    root = os.path.dirname(os.path.abspath(ignore_file_path))
    matcher = build_matcher(patterns)

    filtered = set()
    for path in abs_paths:
        relative = os.path.relpath(path, root)
        if relative == os.curdir or relative.startswith(os.pardir + os.sep) or relative == os.pardir:
            filtered.add(path)
            continue
        if matcher.match_file(relative.replace(os.sep, '/')):
            logger.debug("Excluding %s, matched by %s", path, ignore_file_path)
            continue
        filtered.add(path)
    return sorted(filtered)
