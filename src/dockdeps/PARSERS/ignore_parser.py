"""
Parsers for .dockerignore files.
"""
import posixpath
from typing import IO, List

from ..exceptions import IgnoreFileError


class DockerIgnoreParser:
    """
    Parser for .dockerignore files, reading patterns the way the Docker CLI does.
    """
    @staticmethod
    def parse(stream: IO[str]) -> List[str]:
        """
        Reads exclusion patterns from an open ignore file.

        Args:
            stream: Text stream of the ignore file.

        Returns:
            List[str]: Patterns in file order, negations keeping their ``!``.
        """
        return DockerIgnoreParser.parse_from_string(stream.read())

    @staticmethod
    def parse_from_string(content: str) -> List[str]:
        """
        Parses exclusion patterns from a string.
        Drops comments and blank lines, cleans each path and strips a leading slash.

        Raises:
            IgnoreFileError: If a line is a bare ``!`` or has an unclosed ``[``.
        """
        patterns = []
        for number, line in enumerate(content.lstrip('\ufeff').splitlines(), start=1):
            # Only a '#' in the very first column starts a comment
            if line.startswith('#'):
                continue
            pattern = line.strip()
            if not pattern:
                continue

            invert = pattern.startswith('!')
            if invert:
                pattern = pattern[1:].strip()
                if not pattern:
                    raise IgnoreFileError(f"line {number}: illegal exclusion pattern '!'")

            pattern = posixpath.normpath(pattern)
            if len(pattern) > 1 and pattern.startswith('/'):
                pattern = pattern.lstrip('/')
            if pattern.count('[') > pattern.count(']'):
                raise IgnoreFileError(f"line {number}: syntax error in pattern {pattern!r}")

            patterns.append(f"!{pattern}" if invert else pattern)
        return patterns
