# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Exception hierarchy for dockdeps.

Every error raised on purpose by the library derives from DockdepsError, so a
build tool can catch one type and still tell the failing stage apart by the
concrete subclass.
"""


class DockdepsError(Exception):
    """Base exception for all dockdeps errors."""

    pass


# --- 1. Filesystem access ---
class DockdepsIOError(DockdepsError):
    """Base class for errors reading files from the workspace."""

    pass


class DockerfileOpenError(DockdepsIOError):
    """Raised when the Dockerfile cannot be opened or read."""

    pass


class PathExpansionError(DockdepsIOError):
    """Raised when a dependency path cannot be expanded to concrete files."""

    pass


class IgnoreFileError(DockdepsIOError):
    """Raised when an existing ignore file cannot be read or holds a bad pattern."""

    pass


# --- 2. Dockerfile syntax ---
class DockerfileParseError(DockdepsError):
    """Raised when Dockerfile syntax is malformed."""

    def __init__(self, message: str, line: int = 0):
        self.line = line
        if line:
            message = f"line {line}: {message}"
        super().__init__(message)


class OnbuildTriggerError(DockerfileParseError):
    """Raised when an ONBUILD trigger taken from a base image does not parse."""

    pass


class ExpansionError(DockdepsError):
    """Raised for malformed quoting, escaping or variable syntax in a word."""

    pass


# --- 3. Base image metadata ---
class ImageLookupError(DockdepsError):
    """Raised when the configuration of a base image cannot be retrieved."""

    pass


class LocalInspectError(ImageLookupError):
    """Raised when the local Docker daemon cannot inspect an image."""

    pass


class RegistryError(ImageLookupError):
    """Raised when a remote registry request fails."""

    pass


# --- 4. Settings ---
class ConfigurationError(DockdepsError):
    """Raised when the settings file or environment overrides are invalid."""

    pass
