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
Image reference parsing for registry lookups.
Parses references like 'golang:1.21' or 'gcr.io/project/app@sha256:...'.
"""

from typing import Optional
from dataclasses import dataclass

SCRATCH = "scratch"


def is_scratch(reference: str) -> bool:
    """True for the empty base image, which has no configuration to look up."""
    return reference.lower() == SCRATCH


@dataclass(frozen=True)
class ImageReference:
    """
    Parsed image reference.

    Examples:
        - golang -> docker.io/library/golang:latest
        - myuser/app:v1 -> docker.io/myuser/app:v1
        - localhost:5000/app -> localhost:5000/app:latest
        - gcr.io/project/app:v2@sha256:abc -> pulled by digest, tag kept for display
    """

    registry: str
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    DEFAULT_REGISTRY = "docker.io"
    DEFAULT_TAG = "latest"

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse an image reference string.

        Args:
            reference: Image reference as written after FROM.

        Returns:
            Parsed ImageReference object.

        Raises:
            ValueError: If the reference is empty or has an empty component.
        """
        if not reference or not reference.strip():
            raise ValueError("Empty image reference")
        name = reference.strip()

        digest = None
        if "@" in name:
            name, digest = name.rsplit("@", 1)
            if not digest:
                raise ValueError(f"Empty digest in image reference {reference!r}")

        # A colon after the last slash separates the tag; before it, a port
        tag = None
        last_slash = name.rfind("/")
        last_colon = name.rfind(":")
        if last_colon > last_slash:
            name, tag = name[:last_colon], name[last_colon + 1:]
            if not tag:
                raise ValueError(f"Empty tag in image reference {reference!r}")

        parts = name.split("/")
        if any(not part for part in parts):
            raise ValueError(f"Invalid repository in image reference {reference!r}")

        first = parts[0]
        if len(parts) > 1 and ("." in first or ":" in first or first == "localhost"):
            registry = first
            repository = "/".join(parts[1:])
        else:
            registry = cls.DEFAULT_REGISTRY
            repository = name

        if registry == cls.DEFAULT_REGISTRY and "/" not in repository:
            repository = f"library/{repository}"

        if not tag and not digest:
            tag = cls.DEFAULT_TAG

        return cls(registry=registry, repository=repository, tag=tag, digest=digest)

    @property
    def full_name(self) -> str:
        """Get full image name with registry."""
        name = f"{self.registry}/{self.repository}"
        if self.tag:
            name = f"{name}:{self.tag}"
        if self.digest:
            name = f"{name}@{self.digest}"
        return name

    @property
    def manifest_reference(self) -> str:
        """Digest when pinned, tag otherwise."""
        return self.digest or self.tag or self.DEFAULT_TAG

    @property
    def registry_url(self) -> str:
        """Get the registry URL for API calls."""
        if self.registry == "docker.io":
            return "https://registry-1.docker.io"
        if "://" in self.registry:
            return self.registry
        if self.registry.startswith("localhost") or self.registry.startswith("127.0.0.1"):
            return f"http://{self.registry}"
        return f"https://{self.registry}"

    @property
    def manifest_url(self) -> str:
        return f"{self.registry_url}/v2/{self.repository}/manifests/{self.manifest_reference}"

    def blob_url(self, digest: str) -> str:
        return f"{self.registry_url}/v2/{self.repository}/blobs/{digest}"

    def with_digest(self, digest: str) -> "ImageReference":
        """Same repository, pinned to another manifest digest."""
        return ImageReference(registry=self.registry, repository=self.repository, digest=digest)

    def __str__(self) -> str:
        return self.full_name
