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
Registry client for reading image configurations.
Implements the parts of the Docker Registry HTTP API V2 needed to reach the
config blob of an image: token auth, manifests and blobs.
"""

import base64
import json
import logging
import platform
from typing import Any, Dict, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .image_reference import ImageReference
from ..MODELS.image_config import ImageConfig
from ..MODELS.settings import RegistryCredentials
from ..exceptions import RegistryError

logger = logging.getLogger(__name__)

MANIFEST_LIST_TYPES = (
    "application/vnd.docker.distribution.manifest.list.v2+json",
    "application/vnd.oci.image.index.v1+json",
)
MANIFEST_ACCEPT = ", ".join(
    [
        "application/vnd.docker.distribution.manifest.v2+json",
        "application/vnd.oci.image.manifest.v1+json",
        *MANIFEST_LIST_TYPES,
    ]
)

ARCH_MAP = {
    "x86_64": "amd64",
    "aarch64": "arm64",
    "armv7l": "arm",
    "i386": "386",
    "i686": "386",
}


class RegistryClient:
    """
    Reads image configurations from Docker Hub and OCI-compatible registries.

    Every request is attempted once with a bounded timeout; failures are
    reported to the caller rather than retried.
    """

    def __init__(self, timeout: float = 10.0,
                 credentials: Optional[Dict[str, RegistryCredentials]] = None):
        """
        Initialize the registry client.

        Args:
            timeout: Seconds before any single request gives up
            credentials: Basic auth credentials keyed by registry host
        """
        self.timeout = timeout
        self._credentials: Dict[str, RegistryCredentials] = dict(credentials or {})
        self._auth_tokens: Dict[str, str] = {}

    def fetch_config(self, image: str) -> ImageConfig:
        """
        Fetch the configuration of an image.

        Args:
            image: Image reference as written after FROM

        Returns:
            The image's exposed ports and ONBUILD triggers

        Raises:
            RegistryError: If the reference is invalid or any request fails
        """
        try:
            ref = ImageReference.parse(image)
        except ValueError as e:
            raise RegistryError(f"invalid image reference {image!r}: {e}") from e

        manifest = self.get_manifest(ref)
        document = self.get_config(ref, manifest)
        try:
            return ImageConfig.from_document(document)
        except ValueError as e:
            raise RegistryError(f"malformed config blob for {ref}: {e}") from e

    def _basic_auth(self, registry: str) -> Optional[str]:
        creds = self._credentials.get(registry)
        if not creds:
            return None
        auth = base64.b64encode(f"{creds.username}:{creds.password}".encode()).decode()
        return f"Basic {auth}"

    def _get_auth_token(self, ref: ImageReference) -> Optional[str]:
        """Get authentication token for a registry."""
        cache_key = f"{ref.registry}/{ref.repository}"
        if cache_key in self._auth_tokens:
            return self._auth_tokens[cache_key]

        # Docker Hub needs a bearer token even for anonymous pulls
        if ref.registry == "docker.io":
            token = self._get_docker_hub_token(ref)
            self._auth_tokens[cache_key] = token
            return token

        return self._basic_auth(ref.registry)

    def _get_docker_hub_token(self, ref: ImageReference) -> str:
        """Get a Docker Hub authentication token."""
        params = {
            "service": "registry.docker.io",
            "scope": f"repository:{ref.repository}:pull",
        }
        request = Request(f"https://auth.docker.io/token?{urlencode(params)}")

        basic = self._basic_auth("docker.io")
        if basic:
            request.add_header("Authorization", basic)

        content = self._open(request, f"getting Docker Hub token for {ref.repository}")
        try:
            return f"Bearer {json.loads(content.decode())['token']}"
        except (ValueError, KeyError) as e:
            raise RegistryError(f"malformed token response for {ref.repository}: {e}") from e

    def _open(self, request: Request, what: str) -> bytes:
        try:
            with urlopen(request, timeout=self.timeout) as response:
                return response.read()
        except HTTPError as e:
            raise RegistryError(f"{what}: HTTP {e.code} {e.reason}") from e
        except (URLError, OSError) as e:
            raise RegistryError(f"{what}: {e}") from e

    def _make_request(self, url: str, ref: ImageReference,
                      accept: Optional[str] = None) -> bytes:
        """Make an authenticated request to the registry."""
        request = Request(url)

        token = self._get_auth_token(ref)
        if token:
            request.add_header("Authorization", token)
        if accept:
            request.add_header("Accept", accept)

        logger.debug("GET %s", url)
        return self._open(request, f"requesting {url}")

    def _load_json(self, content: bytes, what: str) -> Dict[str, Any]:
        try:
            data = json.loads(content.decode())
        except ValueError as e:
            raise RegistryError(f"malformed {what}: {e}") from e
        if not isinstance(data, dict):
            raise RegistryError(f"malformed {what}: not a JSON object")
        return data

    def get_manifest(self, ref: ImageReference) -> Dict[str, Any]:
        """
        Get the image manifest, resolving multi-platform indexes.

        Args:
            ref: Image reference

        Returns:
            Manifest as a dictionary
        """
        content = self._make_request(ref.manifest_url, ref, MANIFEST_ACCEPT)
        manifest = self._load_json(content, f"manifest for {ref}")

        if manifest.get("mediaType") in MANIFEST_LIST_TYPES or (
            "manifests" in manifest and "config" not in manifest
        ):
            digest = self._select_platform_digest(ref, manifest)
            content = self._make_request(ref.with_digest(digest).manifest_url, ref, MANIFEST_ACCEPT)
            manifest = self._load_json(content, f"manifest for {ref}@{digest}")

        return manifest

    def _select_platform_digest(self, ref: ImageReference,
                                manifest_list: Dict[str, Any]) -> str:
        """Select the manifest digest for the current platform, else the first one."""
        os_name, arch = _current_platform()
        manifests = manifest_list.get("manifests") or []

        for manifest in manifests:
            if not isinstance(manifest, dict) or not manifest.get("digest"):
                continue
            platform_info = manifest.get("platform")
            if not isinstance(platform_info, dict):
                continue
            if platform_info.get("os") == os_name and platform_info.get("architecture") == arch:
                return manifest["digest"]

        for manifest in manifests:
            if isinstance(manifest, dict) and manifest.get("digest"):
                return manifest["digest"]

        raise RegistryError(f"no suitable manifest found for {ref}")

    def get_config(self, ref: ImageReference, manifest: Dict[str, Any]) -> Dict[str, Any]:
        """
        Get the image configuration blob.

        Args:
            ref: Image reference
            manifest: Image manifest

        Returns:
            Image configuration as a dictionary
        """
        config = manifest.get("config")
        digest = config.get("digest") if isinstance(config, dict) else None
        if not digest:
            raise RegistryError(f"no config digest in manifest for {ref}")

        content = self._make_request(ref.blob_url(digest), ref)
        return self._load_json(content, f"config blob for {ref}")


def _current_platform() -> Tuple[str, str]:
    """Map the Python platform to Docker's os/architecture names."""
    arch = platform.machine().lower()
    return platform.system().lower(), ARCH_MAP.get(arch, arch)
