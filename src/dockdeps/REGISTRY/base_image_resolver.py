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
Resolution of base image metadata (exposed ports and ONBUILD triggers),
reading through the image config cache.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from .image_cache import ImageConfigCache, default_cache
from .image_reference import is_scratch
from ..MODELS.image_config import ImageConfig
from ..MODELS.settings import ResolverSettings
from ..exceptions import ImageLookupError

logger = logging.getLogger(__name__)


class LocalImageInspector(ABC):
    """Looks up images present on the local machine."""

    @abstractmethod
    def inspect_raw(self, image: str) -> bytes:
        """Raw JSON inspect document of a local image"""
        pass


class RemoteConfigProvider(ABC):
    """Looks up image configurations in a remote registry."""

    @abstractmethod
    def fetch_config(self, image: str) -> ImageConfig:
        """Configuration of a remote image"""
        pass


class BaseImageResolver:
    """
    Returns the configuration of base images named in FROM instructions.

    The local inspector is asked first; any failure there falls back to the
    remote provider, whose failure is reported as ImageLookupError. Successful
    lookups are stored in the cache and reused for the rest of the process.
    """

    def __init__(self,
                 cache: Optional[ImageConfigCache] = None,
                 local: Optional[LocalImageInspector] = None,
                 remote: Optional[RemoteConfigProvider] = None,
                 settings: Optional[ResolverSettings] = None):
        """
        Initialize the resolver.

        Args:
            cache: Cache to read through, defaults to the process-wide one
            local: Local inspector, defaults to the Docker daemon when enabled
            remote: Remote provider, defaults to the registry client
            settings: Timeouts, daemon URL and registry credentials
        """
        self.cache = cache if cache is not None else default_cache
        self.settings = settings or ResolverSettings()
        self._local = local
        self._remote = remote

    @property
    def local(self) -> Optional[LocalImageInspector]:
        if self._local is None and self.settings.use_local_daemon:
            from .local_inspector import DockerImageInspector
            self._local = DockerImageInspector(
                base_url=self.settings.docker_base_url,
                timeout=self.settings.registry_timeout,
            )
        return self._local

    @property
    def remote(self) -> RemoteConfigProvider:
        if self._remote is None:
            from .registry_client import RegistryClient
            self._remote = RegistryClient(
                timeout=self.settings.registry_timeout,
                credentials=self.settings.registry_credentials,
            )
        return self._remote

    def resolve(self, image: str) -> ImageConfig:
        """
        Get the configuration of a base image.

        Args:
            image: Image reference exactly as written after FROM

        Returns:
            The image configuration; empty for scratch

        Raises:
            ImageLookupError: If neither the local nor the remote lookup succeeds
        """
        if is_scratch(image):
            logger.debug("SCRATCH base image found, skipping lookup: %s", image)
            return ImageConfig.empty()

        cached = self.cache.get(image)
        if cached is not None:
            logger.debug("Using cached configuration for %s", image)
            return cached

        config = self._retrieve(image)
        return self.cache.insert_if_absent(image, config)

    def onbuild_triggers(self, image: str) -> List[str]:
        """ONBUILD trigger instructions of a base image, in order."""
        config = self.resolve(image)
        logger.debug("Found onbuild triggers %s in image %s", config.on_build, image)
        return list(config.on_build)

    def exposed_ports(self, image: str) -> List[str]:
        """Port keys exposed by a base image, such as ``8080/tcp``."""
        return self.resolve(image).ports

    def _retrieve(self, image: str) -> ImageConfig:
        local = self.local
        if local is not None:
            try:
                raw = local.inspect_raw(image)
            except ImageLookupError as e:
                logger.debug("Local lookup of %s failed, trying the registry: %s", image, e)
            else:
                try:
                    return ImageConfig.from_inspect_json(raw)
                except ValueError as e:
                    raise ImageLookupError(f"decoding local image config for {image}: {e}") from e

        try:
            return self.remote.fetch_config(image)
        except ImageLookupError as e:
            raise ImageLookupError(f"getting remote config for {image}: {e}") from e
