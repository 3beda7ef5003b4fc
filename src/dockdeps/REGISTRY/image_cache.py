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
In-process cache of base image configurations.
Entries are written once per image reference and never invalidated.
"""

import threading
from typing import Dict, Optional

from ..MODELS.image_config import ImageConfig


class ImageConfigCache:
    """
    Thread-safe, write-once-per-key cache of ImageConfig keyed by the exact
    image reference string.

    Two callers missing the same key at once may both fetch; the first insert
    wins and both get the stored descriptor back.
    """

    def __init__(self):
        self._entries: Dict[str, ImageConfig] = {}
        self._lock = threading.Lock()

    def get(self, image: str) -> Optional[ImageConfig]:
        """
        Get a cached configuration.

        Args:
            image: Image reference exactly as written after FROM

        Returns:
            ImageConfig if cached, None otherwise
        """
        with self._lock:
            return self._entries.get(image)

    def insert_if_absent(self, image: str, config: ImageConfig) -> ImageConfig:
        """
        Store a configuration unless one is already cached for the reference.

        Args:
            image: Image reference
            config: Configuration fetched for it

        Returns:
            The configuration now stored for the reference
        """
        with self._lock:
            return self._entries.setdefault(image, config)

    def __contains__(self, image: str) -> bool:
        with self._lock:
            return image in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Shared by the module-level convenience functions; pass your own instance to
# isolate a resolver.
default_cache = ImageConfigCache()
