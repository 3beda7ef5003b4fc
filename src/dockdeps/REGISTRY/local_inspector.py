"""
Local image inspection through the Docker daemon.
"""
import json
import logging
from typing import Optional

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from ..exceptions import LocalInspectError

logger = logging.getLogger(__name__)


class DockerImageInspector:
    """
    Returns the raw inspect document of images already present on the local
    Docker daemon. The client is created on first use, so constructing the
    inspector never needs a running daemon.
    """
    def __init__(self, base_url: Optional[str] = None, timeout: float = 10.0):
        """
        :param base_url: Daemon socket URL, None to use the DOCKER_* environment.
        :param timeout: Seconds before a daemon request gives up.
        """
        self.base_url = base_url
        self.timeout = timeout
        self._client = None

    def _get_client(self):
        if self._client is None:
            try:
                if self.base_url:
                    self._client = docker.DockerClient(base_url=self.base_url, timeout=int(self.timeout))
                else:
                    self._client = docker.from_env(timeout=int(self.timeout))
            except (DockerException, RequestException) as e:
                raise LocalInspectError(f"connecting to the Docker daemon: {e}") from e
        return self._client

    def inspect_raw(self, image: str) -> bytes:
        """
        Inspect an image on the local daemon.

        :param image: Image reference as written after FROM.
        :return: The inspect document as JSON bytes.
        :raises LocalInspectError: If the daemon is unreachable or lacks the image.
        """
        client = self._get_client()
        try:
            inspect = client.api.inspect_image(image)
        except (DockerException, RequestException) as e:
            raise LocalInspectError(f"inspecting local image {image}: {e}") from e
        logger.debug("Found image %s on the local daemon", image)
        return json.dumps(inspect).encode('utf-8')
