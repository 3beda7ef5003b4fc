"""
Extraction of the ports an image declares with EXPOSE or inherits from its
base images.
"""
import io
import logging
from typing import IO, List, Optional, Union

from ..MODELS.dockerfile_ast import InstructionKind
from ..MODELS.resolution import PortsResult, ResolutionWarning, WarningStage
from ..PARSERS.dockerfile_parser import DockerfileParser
from ..REGISTRY.base_image_resolver import BaseImageResolver
from ..REGISTRY.image_reference import is_scratch
from ..exceptions import ImageLookupError

logger = logging.getLogger(__name__)


class PortExtractor:
    """
    Collects exposed ports from a Dockerfile and its base images.
    """
    def __init__(self, base_images: Optional[BaseImageResolver] = None):
        """
        :param base_images: Resolver for FROM images, defaults to one on the process-wide cache.
        """
        self.base_images = base_images or BaseImageResolver()
        self.parser = DockerfileParser()

    def extract(self, dockerfile: Union[str, IO[str], IO[bytes]]) -> PortsResult:
        """
        Lists the ports of an image, sorted as strings and without duplicates.

        :param dockerfile: Dockerfile content or an open stream of it.
        :raises DockerfileParseError: If the Dockerfile is malformed.
        """
        if isinstance(dockerfile, str):
            dockerfile = io.StringIO(dockerfile)
        ast = self.parser.parse_stream(dockerfile)

        ports = set()
        warnings: List[ResolutionWarning] = []
        for instruction in ast.instructions:
            if instruction.kind == InstructionKind.FROM:
                base = instruction.image
                if is_scratch(base):
                    logger.debug("Skipping port check in SCRATCH base image.")
                    continue
                try:
                    inherited = self.base_images.exposed_ports(base)
                except ImageLookupError as e:
                    logger.warning("Error checking base image for ports: %s", e)
                    warnings.append(ResolutionWarning(image=base, stage=WarningStage.PORTS, message=str(e)))
                    continue
                for port in inherited:
                    logger.debug("Found port %s in base image", port)
                    ports.add(port)
            elif instruction.kind == InstructionKind.EXPOSE:
                # There can be multiple ports per line
                for port in instruction.ports:
                    logger.debug("Found port %s in Dockerfile", port)
                    ports.add(port)

        return PortsResult(ports=sorted(ports), warnings=warnings)


def ports_from_dockerfile(dockerfile: Union[str, IO[str], IO[bytes]]) -> List[str]:
    """
    Ports exposed by a Dockerfile and its base images, using the process-wide
    image cache.
    """
    return PortExtractor().extract(dockerfile).ports
