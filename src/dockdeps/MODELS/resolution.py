"""
Results returned by the resolvers, carrying non-fatal warnings next to the data.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class WarningStage(str, Enum):
    """Where a non-fatal base image lookup failure happened."""

    ONBUILD = "onbuild"
    PORTS = "ports"


@dataclass(frozen=True)
class ResolutionWarning:
    """A base image whose metadata could not be retrieved."""

    image: str
    stage: WarningStage
    message: str

    def __str__(self) -> str:
        return f"{self.image} ({self.stage.value}): {self.message}"


@dataclass
class ResolutionResult:
    """Dependencies of a Dockerfile, possibly incomplete when warnings is not empty."""

    paths: List[str] = field(default_factory=list)
    warnings: List[ResolutionWarning] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.warnings


@dataclass
class PortsResult:
    """Ports declared by a Dockerfile or inherited from its base images."""

    ports: List[str] = field(default_factory=list)
    warnings: List[ResolutionWarning] = field(default_factory=list)
