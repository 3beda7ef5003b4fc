"""
Model of the base image metadata the resolvers need: exposed ports and
ONBUILD triggers.
"""
import json
from typing import Any, Dict, List, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageConfig(BaseModel):
    """
    Image configuration subset, keyed externally by the image reference string.

    The field aliases match the Docker and OCI JSON names, so a ``config``
    section can be validated directly.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    exposed_ports: Dict[str, Any] = Field(default_factory=dict, alias="ExposedPorts")
    on_build: List[str] = Field(default_factory=list, alias="OnBuild")

    @field_validator("exposed_ports", mode="before")
    @classmethod
    def _none_ports(cls, value):
        return {} if value is None else value

    @field_validator("on_build", mode="before")
    @classmethod
    def _none_triggers(cls, value):
        return [] if value is None else value

    @property
    def ports(self) -> List[str]:
        """Exposed port keys such as ``8080/tcp``."""
        return list(self.exposed_ports.keys())

    @classmethod
    def empty(cls) -> "ImageConfig":
        return cls()

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ImageConfig":
        """
        Builds an ImageConfig from an inspect document or a registry config blob.

        Both nest the interesting keys in a ``Config``/``config`` section. Keys are
        matched case-insensitively, as the Docker engine itself does.
        """
        section: Optional[Mapping[str, Any]] = None
        for key, value in document.items():
            if key.lower() == "config" and isinstance(value, Mapping):
                section = value
                break
        if section is None:
            section = document

        fields: Dict[str, Any] = {}
        for key, value in section.items():
            lowered = key.lower()
            if lowered == "exposedports":
                fields["ExposedPorts"] = value
            elif lowered == "onbuild":
                fields["OnBuild"] = value
        return cls.model_validate(fields)

    @classmethod
    def from_inspect_json(cls, raw: bytes) -> "ImageConfig":
        """
        Decodes the raw JSON returned by a local image inspection.

        :raises ValueError: If the bytes are not a JSON object.
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("image inspect output is not a JSON object")
        return cls.from_document(data)
