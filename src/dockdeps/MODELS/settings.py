"""
Settings controlling how dependencies and base images are resolved.
"""
from typing import Dict, Optional
from pydantic import BaseModel, Field


class RegistryCredentials(BaseModel):
    """
    Basic auth credentials for one registry host.
    """
    username: str
    password: str


class ResolverSettings(BaseModel):
    """
    Settings for the resolvers and the image config providers.
    """
    # Ignore file looked up in the workspace root
    ignore_file_name: str = ".dockerignore"

    # Seconds before a registry or daemon request gives up; requests are not retried
    registry_timeout: float = Field(default=10.0, gt=0)

    docker_base_url: Optional[str] = None
    use_local_daemon: bool = True

    registry_credentials: Dict[str, RegistryCredentials] = {}
