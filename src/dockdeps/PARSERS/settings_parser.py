"""
Loads ResolverSettings from an optional YAML file and environment overrides.
"""
import os
import yaml
from typing import Any, Dict, Mapping, Optional
from pydantic import ValidationError

from ..MODELS.settings import ResolverSettings
from ..exceptions import ConfigurationError

ENV_OVERRIDES = {
    "DOCKDEPS_IGNORE_FILE": "ignore_file_name",
    "DOCKDEPS_REGISTRY_TIMEOUT": "registry_timeout",
    "DOCKDEPS_DOCKER_HOST": "docker_base_url",
    "DOCKDEPS_USE_LOCAL_DAEMON": "use_local_daemon",
}


def load_settings(path: Optional[str] = None,
                  environ: Optional[Mapping[str, str]] = None) -> ResolverSettings:
    """
    Builds settings from a YAML file, then applies DOCKDEPS_* variables.

    :param path: Settings file. None or a missing file means defaults.
    :param environ: Environment to read overrides from, defaults to os.environ.
    :raises ConfigurationError: If the file is not valid YAML or a value is invalid.
    """
    data: Dict[str, Any] = {}
    if path and os.path.exists(path):
        try:
            with open(path, 'r') as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"reading settings file {path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"settings file {path} must contain a mapping")
        data.update(loaded)

    if environ is None:
        environ = os.environ
    for var, key in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            data[key] = value

    try:
        return ResolverSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid settings: {e}") from e
