"""
Shared fixtures: stub image config providers that never touch a daemon or
the network, and a fresh cache per test.
"""
import io
import json
import pytest
from urllib.error import HTTPError

from dockdeps.MODELS.image_config import ImageConfig
from dockdeps.REGISTRY import registry_client
from dockdeps.REGISTRY.base_image_resolver import (
    BaseImageResolver,
    LocalImageInspector,
    RemoteConfigProvider,
)
from dockdeps.REGISTRY.image_cache import ImageConfigCache
from dockdeps.exceptions import LocalInspectError, RegistryError


class StubLocalInspector(LocalImageInspector):
    """Serves inspect documents from a dict and counts calls."""

    def __init__(self, images=None):
        self.images = images or {}
        self.calls = []

    def inspect_raw(self, image):
        self.calls.append(image)
        if image not in self.images:
            raise LocalInspectError(f"No such image: {image}")
        document = self.images[image]
        if isinstance(document, bytes):
            return document
        return json.dumps(document).encode()


class StubRemoteProvider(RemoteConfigProvider):
    """Serves ImageConfig objects from a dict and counts calls."""

    def __init__(self, images=None):
        self.images = images or {}
        self.calls = []

    def fetch_config(self, image):
        self.calls.append(image)
        if image not in self.images:
            raise RegistryError(f"manifest unknown: {image}")
        return self.images[image]


def inspect_document(ports=None, onbuild=None):
    """Shape of `docker image inspect` output."""
    return {
        "Id": "sha256:0123",
        "ContainerConfig": {"ExposedPorts": {"1/tcp": {}}},
        "Config": {
            "ExposedPorts": {p: {} for p in (ports or [])} or None,
            "OnBuild": onbuild,
        },
    }


@pytest.fixture
def cache():
    return ImageConfigCache()


@pytest.fixture
def local():
    return StubLocalInspector()


@pytest.fixture
def remote():
    return StubRemoteProvider()


@pytest.fixture
def base_images(cache, local, remote):
    return BaseImageResolver(cache=cache, local=local, remote=remote)


@pytest.fixture
def make_config():
    def _make(ports=None, onbuild=None):
        return ImageConfig(
            exposed_ports={p: {} for p in (ports or [])},
            on_build=list(onbuild or []),
        )
    return _make


@pytest.fixture
def make_inspect():
    return inspect_document


class FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class FakeRegistry:
    """Answers urlopen calls from a dict of URL to JSON document."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request, timeout=None):
        self.requests.append((request, timeout))
        url = request.full_url
        if url not in self.routes:
            raise HTTPError(url, 404, "Not Found", {}, None)
        return FakeResponse(json.dumps(self.routes[url]).encode())


@pytest.fixture
def fake_registry(monkeypatch):
    """Routes registry client requests to a FakeRegistry built from the given documents."""
    def install(routes):
        fake = FakeRegistry(routes)
        monkeypatch.setattr(registry_client, "urlopen", fake)
        return fake
    return install
