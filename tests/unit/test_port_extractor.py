"""
Unit tests for PortExtractor.
"""
import io
import pytest

from dockdeps.MODELS.resolution import WarningStage
from dockdeps.REGISTRY.base_image_resolver import BaseImageResolver
from dockdeps.REGISTRY.registry_client import RegistryClient
from dockdeps.RESOLVERS.port_extractor import PortExtractor, ports_from_dockerfile
from dockdeps.exceptions import DockerfileParseError


@pytest.fixture
def extractor(base_images):
    return PortExtractor(base_images)


class TestPortExtractor:
    """Tests for EXPOSE and inherited ports."""

    def test_sorted_as_strings(self, extractor):
        result = extractor.extract("FROM scratch\nEXPOSE 80 443\nEXPOSE 8080\n")
        assert result.ports == ["443", "80", "8080"]
        assert result.warnings == []

    def test_scratch_is_skipped(self, extractor, local, remote):
        extractor.extract("FROM scratch\n")
        assert local.calls == []
        assert remote.calls == []

    def test_inherited_ports(self, extractor, local, make_inspect):
        local.images["nginx:1.25"] = make_inspect(ports=["80/tcp"])
        result = extractor.extract("FROM nginx:1.25\nEXPOSE 8443/tcp\n")
        assert result.ports == ["80/tcp", "8443/tcp"]

    def test_duplicates_collapse(self, extractor, remote, make_config):
        remote.images["app"] = make_config(ports=["80"])
        result = extractor.extract("FROM app\nEXPOSE 80\nEXPOSE 80\n")
        assert result.ports == ["80"]

    def test_every_stage_contributes(self, extractor, remote, make_config):
        remote.images["one"] = make_config(ports=["1/tcp"])
        remote.images["two"] = make_config(ports=["2/tcp"])
        result = extractor.extract("FROM one AS a\nFROM two\n")
        assert result.ports == ["1/tcp", "2/tcp"]

    def test_lookup_failure_is_a_warning(self, extractor):
        result = extractor.extract("FROM missing\nEXPOSE 9000\n")
        assert result.ports == ["9000"]
        assert len(result.warnings) == 1
        assert result.warnings[0].stage == WarningStage.PORTS
        assert result.warnings[0].image == "missing"

    def test_malformed_remote_config_is_a_warning(self, cache, local, fake_registry):
        base = "https://registry.example.com/v2/team/app"
        fake_registry({
            f"{base}/manifests/1.0": {"config": {"digest": "sha256:cfg"}},
            f"{base}/blobs/sha256:cfg": {"config": {"ExposedPorts": ["80/tcp"]}},
        })
        extractor = PortExtractor(BaseImageResolver(cache=cache, local=local, remote=RegistryClient()))
        result = extractor.extract("FROM registry.example.com/team/app:1.0\nEXPOSE 9000\n")
        assert result.ports == ["9000"]
        assert result.warnings[0].stage == WarningStage.PORTS

    def test_binary_stream(self, extractor):
        result = extractor.extract(io.BytesIO(b"FROM scratch\nEXPOSE 53/udp\n"))
        assert result.ports == ["53/udp"]

    def test_variables_are_not_expanded(self, extractor):
        result = extractor.extract("FROM scratch\nENV PORT=80\nEXPOSE $PORT\n")
        assert result.ports == ["$PORT"]

    def test_malformed(self, extractor):
        with pytest.raises(DockerfileParseError):
            extractor.extract("FROM a b\n")


def test_ports_from_dockerfile():
    assert ports_from_dockerfile("FROM scratch\nEXPOSE 3000\n") == ["3000"]
