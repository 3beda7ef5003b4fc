import pytest
import os
from dockdeps.PARSERS.dockerfile_parser import DockerfileParser
from dockdeps.RESOLVERS.dependency_resolver import DependencyResolver
from dockdeps.UTILS.path_expansion import join_workspace
from dockdeps.exceptions import PathExpansionError


def test_path_traversal_join():
    """
    Sources are rooted at the build context; '..' cannot leave it.
    """
    assert join_workspace("/ws", "../../etc/passwd") == "/ws/etc/passwd"
    assert join_workspace("/ws", "/../secret") == "/ws/secret"
    assert join_workspace("/ws", "a/../../b") == "/ws/b"


def test_path_traversal_resolve(tmp_path, base_images):
    """
    A Dockerfile copying from outside the context never lists outside files.
    """
    workspace = tmp_path / "ctx"
    workspace.mkdir()
    (tmp_path / "secret.txt").write_text("outside")
    (workspace / "Dockerfile").write_text("FROM scratch\nCOPY ../secret.txt /\n")

    resolver = DependencyResolver(base_images=base_images)
    with pytest.raises(PathExpansionError):
        resolver.resolve("Dockerfile", str(workspace))


def test_variables_do_not_read_process_environment(tmp_path, base_images, monkeypatch):
    """
    Only ENV instructions feed expansion; the host environment is invisible.
    """
    monkeypatch.setenv("HOST_ONLY", "leak")
    (tmp_path / "Dockerfile").write_text("FROM scratch\nCOPY app${HOST_ONLY}.go /\n")
    (tmp_path / "app.go").write_text("")

    result = DependencyResolver(base_images=base_images).resolve("Dockerfile", str(tmp_path))
    assert result.paths == [
        os.path.join(str(tmp_path), "Dockerfile"),
        os.path.join(str(tmp_path), "app.go"),
    ]


def test_symlinked_directory_is_not_followed(tmp_path, base_images):
    """
    Walking a directory does not descend into symlinked directories.
    """
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "private.key").write_text("")
    workspace = tmp_path / "ctx"
    (workspace / "src").mkdir(parents=True)
    (workspace / "src" / "main.go").write_text("")
    try:
        os.symlink(str(outside), str(workspace / "src" / "link"))
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")
    (workspace / "Dockerfile").write_text("FROM scratch\nCOPY src /src\n")

    result = DependencyResolver(base_images=base_images).resolve("Dockerfile", str(workspace))
    assert result.paths == [
        os.path.join(str(workspace), "Dockerfile"),
        os.path.join(str(workspace), "src", "main.go"),
    ]


def test_huge_continuation_parse():
    """
    A very long continued instruction is parsed without recursion.
    """
    content = "COPY " + "a \\\n" * 20000 + "/dst\n"
    ast = DockerfileParser().parse_from_string(content)
    assert len(ast.instructions[0].sources) == 20000
