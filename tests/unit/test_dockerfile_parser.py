import io
import pytest

from dockdeps.MODELS.dockerfile_ast import InstructionKind
from dockdeps.PARSERS.dockerfile_parser import DockerfileParser, split_words
from dockdeps.exceptions import DockerfileOpenError, DockerfileParseError


def test_parse_from_string():
    content = """
    FROM python:3.9-slim AS base
    WORKDIR /app
    COPY . .
    RUN pip install -r requirements.txt \\
        && echo "done"
    ENV PORT=8080
    EXPOSE 8080 9090/udp
    CMD ["python", "app.py"]
    """
    parser = DockerfileParser()
    ast = parser.parse_from_string(content)

    kinds = [i.kind for i in ast.instructions]
    assert kinds == [
        InstructionKind.FROM,
        InstructionKind.OTHER,
        InstructionKind.COPY,
        InstructionKind.OTHER,
        InstructionKind.ENV,
        InstructionKind.EXPOSE,
        InstructionKind.OTHER,
    ]

    base = ast.instructions[0]
    assert base.image == "python:3.9-slim"
    assert base.stage_name == "base"

    run = ast.instructions[3]
    assert run.keyword == "RUN"
    assert '&& echo "done"' in run.original
    assert run.line == 5

    assert ast.instructions[4].pairs == [("PORT", "8080")]
    assert ast.instructions[5].ports == ["8080", "9090/udp"]


def test_keywords_are_case_insensitive():
    ast = DockerfileParser().parse_from_string("from alpine\ncopy a /b\n")
    assert ast.instructions[0].kind == InstructionKind.FROM
    assert ast.instructions[1].keyword == "COPY"


class TestCopy:
    """Tests for ADD/COPY argument handling."""

    def test_sources_and_destination(self):
        inst = DockerfileParser().parse_instruction("COPY a.txt b/ /dest/")
        assert inst.kind == InstructionKind.COPY
        assert inst.sources == ["a.txt", "b/"]
        assert inst.destination == "/dest/"
        assert inst.stage_source is None

    def test_add_kind(self):
        inst = DockerfileParser().parse_instruction("ADD https://example.com/x.tgz /x")
        assert inst.kind == InstructionKind.ADD
        assert inst.sources == ["https://example.com/x.tgz"]

    def test_flags_are_separated(self):
        inst = DockerfileParser().parse_instruction("COPY --chown=1:1 --from=builder /out /app")
        assert inst.flags == ["--chown=1:1", "--from=builder"]
        assert inst.stage_source == "builder"
        assert inst.sources == ["/out"]

    def test_exec_form(self):
        inst = DockerfileParser().parse_instruction('COPY ["my file.txt", "other", "/dst/"]')
        assert inst.sources == ["my file.txt", "other"]
        assert inst.destination == "/dst/"

    def test_exec_form_with_flag(self):
        inst = DockerfileParser().parse_instruction('COPY --from=build ["a", "/b"]')
        assert inst.stage_source == "build"
        assert inst.sources == ["a"]

    def test_trailing_comment_is_dropped(self):
        inst = DockerfileParser().parse_instruction("COPY a b /dst # copy things")
        assert inst.sources == ["a", "b"]
        assert inst.destination == "/dst"

    def test_quoted_source_keeps_quotes(self):
        inst = DockerfileParser().parse_instruction('COPY "my file" /dst')
        assert inst.sources == ['"my file"']

    def test_missing_destination(self):
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_instruction("COPY onlyone")


class TestEnv:
    """Tests for ENV forms."""

    def test_legacy_form(self):
        inst = DockerfileParser().parse_instruction("ENV GREETING hello world")
        assert inst.pairs == [("GREETING", "hello world")]

    def test_multiple_pairs(self):
        inst = DockerfileParser().parse_instruction('ENV A=1 B="two words" C=')
        assert inst.pairs == [("A", "1"), ("B", '"two words"'), ("C", "")]

    def test_missing_value(self):
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_instruction("ENV LONELY")

    def test_missing_equals(self):
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_instruction("ENV A=1 B")

    def test_blank_name(self):
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_instruction("ENV =value")


class TestStructure:
    """Tests for comments, continuations and directives."""

    def test_comments_inside_continuation(self):
        content = "COPY a \\\n# comment\n\n  b /dst\n"
        ast = DockerfileParser().parse_from_string(content)
        assert len(ast.instructions) == 1
        assert ast.instructions[0].sources == ["a", "b"]

    def test_continuation_on_last_line(self):
        ast = DockerfileParser().parse_from_string("FROM alpine\nRUN echo hi \\")
        assert ast.instructions[-1].keyword == "RUN"

    def test_escape_directive(self):
        content = "# escape=`\nFROM windows\nCOPY a `\n  b C:\\dst\n"
        ast = DockerfileParser().parse_from_string(content)
        assert ast.instructions[1].sources == ["a", "b"]
        assert ast.instructions[1].destination == "C:\\dst"

    def test_invalid_escape_directive(self):
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_from_string("# escape=x\nFROM alpine\n")

    def test_onbuild_is_not_dispatched(self):
        ast = DockerfileParser().parse_from_string("FROM a\nONBUILD COPY x /y\n")
        assert ast.instructions[1].kind == InstructionKind.OTHER
        assert ast.of_kind(InstructionKind.COPY) == []

    def test_from_with_platform(self):
        ast = DockerfileParser().parse_from_string("FROM --platform=linux/amd64 golang:1.21 AS build\n")
        inst = ast.instructions[0]
        assert inst.image == "golang:1.21"
        assert inst.stage_name == "build"
        assert inst.flags == ["--platform=linux/amd64"]

    def test_from_with_extra_arguments(self):
        with pytest.raises(DockerfileParseError) as exc:
            DockerfileParser().parse_from_string("FROM\talpine latest\n")
        assert exc.value.line == 1

    def test_unknown_instruction_syntax(self):
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_from_string("FROM alpine\n=== broken\n")

    def test_parse_instruction_requires_exactly_one(self):
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_instruction("")
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_instruction("COPY a /b\nCOPY c /d")


class TestSources:
    """Tests for reading from files and streams."""

    def test_parse_stream_bytes(self):
        ast = DockerfileParser().parse_stream(io.BytesIO(b"FROM scratch\nEXPOSE 80\n"))
        assert ast.instructions[1].ports == ["80"]

    def test_parse_stream_invalid_utf8(self):
        with pytest.raises(DockerfileParseError):
            DockerfileParser().parse_stream(io.BytesIO(b"FROM \xff\n"))

    def test_parse_path(self, tmp_path):
        dockerfile = tmp_path / "Dockerfile"
        dockerfile.write_text("FROM alpine\n")
        ast = DockerfileParser().parse(str(dockerfile))
        assert ast.instructions[0].image == "alpine"

    def test_parse_missing_path(self, tmp_path):
        with pytest.raises(DockerfileOpenError):
            DockerfileParser().parse(str(tmp_path / "missing"))


def test_split_words():
    assert split_words("a  'b c' \"d e\" f\\ g") == ["a", "'b c'", '"d e"', "f\\ g"]
    assert split_words("   ") == []
