"""
Parsers for Dockerfiles, extracting instructions and arguments.
"""
import json
import re
from typing import IO, List, Optional, Tuple, Union

from ..MODELS.dockerfile_ast import (
    AnyInstruction,
    CopyInstruction,
    DockerfileAST,
    EnvInstruction,
    ExposeInstruction,
    FromInstruction,
    InstructionKind,
    OtherInstruction,
)
from ..exceptions import DockerfileOpenError, DockerfileParseError

DEFAULT_ESCAPE = "\\"

_DIRECTIVE = re.compile(r'^#\s*([a-zA-Z][a-zA-Z0-9]*)\s*=\s*(.+?)\s*$')
_INSTRUCTION = re.compile(r'^\s*(\S+)(?:\s+(.*))?$', re.DOTALL)
_KEYWORD = re.compile(r'^[A-Za-z]+$')


class DockerfileParser:
    """
    Parser for Dockerfile instructions.

    Handles comments, parser directives, line continuations and the JSON
    (exec) form of arguments. Instructions the resolvers do not dispatch on are
    kept as OtherInstruction.
    """
    def parse(self, dockerfile_path: str) -> DockerfileAST:
        """
        Parses a Dockerfile from a file path.

        Args:
            dockerfile_path (str): Path to the Dockerfile.

        Returns:
            DockerfileAST: Parsed instructions.
        """
        try:
            with open(dockerfile_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DockerfileOpenError(f"opening dockerfile {dockerfile_path}: {e}") from e
        return self.parse_from_string(content)

    def parse_stream(self, stream: Union[IO[str], IO[bytes]]) -> DockerfileAST:
        """
        Parses a Dockerfile from an open text or binary stream.
        """
        content = stream.read()
        if isinstance(content, bytes):
            try:
                content = content.decode('utf-8')
            except UnicodeDecodeError as e:
                raise DockerfileParseError(f"dockerfile is not valid UTF-8: {e}") from e
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> DockerfileAST:
        """
        Parses a Dockerfile from a string content.

        Args:
            content (str): Content of the Dockerfile.

        Returns:
            DockerfileAST: Parsed instructions, in file order.

        Raises:
            DockerfileParseError: If an instruction is malformed.
        """
        content = content.lstrip('\ufeff')
        lines = content.splitlines()
        escape, first_line = self._read_directives(lines)

        instructions: List[AnyInstruction] = []
        buffer: List[str] = []
        start = 0

        for index in range(first_line, len(lines)):
            line = lines[index]
            stripped = line.strip()

            if not buffer:
                if not stripped or stripped.startswith('#'):
                    continue
                start = index + 1
            elif not stripped or stripped.startswith('#'):
                # Blank and comment lines inside a continuation are dropped
                continue

            trimmed = line.rstrip()
            if trimmed.endswith(escape):
                buffer.append(trimmed[:-1])
                continue

            buffer.append(line)
            instructions.append(self._parse_line(''.join(buffer), start, escape))
            buffer = []

        # A continuation on the last line still ends the instruction
        if buffer and ''.join(buffer).strip():
            instructions.append(self._parse_line(''.join(buffer), start, escape))

        return DockerfileAST(instructions=instructions)

    def parse_instruction(self, fragment: str) -> AnyInstruction:
        """
        Parses a single standalone instruction, such as an ONBUILD trigger.

        :param fragment: Instruction text, e.g. ``COPY app.py /app/``.
        :raises DockerfileParseError: If the fragment is not exactly one instruction.
        """
        ast = self.parse_from_string(fragment)
        if len(ast.instructions) != 1:
            raise DockerfileParseError(
                f"expected exactly one instruction, found {len(ast.instructions)} in {fragment!r}"
            )
        return ast.instructions[0]

    def _read_directives(self, lines: List[str]) -> Tuple[str, int]:
        """
        Reads parser directives at the top of the file.

        Only ``escape`` changes parsing. Directives end at the first line that is
        not one.
        """
        escape = DEFAULT_ESCAPE
        index = 0
        for index, line in enumerate(lines):
            match = _DIRECTIVE.match(line.strip())
            if not match:
                return escape, index
            name, value = match.group(1).lower(), match.group(2)
            if name == 'escape':
                if value not in ('\\', '`'):
                    raise DockerfileParseError(f"invalid escape token {value!r}", index + 1)
                escape = value
        return escape, len(lines)

    def _parse_line(self, text: str, line: int, escape: str) -> AnyInstruction:
        """
        Turns one logical line into a typed instruction.
        """
        match = _INSTRUCTION.match(text)
        if not match:
            raise DockerfileParseError(f"cannot parse instruction {text!r}", line)

        keyword = match.group(1)
        if not _KEYWORD.match(keyword):
            raise DockerfileParseError(f"unknown instruction {keyword!r}", line)
        keyword = keyword.upper()
        rest = (match.group(2) or '').strip()
        original = text.strip()

        if keyword == 'FROM':
            return self._parse_from(rest, original, line, escape)
        if keyword in ('ADD', 'COPY'):
            return self._parse_copy(keyword, rest, original, line, escape)
        if keyword == 'ENV':
            return self._parse_env(rest, original, line, escape)
        if keyword == 'EXPOSE':
            ports = split_words(rest, escape)
            return ExposeInstruction(
                keyword=keyword, arguments=ports, ports=ports, original=original, line=line
            )

        flags, args = _extract_flags(split_words(rest, escape))
        return OtherInstruction(
            keyword=keyword, arguments=args, flags=flags, original=original, line=line
        )

    def _parse_from(self, rest: str, original: str, line: int, escape: str) -> FromInstruction:
        flags, args = _extract_flags(split_words(rest, escape))
        stage_name: Optional[str] = None
        if len(args) == 3 and args[1].lower() == 'as':
            stage_name = args[2]
        elif len(args) != 1:
            raise DockerfileParseError(
                "FROM requires either one argument, or three: FROM <source> AS <name>", line
            )
        return FromInstruction(
            keyword='FROM', arguments=args, flags=flags, image=args[0],
            stage_name=stage_name, original=original, line=line,
        )

    def _parse_copy(self, keyword: str, rest: str, original: str, line: int,
                    escape: str) -> CopyInstruction:
        flags, remainder = _split_leading_flags(rest, escape)

        # Exec form: COPY ["src", "dest"]
        tokens: Optional[List[str]] = None
        if remainder.startswith('[') and remainder.endswith(']'):
            try:
                parsed = json.loads(remainder)
            except json.JSONDecodeError:
                # Not valid JSON, treat as shell form
                parsed = None
            if isinstance(parsed, list) and all(isinstance(p, str) for p in parsed):
                tokens = parsed
        if tokens is None:
            tokens = split_words(remainder, escape)

        # A trailing comment ends the argument list
        paths = []
        for token in tokens:
            if token.startswith('#'):
                break
            paths.append(token)

        if len(paths) < 2:
            raise DockerfileParseError(f"{keyword} requires at least two arguments", line)

        return CopyInstruction(
            kind=InstructionKind(keyword), keyword=keyword, arguments=tokens, flags=flags,
            sources=paths[:-1], destination=paths[-1], original=original, line=line,
        )

    def _parse_env(self, rest: str, original: str, line: int, escape: str) -> EnvInstruction:
        words = split_words(rest, escape)
        if not words:
            raise DockerfileParseError("ENV requires at least one argument", line)

        pairs: List[Tuple[str, str]] = []
        if '=' not in words[0]:
            # Legacy form: ENV name value with spaces
            parts = rest.split(None, 1)
            if len(parts) < 2:
                raise DockerfileParseError("ENV must have two arguments", line)
            pairs.append((parts[0], parts[1].strip()))
        else:
            for word in words:
                if '=' not in word:
                    raise DockerfileParseError(
                        f"can't find = in {word!r}. Must be of the form: name=value", line
                    )
                name, value = word.split('=', 1)
                if not name:
                    raise DockerfileParseError("ENV names can not be blank", line)
                pairs.append((name, value))

        return EnvInstruction(
            keyword='ENV', arguments=words, pairs=pairs, original=original, line=line
        )


def split_words(text: str, escape: str = DEFAULT_ESCAPE) -> List[str]:
    """
    Splits an argument string on whitespace outside of quotes.

    Quotes and escape characters stay in the words; they are interpreted later
    when a word is expanded.
    """
    words: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    in_word = False
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == escape and quote != "'" and i + 1 < len(text):
            current.append(ch)
            current.append(text[i + 1])
            in_word = True
            i += 2
            continue
        if quote:
            if ch == quote:
                quote = None
            current.append(ch)
        elif ch in ('"', "'"):
            quote = ch
            current.append(ch)
            in_word = True
        elif ch.isspace():
            if in_word:
                words.append(''.join(current))
                current = []
                in_word = False
        else:
            current.append(ch)
            in_word = True
        i += 1
    if in_word:
        words.append(''.join(current))
    return words


def _extract_flags(words: List[str]) -> Tuple[List[str], List[str]]:
    """Separates leading ``--flag`` words from the arguments."""
    flags = []
    index = 0
    for index, word in enumerate(words):
        if word == '--':
            return flags, words[index + 1:]
        if not word.startswith('--'):
            return flags, words[index:]
        flags.append(word)
    return flags, []


def _split_leading_flags(rest: str, escape: str) -> Tuple[List[str], str]:
    """
    Like _extract_flags, but keeps the remainder as text so the exec form can
    still be recognised.
    """
    flags = []
    remainder = rest
    while remainder.startswith('--'):
        words = split_words(remainder, escape)
        if not words:
            break
        flag = words[0]
        remainder = remainder[len(flag):].lstrip()
        if flag == '--':
            break
        flags.append(flag)
    return flags, remainder
