"""
Utilities for expanding Dockerfile words against an environment.
"""
from typing import List, Mapping, Optional

from ..exceptions import ExpansionError

_EOF = ''


class ShellWordExpander:
    """
    Expands quoting, escapes and variable references in a single word, the way
    the Docker builder processes ADD/COPY/ENV arguments.

    Supports '...', "...", $VAR, ${VAR}, ${VAR:-default}, ${VAR:+value},
    ${VAR-default} and ${VAR+value}. Unset variables expand to an empty string.
    """
    def __init__(self, escape: str = "\\"):
        """
        :param escape: The escape character, ``\\`` or the backtick.
        """
        self.escape = escape

    def process_word(self, word: str, env: Mapping[str, str]) -> str:
        """
        Expands a word using the given environment.

        :param word: The raw word, quotes and escapes included.
        :param env: Variables visible to the word. Never read from os.environ.
        :return: The expanded word.
        :raises ExpansionError: On unterminated quotes or malformed substitutions.
        """
        return _Lexer(word, env, self.escape).process_stop_on(_EOF)


class _Lexer:
    """
    Single-use scanner over one word.
    """
    def __init__(self, word: str, env: Mapping[str, str], escape: str):
        self.word = word
        self.env = env
        self.escape = escape
        self.pos = 0

    def peek(self) -> str:
        if self.pos >= len(self.word):
            return _EOF
        return self.word[self.pos]

    def next(self) -> str:
        ch = self.peek()
        if ch != _EOF:
            self.pos += 1
        return ch

    def process_stop_on(self, stop: str) -> str:
        result: List[str] = []
        while True:
            ch = self.peek()
            if ch == _EOF:
                if stop != _EOF:
                    raise ExpansionError(
                        f"unexpected end of statement while looking for matching {stop} in {self.word!r}"
                    )
                break
            if ch == stop:
                self.next()
                break
            if ch == "'":
                result.append(self.process_single_quote())
            elif ch == '"':
                result.append(self.process_double_quote())
            elif ch == '$':
                result.append(self.process_dollar())
            else:
                self.next()
                if ch == self.escape:
                    # An escape at the very end of the word is dropped
                    ch = self.next()
                    if ch == _EOF:
                        break
                result.append(ch)
        return ''.join(result)

    def process_single_quote(self) -> str:
        self.next()
        result: List[str] = []
        while True:
            ch = self.next()
            if ch == _EOF:
                raise ExpansionError(
                    f"unexpected end of statement while looking for matching single-quote in {self.word!r}"
                )
            if ch == "'":
                return ''.join(result)
            result.append(ch)

    def process_double_quote(self) -> str:
        self.next()
        result: List[str] = []
        while True:
            ch = self.peek()
            if ch == _EOF:
                raise ExpansionError(
                    f"unexpected end of statement while looking for matching double-quote in {self.word!r}"
                )
            if ch == '"':
                self.next()
                return ''.join(result)
            if ch == '$':
                result.append(self.process_dollar())
                continue
            self.next()
            if ch == self.escape:
                following = self.peek()
                if following == _EOF:
                    continue
                if following in ('"', '$', self.escape):
                    ch = self.next()
            result.append(ch)

    def process_dollar(self) -> str:
        self.next()
        if self.peek() != '{':
            name = self.process_name()
            if not name:
                return '$'
            return self.env.get(name, '')

        self.next()
        name = self.process_name()
        if not name:
            raise ExpansionError(f"bad substitution in {self.word!r}")
        value: Optional[str] = self.env.get(name)

        ch = self.next()
        if ch == '}':
            return value or ''
        if ch == _EOF:
            raise ExpansionError(f"missing '}}' in substitution in {self.word!r}")

        colon = ch == ':'
        if colon:
            ch = self.next()
        if ch not in ('-', '+'):
            raise ExpansionError(f"unsupported modifier ({ch}) in substitution in {self.word!r}")
        word = self.process_stop_on('}')

        if colon:
            is_set = bool(value)
        else:
            is_set = value is not None
        if ch == '-':
            return (value or '') if is_set else word
        return word if is_set else ''

    def process_name(self) -> str:
        name: List[str] = []
        ch = self.peek()
        if ch.isdigit():
            while ch != _EOF and ch.isdigit():
                name.append(self.next())
                ch = self.peek()
            return ''.join(name)
        while ch != _EOF and (ch == '_' or ch.isalnum()):
            name.append(self.next())
            ch = self.peek()
        return ''.join(name)
