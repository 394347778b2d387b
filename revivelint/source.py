"""A structural reader for Go source files.

It finds the package clause, the comment groups and the top-level function
declarations, and maps character offsets to file positions.
"""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass, field
from typing import NamedTuple

from .model import Position

INVALID_RECEIVER = "invalid-type"

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {close: open_ for open_, close in _OPENERS.items()}


class SourceSyntaxError(ValueError):
    """Raised when a file cannot be read as Go source."""

    def __init__(self, message: str, position: Position) -> None:
        super().__init__(f"{position}: {message}")
        self.message = message
        self.position = position


@dataclass(frozen=True)
class Comment:
    """A group of adjacent comments."""

    raw: tuple[str, ...]
    start: int
    end: int

    @property
    def text(self) -> str:
        """The comment text without markers, blank runs collapsed, newline-terminated."""
        lines: list[str] = []
        for comment in self.raw:
            if comment.startswith("//"):
                body = comment[2:]
                if body.startswith(" "):
                    body = body[1:]
            else:
                body = comment[2:-2]
            lines.extend(body.split("\n"))
        kept: list[str] = []
        for line in (line.rstrip(" \t\n\r") for line in lines):
            if line or (kept and kept[-1]):
                kept.append(line)
        if kept and kept[-1]:
            kept.append("")
        return "\n".join(kept)


@dataclass(frozen=True)
class FuncDecl:
    """A top-level function or method declaration.

    ``receiver`` is the receiver's type name without ``*``, ``"invalid-type"``
    for an ill-formed receiver, or None for a plain function.
    """

    name: str
    receiver: str | None
    start: int
    end: int


class _LineIndex:
    def __init__(self, text: str) -> None:
        self._text = text
        self._starts = [0]
        self._byte_starts = [0]
        byte_offset = 0
        for offset, ch in enumerate(text):
            byte_offset += len(ch.encode("utf-8", "surrogatepass"))
            if ch == "\n":
                self._starts.append(offset + 1)
                self._byte_starts.append(byte_offset)

    def line(self, offset: int) -> int:
        return bisect.bisect_right(self._starts, offset)

    def locate(self, filename: str, offset: int) -> Position:
        if not 0 <= offset <= len(self._text):
            raise ValueError(f"offset {offset} outside of {filename!r}")
        line = self.line(offset)
        line_start = self._starts[line - 1]
        prefix = self._text[line_start:offset].encode("utf-8", "surrogatepass")
        return Position(
            filename=filename,
            offset=self._byte_starts[line - 1] + len(prefix),
            line=line,
            column=len(prefix) + 1,
        )


@dataclass
class ParsedSource:
    """The structure of one Go source file."""

    name: str
    content: str
    package_name: str
    comments: list[Comment] = field(default_factory=list)
    funcs: list[FuncDecl] = field(default_factory=list)
    _index: _LineIndex = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._index = _LineIndex(self.content)

    def position(self, offset: int) -> Position:
        """The file position of a character offset."""
        return self._index.locate(self.name, offset)


class _Kind(enum.Enum):
    IDENT = enum.auto()
    LITERAL = enum.auto()
    PUNCT = enum.auto()
    COMMENT = enum.auto()


class _Token(NamedTuple):
    kind: _Kind
    text: str
    start: int
    end: int


class _Parser:
    def __init__(self, name: str, text: str) -> None:
        self.name = name
        self.text = text
        self.index = _LineIndex(text)
        self.tokens = list(self._scan())
        self.code = [t for t in self.tokens if t.kind is not _Kind.COMMENT]
        self.matches = self._match_brackets()

    def error(self, offset: int, message: str) -> SourceSyntaxError:
        return SourceSyntaxError(message, self.index.locate(self.name, offset))

    def _found(self, pos: int) -> tuple[int, str]:
        if pos >= len(self.code):
            return len(self.text), "'EOF'"
        token = self.code[pos]
        return token.start, f"{token.text!r}"

    def _scan(self):
        text = self.text
        size = len(text)
        i = 0
        while i < size:
            ch = text[i]
            if ch in " \t\r\n" or (ch == "\ufeff" and i == 0):
                i += 1
                continue
            start = i
            if text.startswith("//", i):
                end = text.find("\n", i)
                end = size if end < 0 else end
                yield _Token(_Kind.COMMENT, text[start:end], start, end)
            elif text.startswith("/*", i):
                end = text.find("*/", i + 2)
                if end < 0:
                    raise self.error(start, "comment not terminated")
                end += 2
                yield _Token(_Kind.COMMENT, text[start:end], start, end)
            elif ch == "`":
                end = text.find("`", i + 1)
                if end < 0:
                    raise self.error(start, "raw string literal not terminated")
                end += 1
                yield _Token(_Kind.LITERAL, text[start:end], start, end)
            elif ch in "\"'":
                end = self._quoted_end(start)
                yield _Token(_Kind.LITERAL, text[start:end], start, end)
            elif ch.isalpha() or ch == "_":
                end = i + 1
                while end < size and (text[end].isalnum() or text[end] == "_"):
                    end += 1
                yield _Token(_Kind.IDENT, text[start:end], start, end)
            elif ch.isdecimal() or (
                ch == "." and i + 1 < size and text[i + 1].isdecimal()
            ):
                end = self._number_end(start)
                yield _Token(_Kind.LITERAL, text[start:end], start, end)
            else:
                end = i + 1
                yield _Token(_Kind.PUNCT, ch, start, end)
            i = end

    def _quoted_end(self, start: int) -> int:
        text = self.text
        quote = text[start]
        j = start + 1
        while j < len(text):
            ch = text[j]
            if ch == "\\":
                j += 2
                continue
            if ch == "\n":
                break
            if ch == quote:
                return j + 1
            j += 1
        kind = "string" if quote == '"' else "rune"
        raise self.error(start, f"{kind} literal not terminated")

    def _number_end(self, start: int) -> int:
        text = self.text
        exponents = "pP" if text[start : start + 2].lower() == "0x" else "eE"
        end = start + 1
        while end < len(text):
            ch = text[end]
            if ch.isalnum() or ch in "_.":
                end += 1
            elif ch in "+-" and text[end - 1] in exponents:
                end += 1
            else:
                break
        return end

    def _match_brackets(self) -> dict[int, int]:
        stack: list[int] = []
        matches: dict[int, int] = {}
        for pos, token in enumerate(self.code):
            if token.kind is not _Kind.PUNCT:
                continue
            if token.text in _OPENERS:
                stack.append(pos)
            elif token.text in _CLOSERS:
                if not stack or self.code[stack[-1]].text != _CLOSERS[token.text]:
                    raise self.error(token.start, f"unexpected {token.text!r}")
                matches[stack.pop()] = pos
        if stack:
            expected = _OPENERS[self.code[stack[-1]].text]
            raise self.error(len(self.text), f"expected {expected!r}, found 'EOF'")
        return matches

    def package_name(self) -> str:
        code = self.code
        if not code or code[0].kind is not _Kind.IDENT or code[0].text != "package":
            offset, found = self._found(0)
            raise self.error(offset, f"expected 'package', found {found}")
        if len(code) < 2 or code[1].kind is not _Kind.IDENT:
            offset, found = self._found(1)
            raise self.error(offset, f"expected 'IDENT', found {found}")
        if code[1].text == "_":
            raise self.error(code[1].start, "invalid package name _")
        return code[1].text

    def comment_groups(self) -> list[Comment]:
        groups: list[Comment] = []
        run: list[_Token] = []
        prev_line: int | None = None
        for token in self.tokens:
            if token.kind is _Kind.COMMENT:
                run.append(token)
                continue
            if run:
                groups.extend(self._split_run(run, prev_line))
                run = []
            prev_line = self.index.line(token.start)
        if run:
            groups.extend(self._split_run(run, prev_line))
        return groups

    def _split_run(self, run: list[_Token], prev_line: int | None) -> list[Comment]:
        groups: list[Comment] = []

        def take(pos: int, slack: int) -> int:
            end_line = self.index.line(run[pos].start)
            members: list[_Token] = []
            while pos < len(run) and self.index.line(run[pos].start) <= end_line + slack:
                members.append(run[pos])
                end_line = self.index.line(run[pos].end - 1)
                pos += 1
            groups.append(
                Comment(
                    raw=tuple(m.text for m in members),
                    start=members[0].start,
                    end=members[-1].end,
                )
            )
            return pos

        pos = 0
        if prev_line is not None and self.index.line(run[0].start) == prev_line:
            pos = take(pos, 0)
        while pos < len(run):
            pos = take(pos, 1)
        return groups

    def _is(self, pos: int, text: str) -> bool:
        return (
            pos < len(self.code)
            and self.code[pos].kind is _Kind.PUNCT
            and self.code[pos].text == text
        )

    def _starts_statement(self, pos: int) -> bool:
        if pos == 0:
            return True
        prev = self.code[pos - 1]
        if prev.kind is _Kind.PUNCT and prev.text == ";":
            return True
        return self.index.line(prev.end - 1) < self.index.line(self.code[pos].start)

    def func_decls(self) -> list[FuncDecl]:
        decls: list[FuncDecl] = []
        pos = 0
        while pos < len(self.code):
            token = self.code[pos]
            if token.kind is _Kind.PUNCT and token.text in _OPENERS:
                pos = self.matches[pos] + 1
            elif (
                token.kind is _Kind.IDENT
                and token.text == "func"
                and self._starts_statement(pos)
            ):
                decl, pos = self._func_decl(pos)
                decls.append(decl)
            else:
                pos += 1
        return decls

    def _func_decl(self, pos: int) -> tuple[FuncDecl, int]:
        code = self.code
        keyword = code[pos]
        j = pos + 1
        receiver = None
        if self._is(j, "("):
            close = self.matches[j]
            inner = code[j + 1 : close]
            if inner:
                receiver = _receiver_type(inner)
            j = close + 1
        if j >= len(code) or code[j].kind is not _Kind.IDENT:
            offset, found = self._found(j)
            raise self.error(offset, f"expected 'IDENT', found {found}")
        name = code[j].text
        j += 1
        if self._is(j, "["):
            j = self.matches[j] + 1
        if not self._is(j, "("):
            offset, found = self._found(j)
            raise self.error(offset, f"expected '(', found {found}")
        j = self.matches[j] + 1
        end = code[j - 1].end
        last_line = self.index.line(end - 1)
        while j < len(code):
            token = code[j]
            if token.kind is _Kind.PUNCT and token.text == ";":
                break
            if self.index.line(token.start) > last_line:
                break
            if token.kind is _Kind.PUNCT and token.text in _OPENERS:
                close = self.matches[j]
                if token.text == "{" and code[j - 1].text not in ("interface", "struct"):
                    end = code[close].end
                    j = close + 1
                    break
                j = close + 1
            else:
                j += 1
            end = code[j - 1].end
            last_line = self.index.line(end - 1)
        return FuncDecl(name, receiver, keyword.start, end), j


def _receiver_type(inner: list[_Token]) -> str:
    parts = list(inner)
    if (
        len(parts) >= 2
        and parts[0].kind is _Kind.IDENT
        and parts[1].text not in (".", "[")
    ):
        parts = parts[1:]
    if len(parts) == 1 and parts[0].kind is _Kind.IDENT:
        return parts[0].text
    if len(parts) == 2 and parts[0].text == "*" and parts[1].kind is _Kind.IDENT:
        return parts[1].text
    return INVALID_RECEIVER


def parse_source(name: str, content: str | bytes) -> ParsedSource:
    """Read the structure of a Go source file; raise SourceSyntaxError if it is malformed."""
    if isinstance(content, (bytes, bytearray)):
        try:
            text = bytes(content).decode("utf-8")
        except UnicodeDecodeError as exc:
            prefix = bytes(content[: exc.start]).decode("utf-8", "replace")
            raise SourceSyntaxError(
                "illegal UTF-8 encoding",
                _LineIndex(prefix).locate(name, len(prefix)),
            ) from exc
    else:
        text = content
    parser = _Parser(name, text)
    return ParsedSource(
        name=name,
        content=text,
        package_name=parser.package_name(),
        comments=parser.comment_groups(),
        funcs=parser.func_decls(),
    )