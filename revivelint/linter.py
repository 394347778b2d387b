"""Linting of files and packages, honouring the in-source switches that turn rules off."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import replace
from itertools import zip_longest
from pathlib import Path

from .model import (
    Config,
    DisabledInterval,
    Failure,
    FailurePosition,
    Position,
    Rule,
    RuleConfig,
)
from .source import parse_source

MAX_LINE = 2**31 - 1

_SPACE = r"[\t\n\f\r ]"
_DIRECTIVE = re.compile(
    rf"^{_SPACE}*revive:(enable|disable)(?:-(line|next-line))?(:|{_SPACE}|\Z)"
)
_GENERATED_HEADER = b"// Code generated "
_GENERATED_FOOTER = b" DO NOT EDIT."
_SORT_METHODS = {"Len": 1, "Less": 2, "Swap": 4}
_ALL_SORT_METHODS = 1 | 2 | 4

ReadFile = Callable[[str], "bytes | str"]
DisabledIntervals = dict[str, list[DisabledInterval]]


def is_generated(src: bytes | str) -> bool:
    """Whether ``src`` carries a ``// Code generated ... DO NOT EDIT.`` line."""
    data = src.encode("utf-8") if isinstance(src, str) else bytes(src)
    minimum = len(_GENERATED_HEADER) + len(_GENERATED_FOOTER)
    for line in data.split(b"\n"):
        if line.endswith(b"\r"):
            line = line[:-1]
        if (
            line.startswith(_GENERATED_HEADER)
            and line.endswith(_GENERATED_FOOTER)
            and len(line) >= minimum
        ):
            return True
    return False


def to_failure_position(start: int, end: int, file: File) -> FailurePosition:
    """The failure position spanning character offsets ``start`` to ``end`` of ``file``."""
    return FailurePosition(start=file.position(start), end=file.position(end))


class File:
    """One source file of a package, parsed and ready for the rules."""

    def __init__(self, name: str, content: bytes | str, package: Package) -> None:
        self.name = name
        self.content = content
        self.package = package
        self.ast = parse_source(name, content)

    def is_test(self) -> bool:
        """Whether the file holds tests."""
        return self.name.endswith("_test.go")

    def is_main(self) -> bool:
        """Whether the file belongs to package main."""
        return self.ast.package_name == "main"

    def position(self, offset: int) -> Position:
        """The file position of a character offset."""
        return self.ast.position(offset)

    def disabled_intervals(self, rules: Sequence[Rule]) -> DisabledIntervals:
        """The line ranges, per rule name, switched off by ``revive:`` comments."""
        switches: dict[str, list[tuple[bool, int]]] = {}

        def record(enabled: bool, line: int, name: str) -> None:
            existing = switches.setdefault(name, [])
            if (len(existing) > 1 and existing[-1][0] == enabled) or (
                not existing and enabled
            ):
                return
            existing.append((enabled, line))

        for comment in self.ast.comments:
            text = comment.text
            match = _DIRECTIVE.match(text)
            if match is None:
                continue
            line = self.position(comment.start).line
            pieces = text.split(match.group(0))
            names: list[str] = []
            if len(pieces) == 2:
                names = [
                    name
                    for name in (part.strip("\n") for part in pieces[1].split(","))
                    if name
                ]
            if not names:
                names = [rule.name() for rule in rules]
            enabled = match.group(1) == "enable"
            modifier = match.group(2)
            for name in names:
                if modifier == "line":
                    record(enabled, line, name)
                    record(not enabled, line, name)
                elif modifier == "next-line":
                    record(enabled, line + 1, name)
                    record(not enabled, line + 1, name)
                else:
                    record(enabled, line, name)

        result: DisabledIntervals = {}
        for name, entries in switches.items():
            result[name] = [
                DisabledInterval(
                    start=Position(filename=self.name, line=first[1]),
                    end=Position(
                        filename=self.name,
                        line=MAX_LINE if second is None else second[1],
                    ),
                    rule_name=name,
                )
                for first, second in zip_longest(entries[0::2], entries[1::2])
            ]
        return result

    def filter_failures(
        self,
        failures: Iterable[Failure],
        intervals: Mapping[str, Sequence[DisabledInterval]],
    ) -> list[Failure]:
        """Drop the failures that start or end inside a disabled interval of their rule."""
        kept: list[Failure] = []
        for failure in failures:
            first = failure.position.start.line
            last = failure.position.end.line
            ranges = intervals.get(failure.rule_name)
            if ranges is None or not any(
                interval.start.line <= first <= interval.end.line
                or interval.start.line <= last <= interval.end.line
                for interval in ranges
            ):
                kept.append(failure)
        return kept

    def lint(self, rules: Sequence[Rule], config: Config) -> Iterator[Failure]:
        """Apply ``rules`` to the file and yield the failures that survive."""
        intervals = self.disabled_intervals(rules)
        for rule in rules:
            rule_name = rule.name()
            rule_config = config.rules.get(rule_name, RuleConfig())
            found: list[Failure] = []
            for failure in rule.apply(self, rule_config.arguments):
                updates: dict[str, object] = {}
                if not failure.rule_name:
                    updates["rule_name"] = rule_name
                if failure.node is not None:
                    updates["position"] = to_failure_position(
                        failure.node.start, failure.node.end, self
                    )
                found.append(replace(failure, **updates))
            for failure in self.filter_failures(found, intervals):
                if failure.confidence >= config.confidence:
                    yield failure


class Package:
    """A set of files linted together."""

    def __init__(self) -> None:
        self.files: dict[str, File] = {}
        self.sortable: set[str] = set()
        self._main: bool | None = None

    def add_file(self, name: str, content: bytes | str) -> File:
        """Parse ``content`` as the file ``name`` and add it to the package."""
        file = File(name, content, self)
        self.files[name] = file
        self._main = None
        return file

    def is_main(self) -> bool:
        """Whether this is package main."""
        if self._main is None:
            self._main = any(file.is_main() for file in self.files.values())
        return self._main

    def scan_sortable(self) -> set[str]:
        """Find the types that have Len, Less and Swap methods."""
        methods: dict[str, int] = {}
        for file in self.files.values():
            for func in file.ast.funcs:
                bit = _SORT_METHODS.get(func.name)
                if func.receiver is None or bit is None:
                    continue
                methods[func.receiver] = methods.get(func.receiver, 0) | bit
        self.sortable = {
            name for name, bits in methods.items() if bits == _ALL_SORT_METHODS
        }
        return self.sortable

    def lint(self, rules: Sequence[Rule], config: Config) -> Iterator[Failure]:
        """Lint every file of the package."""
        self.scan_sortable()
        for file in self.files.values():
            yield from file.lint(rules, config)


def _read_file(path: str) -> bytes:
    return Path(path).read_bytes()


class Linter:
    """Lints groups of files, reading them through ``reader``."""

    def __init__(self, reader: ReadFile | None = None) -> None:
        self.reader = reader or _read_file

    def _load(self, filenames: Iterable[str], config: Config) -> Package | None:
        package = Package()
        for filename in filenames:
            content = self.reader(filename)
            if is_generated(content) and not config.ignore_generated_header:
                continue
            package.add_file(filename, content)
        return package if package.files else None

    def lint(
        self,
        packages: Iterable[Iterable[str]],
        rules: Sequence[Rule],
        config: Config,
    ) -> Iterator[Failure]:
        """Read and parse every package, then yield the failures the rules find.

        Reading and parsing errors are raised before any failure is produced.
        """
        loaded = [
            package
            for package in (self._load(names, config) for names in packages)
            if package is not None
        ]
        return self._failures(loaded, rules, config)

    @staticmethod
    def _failures(
        packages: list[Package], rules: Sequence[Rule], config: Config
    ) -> Iterator[Failure]:
        for package in packages:
            yield from package.lint(rules, config)