"""Command-line entry point: configuration, package discovery and the lint run."""

from __future__ import annotations

import argparse
import glob
import os
import sys
import tomllib
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from termcolor import colored

from .formatters import get_formatters
from .linter import Linter
from .model import Config, Failure, Formatter, Rule, RuleConfig, Severity
from .source import SourceSyntaxError

DEFAULT_CONFIDENCE = 0.8
DEFAULT_FORMATTER = "default"

_DEFAULT_RULES: tuple[Rule, ...] = ()
_ALL_RULES: tuple[Rule, ...] = _DEFAULT_RULES

_SKIPPED_DIRS = frozenset({"testdata", "vendor"})
_GLOB_MAGIC = frozenset("*?[")

_TITLE = colored("revivelint", "yellow")
_CALL = colored(
    "revivelint -config c.toml -formatter friendly -exclude a.go -exclude b.go ./...",
    "magenta",
)
BANNER = f"\n{_TITLE}\n\nExample:\n  {_CALL}\n"


class CliError(Exception):
    """A problem that ends the command with a message and exit status 1."""


def default_config(rules: Iterable[Rule] = ()) -> Config:
    """The configuration used when no file is given: every rule in ``rules`` enabled."""
    return Config(
        confidence=0.0,
        severity=Severity.WARNING,
        rules={rule.name(): RuleConfig() for rule in rules},
    )


def _lower_keys(table: Mapping[str, Any]) -> dict[str, Any]:
    return {key.lower(): value for key, value in table.items()}


def _as_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected a boolean, got {value!r}")
    return value


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    return value


def _as_float(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key}: expected a number, got {value!r}")
    return float(value)


def _as_severity(key: str, value: Any) -> Severity | None:
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string, got {value!r}")
    if not value:
        return None
    try:
        return Severity(value)
    except ValueError:
        raise ValueError(f"{key}: invalid severity {value!r}") from None


def _rule_config(name: str, table: Any) -> RuleConfig:
    if not isinstance(table, dict):
        raise ValueError(f"rule.{name}: expected a table, got {table!r}")
    fields = _lower_keys(table)
    rule_config = RuleConfig()
    if "arguments" in fields:
        arguments = fields["arguments"]
        if not isinstance(arguments, list):
            raise ValueError(f"rule.{name}.arguments: expected an array")
        rule_config.arguments = list(arguments)
    if "severity" in fields:
        rule_config.severity = _as_severity(f"rule.{name}.severity", fields["severity"])
    return rule_config


def _config_from_table(data: Mapping[str, Any]) -> Config:
    fields = _lower_keys(data)
    config = Config()
    if "ignoregeneratedheader" in fields:
        config.ignore_generated_header = _as_bool(
            "ignoreGeneratedHeader", fields["ignoregeneratedheader"]
        )
    if "confidence" in fields:
        config.confidence = _as_float("confidence", fields["confidence"])
    if "severity" in fields:
        config.severity = _as_severity("severity", fields["severity"])
    if "errorcode" in fields:
        config.error_code = _as_int("errorCode", fields["errorcode"])
    if "warningcode" in fields:
        config.warning_code = _as_int("warningCode", fields["warningcode"])
    if "rule" in fields:
        rules = fields["rule"]
        if not isinstance(rules, dict):
            raise ValueError("rule: expected a table")
        config.rules = {name: _rule_config(name, table) for name, table in rules.items()}
    return config


def parse_config(path: str | os.PathLike[str]) -> Config:
    """Read a TOML configuration file."""
    try:
        with open(path, "rb") as handle:
            raw = handle.read()
    except OSError as exc:
        raise CliError("cannot read the config file") from exc
    try:
        return _config_from_table(tomllib.loads(raw.decode("utf-8")))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError, ValueError) as exc:
        raise CliError(f"cannot parse the config file: {exc}") from exc


def normalize_config(config: Config) -> None:
    """Fill in the default confidence and give rules without a severity the global one."""
    if config.confidence == 0:
        config.confidence = DEFAULT_CONFIDENCE
    if config.severity:
        for rule_config in config.rules.values():
            if not rule_config.severity:
                rule_config.severity = config.severity


def get_linting_rules(config: Config, available: Iterable[Rule]) -> list[Rule]:
    """The rules named in ``config``, taken from ``available``."""
    by_name = {rule.name(): rule for rule in available}
    selected: list[Rule] = []
    for name in config.rules:
        rule = by_name.get(name)
        if rule is None:
            raise CliError(f"cannot find rule: {name}")
        selected.append(rule)
    return selected


def get_formatter(name: str | None = None) -> Formatter:
    """The formatter called ``name``, or the default one when no name is given."""
    formatters = get_formatters()
    if not name:
        return formatters[DEFAULT_FORMATTER]
    try:
        return formatters[name]
    except KeyError:
        raise CliError(f"unknown formatter {name}") from None


def normalize_split(values: Iterable[str]) -> list[str]:
    """Trim spaces and tabs from each value and drop the empty ones."""
    return [text for text in (value.strip(" \t") for value in values) if text]


def _is_source(name: str) -> bool:
    return name.endswith(".go") and not name.startswith((".", "_"))


def _dir_sources(directory: str) -> set[str]:
    try:
        entries = os.listdir(directory)
    except OSError:
        return set()
    return {
        os.path.normpath(os.path.join(directory, entry))
        for entry in entries
        if _is_source(entry) and os.path.isfile(os.path.join(directory, entry))
    }


def _walk_sources(root: str) -> set[str]:
    found: set[str] = set()
    for directory, subdirs, _files in os.walk(root):
        subdirs[:] = [
            sub
            for sub in subdirs
            if not sub.startswith((".", "_")) and sub not in _SKIPPED_DIRS
        ]
        found |= _dir_sources(directory)
    return found


def _expand(pattern: str, strict: bool) -> set[str]:
    if pattern == "..." or pattern.endswith("/..."):
        root = pattern[: -len("...")].rstrip("/") or "."
        if not os.path.isdir(root):
            if strict:
                raise CliError(f"{pattern}: no such directory")
            return set()
        return _walk_sources(root)
    if _GLOB_MAGIC & set(pattern):
        matches = glob.glob(pattern)
    else:
        matches = [pattern] if os.path.exists(pattern) else []
    if not matches:
        if strict:
            raise CliError(f"{pattern}: no such file or directory")
        return set()
    found: set[str] = set()
    for match in matches:
        if os.path.isdir(match):
            found |= _dir_sources(match)
        else:
            found.add(os.path.normpath(match))
    return found


def resolve_packages(globs: Sequence[str], excludes: Sequence[str]) -> list[list[str]]:
    """Group the files matched by ``globs``, less ``excludes``, by directory.

    A pattern ending in ``/...`` takes its directory and every one below it.
    """
    excluded: set[str] = set()
    for pattern in excludes:
        excluded |= _expand(pattern, strict=False)
    packages: dict[str, set[str]] = {}
    for pattern in globs:
        for path in _expand(pattern, strict=True) - excluded:
            packages.setdefault(os.path.dirname(path), set()).add(path)
    return [sorted(packages[directory]) for directory in sorted(packages)]


class _Run:
    """Passes failures on to the formatter while working out the exit status."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.exit_code = 0

    def track(self, failures: Iterable[Failure]) -> Iterator[Failure]:
        for failure in failures:
            if failure.confidence < self.config.confidence:
                continue
            if self.exit_code == 0:
                self.exit_code = self.config.warning_code
            rule_config = self.config.rules.get(failure.rule_name)
            if rule_config is not None and rule_config.severity == Severity.ERROR:
                self.exit_code = self.config.error_code
            yield failure


class _Parser(argparse.ArgumentParser):
    def format_help(self) -> str:
        return BANNER + "\n" + super().format_help()


def _build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="revivelint", add_help=False, allow_abbrev=False)
    parser.add_argument("-h", "-help", "--help", action="help", help="show this help")
    parser.add_argument(
        "-config",
        "--config",
        default="",
        help="path to the configuration TOML file (i.e. -config myconf.toml)",
    )
    parser.add_argument(
        "-exclude",
        "--exclude",
        action="append",
        default=[],
        help="list of globs which specify files to be excluded (i.e. -exclude foo/...)",
    )
    parser.add_argument(
        "-formatter",
        "--formatter",
        default="",
        help="formatter to be used for the output (i.e. -formatter stylish)",
    )
    parser.add_argument("paths", nargs="*", help="files, directories or dir/... patterns")
    return parser


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Run the linter from the command line and return the exit status."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else (0 if exc.code is None else 1)

    try:
        config = parse_config(args.config) if args.config else default_config(_DEFAULT_RULES)
        normalize_config(config)
        formatter = get_formatter(args.formatter)
        globs = normalize_split(args.paths) or ["."]
        packages = resolve_packages(globs, normalize_split(args.exclude))
        rules = get_linting_rules(config, _ALL_RULES)
        failures = Linter().lint(packages, rules, config)
    except CliError as exc:
        return _fail(str(exc))
    except (OSError, SourceSyntaxError) as exc:
        return _fail(str(exc))

    run = _Run(config)
    output = formatter.format(run.track(failures), config.rules)
    if output:
        print(output)
    return run.exit_code