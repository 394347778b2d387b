"""Formatters that turn lint failures into text for people and tools."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TextIO

from tabulate import tabulate
from termcolor import colored

from .model import Failure, FailurePosition, Formatter, Position, RuleConfig, Severity

_XML_ESCAPES = {
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}

_JSON_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def severity_of(config: Mapping[str, RuleConfig], failure: Failure) -> Severity:
    """The severity configured for the failure's rule; warning unless set to error."""
    rule_config = config.get(failure.rule_name)
    if rule_config is not None and rule_config.severity == Severity.ERROR:
        return Severity.ERROR
    return Severity.WARNING


def _xml_escape(text: str) -> str:
    return "".join(_XML_ESCAPES.get(ch, ch) for ch in text)


def _number(value: float) -> int | float:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _number_text(value: float) -> str:
    return str(_number(value))


def _position_record(position: Position) -> dict[str, Any]:
    return {
        "Filename": position.filename,
        "Offset": position.offset,
        "Line": position.line,
        "Column": position.column,
    }


def _span_record(span: FailurePosition) -> dict[str, Any]:
    return {"Start": _position_record(span.start), "End": _position_record(span.end)}


def _failure_record(failure: Failure, severity: Severity) -> dict[str, Any]:
    return {
        "Severity": str(severity),
        "Failure": failure.failure,
        "RuleName": failure.rule_name,
        "Category": failure.category,
        "Position": _span_record(failure.position),
        "Confidence": _number(failure.confidence),
        "URL": failure.url,
        "ReplacementLine": failure.replacement_line,
    }


def _to_json(value: Any) -> str:
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return "".join(_JSON_HTML_ESCAPES.get(ch, ch) for ch in text)


def _table(rows: list[list[str]]) -> str:
    if not rows:
        return ""
    return tabulate(rows, tablefmt="plain", disable_numparse=True) + "\n"


@dataclass
class _StreamFormatter(Formatter):
    """A formatter that may write to a stream; standard output by default."""

    stream: TextIO | None = None

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout


@dataclass
class CheckstyleFormatter(Formatter):
    """Formats failures as a Checkstyle XML report."""

    def name(self) -> str:
        return "checkstyle"

    def format(
        self, failures: Iterable[Failure], config: Mapping[str, RuleConfig]
    ) -> str:
        issues: dict[str, list[str]] = {}
        for failure in failures:
            start = failure.position.start
            message = _xml_escape(failure.failure)
            entry = (
                f'      <error line="{start.line}" column="{start.column}" '
                f'message="{message} (confidence {_number_text(failure.confidence)})" '
                f'severity="{severity_of(config, failure)}" '
                f'source="revive/{failure.rule_name}"/>'
            )
            issues.setdefault(failure.filename, []).append(entry)

        lines = ["<?xml version='1.0' encoding='UTF-8'?>", '<checkstyle version="5.0">']
        for filename in sorted(issues):
            lines.append(f'    <file name="{filename}">')
            lines.extend(issues[filename])
            lines.append("    </file>")
        lines.append("</checkstyle>")
        return "\n".join(lines)


@dataclass
class DefaultFormatter(_StreamFormatter):
    """Prints one ``position: message`` line per failure."""

    def name(self) -> str:
        return "default"

    def format(
        self, failures: Iterable[Failure], config: Mapping[str, RuleConfig]
    ) -> str:
        out = self._out()
        for failure in failures:
            out.write(f"{failure.position.start}: {failure.failure}\n")
        return ""


@dataclass
class FriendlyFormatter(_StreamFormatter):
    """Prints each failure in a readable block, followed by a summary."""

    def name(self) -> str:
        return "friendly"

    def format(
        self, failures: Iterable[Failure], config: Mapping[str, RuleConfig]
    ) -> str:
        errors: dict[str, int] = {}
        warnings: dict[str, int] = {}
        for failure in failures:
            severity = severity_of(config, failure)
            self._print_failure(failure, severity)
            counts = errors if severity == Severity.ERROR else warnings
            counts[failure.rule_name] = counts.get(failure.rule_name, 0) + 1
        self._print_summary(sum(errors.values()), sum(warnings.values()))
        self._print_statistics(colored("Errors:", "red"), errors)
        self._print_statistics(colored("Warnings:", "yellow"), warnings)
        return ""

    def _print_failure(self, failure: Failure, severity: Severity) -> None:
        out = self._out()
        emoji = _error_emoji() if severity == Severity.ERROR else _warning_emoji()
        out.write(
            _table([[emoji, failure.rule_name, colored(failure.failure, "green")]])
        )
        start = failure.position.start
        out.write(f"  {failure.filename}:{start.line}:{start.column}\n\n")

    def _print_summary(self, errors: int, warnings: int) -> None:
        problems_label = "problem" if errors + warnings == 1 else "problems"
        warnings_label = "warning" if warnings == 1 else "warnings"
        errors_label = "error" if errors == 1 else "errors"
        text = (
            f"{errors + warnings} {problems_label} "
            f"({errors} {errors_label}, {warnings} {warnings_label})"
        )
        out = self._out()
        if errors > 0:
            out.write(f"{_error_emoji()} {colored(text, 'red')}\n\n")
        elif warnings > 0:
            out.write(f"{_warning_emoji()} {colored(text, 'yellow')}\n\n")

    def _print_statistics(self, header: str, stats: Mapping[str, int]) -> None:
        if not stats:
            return
        ordered = sorted(stats.items(), key=lambda item: (-item[1], item[0]))
        rows = [[colored(str(count), "green"), name] for name, count in ordered]
        out = self._out()
        out.write(f"{header}\n")
        out.write(_table(rows) + "\n")


def _error_emoji() -> str:
    return colored("✘", "red")


def _warning_emoji() -> str:
    return colored("⚠", "yellow")


@dataclass
class JSONFormatter(Formatter):
    """Formats all failures as one JSON array."""

    def name(self) -> str:
        return "json"

    def format(
        self, failures: Iterable[Failure], config: Mapping[str, RuleConfig]
    ) -> str:
        records = [
            _failure_record(failure, severity_of(config, failure))
            for failure in failures
        ]
        return _to_json(records or None)


@dataclass
class NDJSONFormatter(_StreamFormatter):
    """Writes one JSON object per failure, one per line."""

    def name(self) -> str:
        return "ndjson"

    def format(
        self, failures: Iterable[Failure], config: Mapping[str, RuleConfig]
    ) -> str:
        out = self._out()
        for failure in failures:
            out.write(_to_json(_failure_record(failure, severity_of(config, failure))))
            out.write("\n")
        return ""


@dataclass
class StylishFormatter(Formatter):
    """Formats failures as a table per file with a coloured summary line."""

    def name(self) -> str:
        return "stylish"

    def format(
        self, failures: Iterable[Failure], config: Mapping[str, RuleConfig]
    ) -> str:
        total = 0
        total_errors = 0
        reports: dict[str, list[list[str]]] = {}
        for failure in failures:
            total += 1
            severity = severity_of(config, failure)
            if severity == Severity.ERROR:
                total_errors += 1
            start = failure.position.start
            rule_colour = "yellow" if severity == Severity.WARNING else "red"
            reports.setdefault(failure.filename, []).append(
                [
                    f"({start.line}, {start.column})",
                    colored(failure.rule_name, rule_colour),
                    colored(failure.failure, "cyan"),
                ]
            )

        output = "".join(
            colored(filename + "\n", attrs=["underline"]) + _table(rows) + "\n"
            for filename, rows in reports.items()
        )

        problems = "problem" if total == 1 else "problems"
        suffix = (
            f" {total} {problems} ({total_errors} errors) "
            f"({total - total_errors} warnings)"
        )
        if total > 0 and total_errors > 0:
            suffix = colored("\n ✖" + suffix, "red")
        elif total > 0:
            suffix = colored("\n ✖" + suffix, "yellow")
        else:
            suffix = colored("\n" + suffix, "green")
        return output + suffix


def get_formatters() -> dict[str, Formatter]:
    """Every available formatter, keyed by its name."""
    formatters: list[Formatter] = [
        StylishFormatter(),
        FriendlyFormatter(),
        JSONFormatter(),
        NDJSONFormatter(),
        DefaultFormatter(),
        CheckstyleFormatter(),
    ]
    return {formatter.name(): formatter for formatter in formatters}