"""Core data types shared by the linter, its rules and its formatters."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .linter import File


class Severity(enum.StrEnum):
    """How seriously a failure is to be taken."""

    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Position:
    """A location in a source file; line and column are 1-based, column in bytes."""

    filename: str = ""
    offset: int = 0
    line: int = 0
    column: int = 0

    @property
    def is_valid(self) -> bool:
        return self.line > 0

    def __str__(self) -> str:
        text = self.filename
        if self.is_valid:
            if text:
                text += ":"
            text += str(self.line)
            if self.column:
                text += f":{self.column}"
        return text or "-"


@dataclass(frozen=True)
class FailurePosition:
    """The span of source a failure refers to."""

    start: Position = field(default_factory=Position)
    end: Position = field(default_factory=Position)


@dataclass(frozen=True)
class Node:
    """A span of source text given by character offsets, end exclusive."""

    start: int
    end: int


@dataclass
class Failure:
    """A single problem reported by a rule."""

    failure: str
    rule_name: str = ""
    category: str = ""
    position: FailurePosition = field(default_factory=FailurePosition)
    node: Node | None = None
    confidence: float = 0.0
    url: str = ""
    replacement_line: str = ""

    @property
    def filename(self) -> str:
        """The name of the file the failure starts in."""
        return self.position.start.filename


@dataclass
class RuleConfig:
    """Arguments and severity configured for one rule."""

    arguments: list[Any] = field(default_factory=list)
    severity: Severity | None = None


@dataclass
class Config:
    """The configuration of a linting run."""

    ignore_generated_header: bool = False
    confidence: float = 0.0
    severity: Severity | None = None
    rules: dict[str, RuleConfig] = field(default_factory=dict)
    error_code: int = 0
    warning_code: int = 0


@dataclass(frozen=True)
class DisabledInterval:
    """A range of lines in which a rule is switched off."""

    start: Position
    end: Position
    rule_name: str


class Rule(ABC):
    """A check that inspects one file and reports failures."""

    @abstractmethod
    def name(self) -> str:
        """The name the rule is configured and reported under."""

    @abstractmethod
    def apply(self, file: File, arguments: list[Any]) -> list[Failure]:
        """Inspect ``file`` and return the failures found."""


class Formatter(ABC):
    """Turns a stream of failures into output."""

    @abstractmethod
    def name(self) -> str:
        """The name the formatter is selected by."""

    @abstractmethod
    def format(
        self, failures: Iterable[Failure], config: Mapping[str, RuleConfig]
    ) -> str:
        """Consume ``failures`` and return the text to print."""