import io
import json
import re
import xml.etree.ElementTree as ET

import pytest

from revivelint.formatters import (
    CheckstyleFormatter,
    DefaultFormatter,
    FriendlyFormatter,
    JSONFormatter,
    NDJSONFormatter,
    StylishFormatter,
    get_formatters,
    severity_of,
)
from revivelint.model import Failure, FailurePosition, Position, RuleConfig, Severity

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def plain(text):
    return _ANSI.sub("", text)


def make_failure(message="bad thing", rule="exported", filename="a.go", line=3, column=5,
                 confidence=1.0):
    start = Position(filename=filename, offset=10, line=line, column=column)
    end = Position(filename=filename, offset=20, line=line, column=column + 10)
    return Failure(
        failure=message,
        rule_name=rule,
        category="style",
        position=FailurePosition(start=start, end=end),
        confidence=confidence,
    )


ERROR_CONFIG = {"exported": RuleConfig(severity=Severity.ERROR)}


def test_severity_of_defaults_to_warning():
    assert severity_of({}, make_failure()) == Severity.WARNING
    assert severity_of({"exported": RuleConfig()}, make_failure()) == Severity.WARNING


def test_severity_of_error_when_configured():
    assert severity_of(ERROR_CONFIG, make_failure()) == Severity.ERROR
    assert severity_of(ERROR_CONFIG, make_failure(rule="other")) == Severity.WARNING


def test_get_formatters_names():
    formatters = get_formatters()
    assert set(formatters) == {"stylish", "friendly", "json", "ndjson", "default", "checkstyle"}
    for name, formatter in formatters.items():
        assert formatter.name() == name


def test_checkstyle_structure_and_escaping():
    failures = [
        make_failure(message='use "x" & <y>', filename="b.go"),
        make_failure(filename="a.go", line=7, column=2, confidence=0.8),
    ]
    output = CheckstyleFormatter().format(failures, ERROR_CONFIG)
    assert output.startswith("<?xml version='1.0' encoding='UTF-8'?>\n<checkstyle version=\"5.0\">")
    assert output.endswith("</checkstyle>")
    root = ET.fromstring(output.split("\n", 1)[1])
    files = root.findall("file")
    assert [f.get("name") for f in files] == ["a.go", "b.go"]
    first = files[0].find("error")
    assert first.get("line") == "7"
    assert first.get("column") == "2"
    assert first.get("severity") == "error"
    assert first.get("source") == "revive/exported"
    assert first.get("message") == "bad thing (confidence 0.8)"
    second = files[1].find("error")
    assert second.get("message") == 'use "x" & <y> (confidence 1)'


def test_checkstyle_empty():
    output = CheckstyleFormatter().format([], {})
    root = ET.fromstring(output.split("\n", 1)[1])
    assert root.tag == "checkstyle"
    assert list(root) == []


def test_json_round_trip():
    failures = [make_failure(), make_failure(rule="other", message="<tag>")]
    output = JSONFormatter().format(failures, ERROR_CONFIG)
    assert "<" not in output
    records = json.loads(output)
    assert len(records) == 2
    assert records[0]["Severity"] == "error"
    assert records[1]["Severity"] == "warning"
    assert records[1]["Failure"] == "<tag>"
    assert records[0]["RuleName"] == "exported"
    assert records[0]["Position"]["Start"]["Line"] == 3
    assert records[0]["Position"]["Start"]["Filename"] == "a.go"
    assert records[0]["Confidence"] == 1
    assert "Node" not in records[0]


def test_json_empty_is_null():
    assert JSONFormatter().format([], {}) == "null"


def test_ndjson_one_object_per_line():
    stream = io.StringIO()
    result = NDJSONFormatter(stream=stream).format(
        [make_failure(), make_failure(line=9)], {}
    )
    assert result == ""
    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    assert [json.loads(line)["Position"]["Start"]["Line"] for line in lines] == [3, 9]
    assert all(json.loads(line)["Severity"] == "warning" for line in lines)


def test_default_prints_position_and_message():
    stream = io.StringIO()
    result = DefaultFormatter(stream=stream).format([make_failure()], {})
    assert result == ""
    assert stream.getvalue() == "a.go:3:5: bad thing\n"


def test_default_writes_to_stdout(capsys):
    DefaultFormatter().format([make_failure(message="oops")], {})
    assert capsys.readouterr().out.endswith(": oops\n")


def test_friendly_summary_and_statistics():
    stream = io.StringIO()
    failures = [
        make_failure(),
        make_failure(rule="other"),
        make_failure(rule="other", line=8),
    ]
    result = FriendlyFormatter(stream=stream).format(failures, ERROR_CONFIG)
    assert result == ""
    text = plain(stream.getvalue())
    assert "3 problems (1 error, 2 warnings)" in text
    assert "  a.go:3:5" in text
    assert "  a.go:8:5" in text
    assert "Errors:" in text
    assert "Warnings:" in text
    assert text.index("Errors:") < text.index("Warnings:")


def test_friendly_no_failures_prints_nothing():
    stream = io.StringIO()
    FriendlyFormatter(stream=stream).format([], {})
    assert stream.getvalue() == ""


def test_stylish_groups_by_file():
    failures = [make_failure(filename="a.go"), make_failure(filename="b.go", line=4)]
    output = plain(StylishFormatter().format(failures, ERROR_CONFIG))
    assert "a.go\n" in output
    assert "b.go\n" in output
    assert "(4, 5)" in output
    assert output.endswith(" ✖ 2 problems (2 errors) (0 warnings)")


def test_stylish_single_warning():
    output = plain(StylishFormatter().format([make_failure()], {}))
    assert output.endswith(" ✖ 1 problem (0 errors) (1 warnings)")


def test_stylish_no_failures():
    output = plain(StylishFormatter().format([], {}))
    assert output == "\n 0 problems (0 errors) (0 warnings)"


@pytest.mark.parametrize("name", ["json", "checkstyle", "stylish"])
def test_returning_formatters_consume_generators(name):
    formatter = get_formatters()[name]
    output = formatter.format((f for f in [make_failure(message="msg-x")]), {})
    assert "msg-x" in plain(output)