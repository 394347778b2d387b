import os

import pytest

from revivelint.cli import (
    CliError,
    default_config,
    get_formatter,
    get_linting_rules,
    main,
    normalize_config,
    normalize_split,
    parse_config,
    resolve_packages,
)
from revivelint.model import Config, Rule, RuleConfig, Severity


class _NamedRule(Rule):
    def __init__(self, rule_name):
        self._rule_name = rule_name

    def name(self):
        return self._rule_name

    def apply(self, file, arguments):
        return []


def test_normalize_split_trims_and_drops_empty():
    assert normalize_split(["  a ", "\t", "", "b\t"]) == ["a", "b"]


def test_default_config_enables_given_rules():
    config = default_config([_NamedRule("exported"), _NamedRule("var-naming")])
    assert sorted(config.rules) == ["exported", "var-naming"]
    assert config.severity == Severity.WARNING
    assert config.confidence == 0.0
    assert all(rc == RuleConfig() for rc in config.rules.values())


def test_normalize_config_fills_confidence_and_severity():
    config = Config(
        severity=Severity.WARNING,
        rules={"a": RuleConfig(), "b": RuleConfig(severity=Severity.ERROR)},
    )
    normalize_config(config)
    assert config.confidence == 0.8
    assert config.rules["a"].severity == Severity.WARNING
    assert config.rules["b"].severity == Severity.ERROR


def test_normalize_config_keeps_rules_without_global_severity():
    config = Config(confidence=0.5, rules={"a": RuleConfig()})
    normalize_config(config)
    assert config.confidence == 0.5
    assert config.rules["a"].severity is None


def test_parse_config_reads_all_fields(tmp_path):
    path = tmp_path / "c.toml"
    path.write_text(
        "ignoreGeneratedHeader = true\n"
        "severity = \"warning\"\n"
        "confidence = 0.5\n"
        "errorCode = 2\n"
        "warningCode = 1\n"
        "[rule.argument-limit]\n"
        "  arguments = [3]\n"
        "  severity = \"error\"\n"
        "[rule.exported]\n"
    )
    config = parse_config(path)
    assert config.ignore_generated_header is True
    assert config.severity == Severity.WARNING
    assert config.confidence == 0.5
    assert config.error_code == 2
    assert config.warning_code == 1
    assert config.rules["argument-limit"].arguments == [3]
    assert config.rules["argument-limit"].severity == Severity.ERROR
    assert config.rules["exported"] == RuleConfig()


def test_parse_config_missing_file(tmp_path):
    with pytest.raises(CliError, match="cannot read the config file"):
        parse_config(tmp_path / "missing.toml")


def test_parse_config_invalid_toml(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("confidence = = 1\n")
    with pytest.raises(CliError) as info:
        parse_config(path)
    assert str(info.value).startswith("cannot parse the config file: ")


def test_parse_config_rejects_unknown_severity(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("severity = \"fatal\"\n")
    with pytest.raises(CliError, match="cannot parse the config file"):
        parse_config(path)


def test_get_linting_rules_selects_configured():
    available = [_NamedRule("a"), _NamedRule("b"), _NamedRule("c")]
    config = Config(rules={"c": RuleConfig(), "a": RuleConfig()})
    names = [rule.name() for rule in get_linting_rules(config, available)]
    assert names == ["c", "a"]


def test_get_linting_rules_unknown_rule():
    config = Config(rules={"nope": RuleConfig()})
    with pytest.raises(CliError, match="cannot find rule: nope"):
        get_linting_rules(config, [_NamedRule("a")])


def test_get_formatter_default_and_named():
    assert get_formatter(None).name() == "default"
    assert get_formatter("").name() == "default"
    assert get_formatter("checkstyle").name() == "checkstyle"


def test_get_formatter_unknown():
    with pytest.raises(CliError, match="unknown formatter xyz"):
        get_formatter("xyz")


@pytest.fixture
def tree(tmp_path, monkeypatch):
    (tmp_path / "a" / "b").mkdir(parents=True)
    (tmp_path / "a" / ".hidden").mkdir()
    for name in ("a/x.go", "a/y.go", "a/b/z.go", "a/.hidden/h.go"):
        (tmp_path / name).write_text("package foo\n")
    (tmp_path / "a" / "notes.txt").write_text("text")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_resolve_packages_recursive(tree):
    packages = resolve_packages(["./..."], [])
    assert packages == [
        [os.path.join("a", "x.go"), os.path.join("a", "y.go")],
        [os.path.join("a", "b", "z.go")],
    ]


def test_resolve_packages_directory_only(tree):
    assert resolve_packages(["a/b"], []) == [[os.path.join("a", "b", "z.go")]]


def test_resolve_packages_excludes(tree):
    packages = resolve_packages(["./..."], ["a/b/...", "a/y.go"])
    assert packages == [[os.path.join("a", "x.go")]]


def test_resolve_packages_missing_path(tree):
    with pytest.raises(CliError):
        resolve_packages(["nowhere"], [])


def test_main_json_without_failures(tree, capsys):
    assert main(["-formatter", "json", "./..."]) == 0
    assert capsys.readouterr().out == "null\n"


def test_main_checkstyle_output(tree, capsys):
    assert main(["--formatter=checkstyle", "a"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("<?xml version='1.0' encoding='UTF-8'?>")
    assert out.rstrip().endswith("</checkstyle>")


def test_main_unknown_formatter(tree, capsys):
    assert main(["-formatter", "nope", "a"]) == 1
    assert "unknown formatter nope" in capsys.readouterr().err


def test_main_unknown_rule_in_config(tree, capsys):
    config = tree / "c.toml"
    config.write_text("[rule.foo]\n")
    assert main(["-config", str(config), "a"]) == 1
    assert "cannot find rule: foo" in capsys.readouterr().err


def test_main_reports_syntax_error(tree, capsys):
    (tree / "a" / "broken.go").write_text("not go at all\n")
    assert main(["a"]) == 1
    assert "expected 'package'" in capsys.readouterr().err


def test_main_help_shows_banner(capsys):
    assert main(["-h"]) == 0
    assert "Example:" in capsys.readouterr().out


def test_main_bad_flag():
    assert main(["-nosuchflag"]) == 2