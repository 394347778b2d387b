# revivelint

A framework for linting Go source files. It reads files package by package,
parses their structure, runs a set of rules over each file and reports the
failures through one of several formatters.

## What it does not do

The package ships **no lint rules**. It provides the machinery around rules —
parsing, configuration, disable comments, confidence filtering, exit codes and
output — but the rules themselves must be written by you as subclasses of
`revivelint.model.Rule` and passed to `Linter.lint`.

Because of this, the `revivelint` command runs with an empty rule set: it
finds and parses the files (reporting syntax errors) but reports no failures,
and a configuration file that names any rule is rejected with
`cannot find rule: <name>`.

The Go reader in `revivelint.source` is structural only: it finds the package
clause, the comment groups and the top-level function declarations. It does
no type checking.

## Installation

```
pip install .
```

## Command line

```
revivelint -config c.toml -formatter friendly -exclude a.go -exclude b.go ./...
```

- `-config` / `--config` — path to a TOML configuration file. Without it the
  default configuration is used (severity `warning`, no rules).
- `-formatter` / `--formatter` — one of `default`, `friendly`, `stylish`,
  `json`, `ndjson`, `checkstyle`; `default` when not given. An unknown name
  ends the command with `unknown formatter <name>`.
- `-exclude` / `--exclude` — a file, directory, glob or `dir/...` pattern to
  leave out; may be repeated.
- `-h` / `-help` / `--help` — show usage.

The remaining arguments are files, directories, globs or `dir/...` patterns
(a directory and every directory below it, skipping `vendor`, `testdata` and
names starting with `.` or `_`); `.` when none are given. Only `.go` files not
starting with `.` or `_` are taken from directories. Files are grouped into
packages by directory. A path that matches nothing is an error.

Errors (unreadable or malformed configuration, unknown formatter, missing
paths, unparsable source) print a message to standard error and exit with
status 1.

## Configuration

```toml
ignoreGeneratedHeader = false
confidence = 0.8
severity = "warning"
errorCode = 1
warningCode = 0

[rule.my-rule]
arguments = [3]
severity = "error"
```

- Top-level keys are matched case-insensitively.
- `confidence` of 0 (or missing) is treated as 0.8; failures below the
  confidence threshold are dropped.
- Rules without their own `severity` take the top-level one.
- `severity` is `"warning"`, `"error"` or empty.
- Files with a line of the form `// Code generated ... DO NOT EDIT.` are
  skipped unless `ignoreGeneratedHeader` is true.
- The exit status is `warningCode` once any failure is reported and
  `errorCode` once a failure comes from a rule whose severity is `error`;
  both default to 0.

## Disable comments

Rules can be switched off inside a file with comments:

- `//revive:disable` … `//revive:enable` for all rules,
- `//revive:disable:rule-a,rule-b` … `//revive:enable:rule-a,rule-b` for the
  named rules only,
- `//revive:disable-line` and `//revive:disable-next-line` for a single line.

A failure is dropped when its first or last line falls inside a disabled
range of its rule.

## Library use

```python
from revivelint.formatters import get_formatters
from revivelint.linter import Linter
from revivelint.model import Config, Failure, Node, Rule


class GetterReturnsNothing(Rule):
    def name(self):
        return "no-get-prefix"

    def apply(self, file, arguments):
        return [
            Failure(
                failure=f"function {func.name} starts with 'get'",
                confidence=1.0,
                node=Node(func.start, func.end),
            )
            for func in file.ast.funcs
            if func.name.startswith("get")
        ]


linter = Linter()  # reads files from disk; pass a reader(path) -> bytes | str to override
failures = linter.lint([["main.go", "util.go"]], [GetterReturnsNothing()], Config())
print(get_formatters()["json"].format(failures, {}))
```

- `Linter.lint` reads and parses every file first, raising `OSError` or
  `revivelint.source.SourceSyntaxError`, then returns an iterator of
  failures.
- A failure's `rule_name` is filled in from the rule when left empty, and its
  `position` is computed from `node` (character offsets) when given.
- `file.ast` is a `ParsedSource` with `package_name`, `comments` and `funcs`
  (`FuncDecl` with `name`, `receiver`, `start`, `end`); `file.is_test()`,
  `file.is_main()` and `file.position(offset)` are also available.
- `Package.scan_sortable()` collects the receiver types that have `Len`,
  `Less` and `Swap` methods.
- `revivelint.linter.is_generated(src)` tells whether a source carries the
  generated-code line.

### Formatters

`get_formatters()` returns every formatter keyed by name:

- `default` — writes `file:line:column: message` lines to a stream;
- `friendly` — writes a block per failure and a summary with per-rule counts;
- `stylish` — returns a table per file and a coloured summary line;
- `json` — returns one JSON array (`null` when there are no failures);
- `ndjson` — writes one JSON object per line;
- `checkstyle` — returns a Checkstyle XML report, files in sorted order.

`default`, `friendly` and `ndjson` write to standard output unless given a
`stream`, e.g. `DefaultFormatter(stream=buffer)`, and return an empty string.
`severity_of(config, failure)` gives the severity a formatter reports.

### Names

`revivelint.names.lint_name` suggests the conventional spelling of an
identifier: `lint_name("fooId")` gives `"fooID"`, `lint_name("foo_bar")`
gives `"fooBar"`.

## Tests

```
pip install .[test]
pytest
```