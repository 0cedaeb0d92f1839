# ruleverify

`ruleverify` checks that code rules behave as intended. Each rule is paired
with a test that lists code the rule must leave alone (`valid`) and code it
must report (`invalid`). For reported code, the labels the rule produces and
the fixed output can be pinned as snapshots, so that any change in a rule's
behaviour shows up as a difference from the stored baseline.

## Rules

A rule is any subclass of `ruleverify.rules.Rule` with an `id`, a
`find(source)` method returning a `MatchedNode` (text, start, end and optional
secondary nodes) or `None`, and optionally a `fix(source)` method returning
the rewritten source. A `fix` that raises `ValueError` marks the case as an
error.

`RegexRule` is the rule the package ships:

```python
from ruleverify.rules import RegexRule

rule = RegexRule("no-some-call", r"Some\((\w+)\)", fix=r"Option(\1)")
```

- `pattern` is a regular expression; the first match is reported.
- `inside` (optional) keeps only matches enclosed by a match of a second
  expression; the enclosing span becomes a secondary label.
- `fix` (optional) is a replacement template in `re.Match.expand` syntax,
  applied to the first match.
- An invalid expression raises `ValueError`.

## Test files

A rule test is a YAML document naming the rule by its id:

```yaml
id: no-some-call
valid:
  - None
invalid:
  - Some(123)
```

`read_test_files(base_dir, test_dirname, snapshot_dirname, regex_filter)` in
`ruleverify.find_file` walks `base_dir/test_dirname` (skipping hidden entries)
for `.yml` and `.yaml` files. Files inside the snapshot directory
(`__snapshots__` unless another name is given) are read as snapshots; every
other file is a test case. With `regex_filter`, only ids in which the
expression is found are kept. A second snapshot file for the same id replaces
the first, with a warning on standard error.

`find_tests(config_path, regex_filter)` reads a project configuration — the
given path, or else the first `sgconfig.yml` found in the current directory or
one of its parents — and collects every entry of its `testConfigs` list:

```yaml
testConfigs:
  - testDir: rule-tests
    snapshotDir: __snapshots__   # optional
```

Both return a `TestHarness` holding `test_cases`, `snapshots` and
`path_map` (the snapshot directory of each rule id).

## Snapshots

Snapshots are stored one file per rule, `<id>-snapshot.yml`:

```yaml
id: no-some-call
snapshots:
  Some(123):
    fixed: Option(123)
    labels:
      - source: Some(123)
        style: primary
        start: 0
        end: 9
```

`TestSnapshot.generate(rule, case)` builds such an entry from a rule, and
`TestSnapshots.to_yaml()` / `TestSnapshots.from_yaml()` write and read whole
files; entries are written sorted by source.

## Outcomes

Every example gets a `CaseStatus` whose `CaseKind` is one of:

| Kind      | Meaning                                              | Summary mark |
|-----------|------------------------------------------------------|--------------|
| Validated | valid code, nothing reported                         | `.`          |
| Reported  | invalid code, reported (as the snapshot expects)     | `.`          |
| Updated   | a changed snapshot was accepted                      | `U`          |
| Wrong     | invalid code reported, but unlike the snapshot       | `W`          |
| Missing   | invalid code, nothing reported                       | `M`          |
| Noisy     | valid code, something reported                       | `N`          |
| Error     | the rule's fix could not be applied                  | `E`          |

A `CaseResult` collects the statuses for one rule; `CaseResult.passed()` is
true only when every case is Validated, Reported or Updated.
`CaseStatus.accept()` turns a Wrong case into an Updated one. When a rule has
more than 40 cases, `report_summary` prints counts such as
`Pass × 10, Wrong × 2` instead of one mark per case.

## Checking a single rule

```python
from ruleverify.test_case import TestCase

case = TestCase.from_dict({"id": "no-some-call", "valid": ["None"], "invalid": ["Some(123)"]})
result = case.verify_rule(rule)                 # only whether issues are reported
result = case.verify_with_snapshot(rule, None)  # also compares against snapshots
print(result.passed())
```

Both raise `ValueError` when the test's id differs from the rule's.

## Running a whole project

```python
from ruleverify.reporter import DefaultReporter
from ruleverify.runner import TestArg, TestFailure, run_test_rule

arg = TestArg(config="sgconfig.yml", update_all=False)
try:
    message = run_test_rule(arg, [rule], DefaultReporter())
except TestFailure as failure:
    print(failure.message)
```

`TestArg` options: `config`, `test_dir` (read relative to the current
directory instead of using the configuration), `snapshot_dir`,
`skip_snapshot_tests`, `update_all`, `interactive` and `filter`.
`skip_snapshot_tests` together with `update_all` raises `ValueError`.

`run_test_rule` takes the rules as a mapping from id to rule or as an iterable
of rules. Test cases without a matching rule are reported as
`Configuration not found! <id>` and left out. Cases are checked on a pool of
threads; then failing cases are described, accepted snapshots are merged into
the existing ones and written back, a summary line per rule is printed, and
the closing message is returned — or `TestFailure` is raised if any rule
failed. Without an explicit reporter, one is chosen from `interactive` and
`update_all`.

## Reporters

- `DefaultReporter(output=None, update_all=False)` prints details of every
  failing case; with `update_all` it accepts every changed snapshot and asks
  for them to be written.
- `InteractiveReporter(output=None, should_accept_all=False, reader=input)`
  asks, for each differing snapshot, whether to accept it (`y`), skip it
  (`n`, the default), accept it and all the rest (`a`) or stop (`q`). Other
  failures wait for Enter, or `q` to stop. On a terminal each case is shown
  on the alternate screen.

Output goes to standard output unless another text stream is given.

## What it does not do

- There is no command-line program; everything is called from Python.
- Rules are not loaded from rule files: the configuration is only read for
  its `testConfigs`, and the rules to test are passed in by the caller.
- Matching is by regular expression on text, not on a syntax tree.