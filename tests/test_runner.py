import io
from pathlib import Path

import pytest

from ruleverify.case_result import CaseKind, CaseResult, CaseStatus
from ruleverify.reporter import DefaultReporter
from ruleverify.rules import RegexRule
from ruleverify.runner import (
    TestArg,
    TestFailure,
    apply_snapshot_action,
    run_test_rule,
    verify_test_case_simple,
    write_merged_to_disk,
)
from ruleverify.snapshot import SnapshotAction, TestSnapshot, TestSnapshots
from ruleverify.test_case import TestCase

TEST_RULE = "test-rule"

CONFIG = """
ruleDirs:
- rules
testConfigs:
- testDir: rule-tests
"""

TEST = """
id: test-rule
valid:
- None
invalid:
- Some(123)
"""

WRONG_TEST = """
id: test-rule
valid:
- Some(123)
invalid:
- None
"""


def always_report_rule():
    return [RegexRule(TEST_RULE, "")]


def never_report_rule():
    return [RegexRule(TEST_RULE, r"(?!)")]


def some_rule():
    return [RegexRule(TEST_RULE, r"Some\((.*)\)")]


def valid_case():
    return TestCase(id=TEST_RULE, valid=["123"], invalid=[])


def invalid_case():
    return TestCase(id=TEST_RULE, valid=[], invalid=["123"])


def expected_result(status):
    return CaseResult(id=TEST_RULE, cases=[status])


def create_files(root: Path, files):
    for name, contents in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")
    return root


@pytest.fixture
def project(tmp_path):
    return create_files(
        tmp_path,
        {
            "sgconfig.yml": CONFIG,
            "rule-tests/test-rule-test.yml": TEST,
            "test.ts": "Some(123)",
        },
    )


@pytest.fixture
def wrong_project(tmp_path):
    return create_files(
        tmp_path,
        {
            "sgconfig.yml": CONFIG,
            "rule-tests/test-rule-test.yml": WRONG_TEST,
            "test.ts": "Some(123)",
        },
    )


def test_validated():
    ret = verify_test_case_simple(valid_case(), never_report_rule(), None)
    assert ret == expected_result(CaseStatus(CaseKind.VALIDATED))


def test_reported():
    ret = verify_test_case_simple(invalid_case(), always_report_rule(), None)
    assert ret == expected_result(CaseStatus(CaseKind.REPORTED))


def test_noisy():
    ret = verify_test_case_simple(valid_case(), always_report_rule(), None)
    assert ret == expected_result(CaseStatus(CaseKind.NOISY, source="123"))


def test_missing():
    ret = verify_test_case_simple(invalid_case(), never_report_rule(), None)
    assert ret == expected_result(CaseStatus(CaseKind.MISSING, source="123"))


def test_no_such_rule():
    case = TestCase(id="no-such-rule")
    assert verify_test_case_simple(case, never_report_rule(), None) is None


def test_rules_as_mapping():
    rules = {TEST_RULE: never_report_rule()[0]}
    ret = verify_test_case_simple(invalid_case(), rules, None)
    assert ret.cases[0].kind is CaseKind.MISSING


def test_run_verify_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    reporter = DefaultReporter(io.StringIO())
    arg = TestArg(skip_snapshot_tests=True)
    with pytest.raises(FileNotFoundError):
        run_test_rule(arg, always_report_rule(), reporter)


def test_verify_transform():
    rule = RegexRule(TEST_RULE, r"console\.log\((.)(.*)(.)\)", fix=r"log(\2)")
    case = TestCase(id=TEST_RULE, invalid=["console.log(123)"])
    ret = verify_test_case_simple(case, [rule], {})
    status = ret.cases.pop()
    assert status.kind is CaseKind.WRONG
    assert status.actual.fixed == "log(2)"


def test_arg_conflict():
    with pytest.raises(ValueError):
        TestArg(skip_snapshot_tests=True, update_all=True)


def test_sg_test(project):
    output = io.StringIO()
    arg = TestArg(config=project / "sgconfig.yml", skip_snapshot_tests=True)
    message = run_test_rule(arg, some_rule(), DefaultReporter(output))
    assert "1 passed; 0 failed;" in message
    assert "Running 1 tests" in output.getvalue()


def test_sg_test_error(wrong_project):
    arg = TestArg(config=wrong_project / "sgconfig.yml", skip_snapshot_tests=True)
    with pytest.raises(TestFailure) as info:
        run_test_rule(arg, some_rule(), DefaultReporter(io.StringIO()))
    assert info.value.message == "test failed. 0 passed; 1 failed;"


def test_sg_test_filter(wrong_project):
    config = wrong_project / "sgconfig.yml"
    arg = TestArg(config=config, skip_snapshot_tests=True, filter="error-rule")
    message = run_test_rule(arg, some_rule(), DefaultReporter(io.StringIO()))
    assert "0 passed; 0 failed;" in message
    arg = TestArg(config=config, skip_snapshot_tests=True, filter="test-rule")
    with pytest.raises(TestFailure):
        run_test_rule(arg, some_rule(), DefaultReporter(io.StringIO()))


def test_test_dir_relative_to_cwd(project, monkeypatch):
    monkeypatch.chdir(project)
    arg = TestArg(test_dir="rule-tests", skip_snapshot_tests=True)
    message = run_test_rule(arg, some_rule(), DefaultReporter(io.StringIO()))
    assert "1 passed; 0 failed;" in message


def test_configuration_not_found(project):
    output = io.StringIO()
    arg = TestArg(config=project / "sgconfig.yml", skip_snapshot_tests=True)
    message = run_test_rule(arg, [], DefaultReporter(output))
    assert "Configuration not found! test-rule" in output.getvalue()
    assert "0 passed; 0 failed;" in message


def test_missing_snapshot_fails_without_update(project):
    arg = TestArg(config=project / "sgconfig.yml")
    with pytest.raises(TestFailure):
        run_test_rule(arg, some_rule(), DefaultReporter(io.StringIO()))
    assert not (project / "rule-tests" / "__snapshots__").exists()


def test_update_all_writes_snapshots(project):
    config = project / "sgconfig.yml"
    arg = TestArg(config=config, update_all=True)
    run_test_rule(arg, some_rule(), DefaultReporter(io.StringIO(), update_all=True))
    file = project / "rule-tests" / "__snapshots__" / "test-rule-snapshot.yml"
    snaps = TestSnapshots.from_yaml(file.read_text(encoding="utf-8"))
    assert snaps.id == TEST_RULE
    assert snaps.snapshots["Some(123)"].labels[0].source == "Some(123)"
    message = run_test_rule(TestArg(config=config), some_rule(), DefaultReporter(io.StringIO()))
    assert "1 passed; 0 failed;" in message


def test_default_reporter_writes_to_stdout(project, capsys):
    arg = TestArg(config=project / "sgconfig.yml", skip_snapshot_tests=True)
    run_test_rule(arg, some_rule())
    assert "Running 1 tests" in capsys.readouterr().out


def _updated_result():
    snapshot = TestSnapshot.generate(some_rule()[0], "Some(1)")
    status = CaseStatus(CaseKind.UPDATED, source="Some(1)", updated=snapshot)
    return CaseResult(id=TEST_RULE, cases=[status])


def test_apply_snapshot_action_skipped(tmp_path):
    target = tmp_path / "snaps"
    apply_snapshot_action(SnapshotAction.NEED_UPDATE, [_updated_result()], None, {TEST_RULE: target})
    assert not target.exists()


def test_apply_snapshot_action_accept_none(tmp_path):
    target = tmp_path / "snaps"
    apply_snapshot_action(SnapshotAction.ACCEPT_NONE, [_updated_result()], {}, {TEST_RULE: target})
    assert not target.exists()


def test_apply_snapshot_action_need_update(tmp_path):
    target = tmp_path / "snaps"
    apply_snapshot_action(SnapshotAction.NEED_UPDATE, [_updated_result()], {}, {TEST_RULE: target})
    text = (target / "test-rule-snapshot.yml").read_text(encoding="utf-8")
    assert TestSnapshots.from_yaml(text).snapshots["Some(1)"].labels[0].end == 7


def test_write_merged_to_disk_unknown_id(tmp_path):
    merged = {"other": TestSnapshots(id="other")}
    with pytest.raises(KeyError):
        write_merged_to_disk(merged, {TEST_RULE: tmp_path})


def test_write_merged_to_disk_round_trip(tmp_path):
    snaps = TestSnapshots(id=TEST_RULE, snapshots={"x": TestSnapshot(fixed="y")})
    write_merged_to_disk({TEST_RULE: snaps}, {TEST_RULE: tmp_path / "out"})
    text = (tmp_path / "out" / "test-rule-snapshot.yml").read_text(encoding="utf-8")
    assert TestSnapshots.from_yaml(text) == snaps