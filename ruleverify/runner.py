"""Running rule tests end to end: verify, report and update snapshots."""

from __future__ import annotations

import os
import re
import threading
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from .case_result import CaseResult
from .find_file import TestHarness, find_tests, read_test_files
from .reporter import DefaultReporter, InteractiveReporter, Reporter
from .rules import Rule
from .snapshot import SnapshotAction, SnapshotCollection, TestSnapshots
from .test_case import TestCase

_MAX_WORKERS = 12


class TestFailure(Exception):
    """Raised when at least one rule test did not pass."""

    __test__ = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass
class TestArg:
    """Options of a rule-test run."""

    __test__ = False

    config: str | Path | None = None
    test_dir: str | Path | None = None
    snapshot_dir: str | Path | None = None
    skip_snapshot_tests: bool = False
    update_all: bool = False
    interactive: bool = False
    filter: str | re.Pattern[str] | None = None

    def __post_init__(self) -> None:
        if self.skip_snapshot_tests and self.update_all:
            raise ValueError("skip_snapshot_tests cannot be combined with update_all")


def _rule_map(rules: Mapping[str, Rule] | Iterable[Rule]) -> Mapping[str, Rule]:
    if isinstance(rules, Mapping):
        return rules
    return {rule.id: rule for rule in rules}


def verify_test_case_simple(
    test_case: TestCase,
    rules: Mapping[str, Rule] | Iterable[Rule],
    snapshots: Mapping[str, TestSnapshots] | None,
) -> CaseResult | None:
    """Verify one test case against its rule; None if no rule has its id."""
    rule = _rule_map(rules).get(test_case.id)
    if rule is None:
        return None
    if snapshots is not None:
        return test_case.verify_with_snapshot(rule, snapshots.get(test_case.id))
    return test_case.verify_rule(rule)


def write_merged_to_disk(merged: SnapshotCollection, path_map: Mapping[str, Path]) -> None:
    """Write each rule's snapshots to ``<id>-snapshot.yml`` in its snapshot directory."""
    for case_id, snaps in merged.items():
        if case_id not in path_map:
            raise KeyError(f"no snapshot directory known for rule {case_id!r}")
        directory = Path(path_map[case_id])
        if not directory.exists():
            directory.mkdir()
        (directory / f"{case_id}-snapshot.yml").write_text(snaps.to_yaml(), encoding="utf-8")


def apply_snapshot_action(
    action: SnapshotAction,
    results: Sequence[CaseResult],
    snapshots: SnapshotCollection | None,
    path_map: Mapping[str, Path],
) -> None:
    """Write accepted snapshot changes, unless snapshots are skipped or rejected."""
    if snapshots is None:
        return
    merged = action.update_snapshot_collection(snapshots, results)
    if merged is None:
        return
    write_merged_to_disk(merged, path_map)


def _load_harness(arg: TestArg) -> TestHarness:
    if arg.test_dir is not None:
        return read_test_files(Path.cwd(), arg.test_dir, arg.snapshot_dir, arg.filter)
    return find_tests(arg.config, arg.filter)


def _default_reporter(arg: TestArg) -> Reporter:
    if arg.interactive:
        return InteractiveReporter(should_accept_all=False)
    return DefaultReporter(update_all=arg.update_all)


def run_test_rule(
    arg: TestArg,
    rules: Mapping[str, Rule] | Iterable[Rule],
    reporter: Reporter | None = None,
) -> str:
    """Run every rule test and return the closing message.

    Raises TestFailure when any test fails.
    """
    rule_map = _rule_map(rules)
    if reporter is None:
        reporter = _default_reporter(arg)
    harness = _load_harness(arg)
    snapshots = None if arg.skip_snapshot_tests else harness.snapshots
    reporter.before_report(harness.test_cases)

    lock = threading.Lock()

    def check_one_case(case: TestCase) -> CaseResult | None:
        result = verify_test_case_simple(case, rule_map, snapshots)
        if result is None:
            with lock:
                reporter.output.write(f"Configuration not found! {case.id}\n")
        return result

    workers = max(1, min(os.cpu_count() or 1, _MAX_WORKERS))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = [r for r in pool.map(check_one_case, harness.test_cases) if r is not None]

    reporter.report_failed_cases(results)
    action = reporter.collect_snapshot_action()
    apply_snapshot_action(action, results, snapshots, harness.path_map)
    reporter.report_summaries(results)
    passed, message = reporter.after_report(results)
    if not passed:
        raise TestFailure(message)
    reporter.output.write(f"{message}\n")
    return message