"""Console reporting of rule-test results."""

from __future__ import annotations

import difflib
import sys
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import TextIO

import yaml

from .case_result import CaseKind, CaseResult, CaseStatus
from .snapshot import SnapshotAction, TestSnapshot
from .test_case import TestCase

_BOLD = "1"
_ITALIC = "3"
_UNDERLINE = "4"
_FG_RED = "31"
_FG_GREEN = "32"
_FG_WHITE = "37"
_BG_RED = "41"
_BG_GREEN = "42"
_BG_YELLOW = "43"

_SUMMARY_LIMIT = 40
_SUMMARY_WIDTH = 50
_DIFF_CONTEXT = 3

_PROMPT = "Accept new snapshot? (Yes[y], No[n], Accept All[a], Quit[q])"

_CASE_CHARS = {
    CaseKind.VALIDATED: ".",
    CaseKind.REPORTED: ".",
    CaseKind.WRONG: "W",
    CaseKind.UPDATED: "U",
    CaseKind.MISSING: "M",
    CaseKind.NOISY: "N",
    CaseKind.ERROR: "E",
}

_STAT_LABELS = {
    CaseKind.VALIDATED: "Pass",
    CaseKind.REPORTED: "Pass",
    CaseKind.UPDATED: "Updated",
    CaseKind.WRONG: "Wrong",
    CaseKind.MISSING: "Missing",
    CaseKind.NOISY: "Noisy",
    CaseKind.ERROR: "Error",
}
_STAT_ORDER = ("Pass", "Updated", "Wrong", "Missing", "Noisy", "Error")


def _paint(text: str, *codes: str) -> str:
    return f"\x1b[{';'.join(codes)}m{text}\x1b[0m"


def _is_tty(output: TextIO) -> bool:
    isatty = getattr(output, "isatty", None)
    return bool(isatty and isatty())


def report_summary(summary: Sequence[CaseStatus]) -> str:
    """One character per case, or per-kind counts when there are many cases."""
    if len(summary) > _SUMMARY_LIMIT:
        counts = Counter(_STAT_LABELS[status.kind] for status in summary)
        parts = [f"{label} × {counts[label]}" for label in _STAT_ORDER if counts[label]]
        text = ", ".join(parts)
        return f"{text:.^{_SUMMARY_WIDTH}}"
    return "".join(_CASE_CHARS[status.kind] for status in summary)


def _snapshot_yaml(snapshot: TestSnapshot) -> str:
    return yaml.safe_dump(snapshot.to_dict(), sort_keys=False, allow_unicode=True)


def _indented(output: TextIO, code: str) -> None:
    for line in code.splitlines():
        output.write(f"  {line}\n")


def _write_diff(output: TextIO, expected: str, actual: str) -> None:
    color = _is_tty(output)
    diff = difflib.unified_diff(
        expected.splitlines(), actual.splitlines(), lineterm="", n=_DIFF_CONTEXT
    )
    for line in diff:
        if line.startswith(("---", "+++")):
            continue
        if color and line.startswith("+"):
            line = _paint(line, _FG_GREEN)
        elif color and line.startswith("-"):
            line = _paint(line, _FG_RED)
        output.write(f"{line}\n")


def _write_case_detail(output: TextIO, case_id: str, status: CaseStatus) -> None:
    case = _paint(case_id, _BOLD)
    kind = status.kind
    if kind in (CaseKind.VALIDATED, CaseKind.REPORTED):
        return
    if kind is CaseKind.UPDATED:
        updated = _paint("Updated", _UNDERLINE)
        output.write(f"[{updated}] Rule {case}'s snapshot baseline has been updated.\n\n")
        _indented(output, status.source or "")
        output.write("\n")
    elif kind is CaseKind.WRONG:
        wrong = _paint("Wrong", _UNDERLINE)
        actual = _snapshot_yaml(status.actual or TestSnapshot())
        if status.expected is not None:
            output.write(f"[{wrong}] {case} snapshot is different from baseline.\n")
            output.write(f"{_paint('Diff:', _ITALIC)}\n")
            _write_diff(output, _snapshot_yaml(status.expected), actual)
        else:
            output.write(f"[{wrong}] No {case} baseline found.\n")
            output.write(f"{_paint('Generated Snapshot:', _ITALIC)}\n")
            _indented(output, actual)
        output.write(f"{_paint('For Code:', _ITALIC)}\n")
        _indented(output, status.source or "")
        output.write("\n")
    elif kind is CaseKind.MISSING:
        missing = _paint("Missing", _UNDERLINE)
        output.write(
            f"[{missing}] Expect rule {case} to report issues, but none found in:\n\n"
        )
        _indented(output, status.source or "")
        output.write("\n")
    elif kind is CaseKind.NOISY:
        noisy = _paint("Noisy", _UNDERLINE)
        output.write(
            f"[{noisy}] Expect {case} to report no issue, but some issues found in:\n\n"
        )
        _indented(output, status.source or "")
        output.write("\n")
    elif kind is CaseKind.ERROR:
        error = _paint("Error", _UNDERLINE)
        output.write(f"[{error}] Fail to apply fix to {case}\n")


class Reporter(ABC):
    """Writes progress, failures and summaries of a rule-test run."""

    def __init__(self, output: TextIO | None = None) -> None:
        self.output = output if output is not None else sys.stdout

    def before_report(self, test_cases: Sequence[TestCase]) -> None:
        """Announce how many tests will run."""
        self.output.write(f"Running {len(test_cases)} tests\n")

    def after_report(self, results: Iterable[CaseResult]) -> tuple[bool, str]:
        """Return whether everything passed, with a closing message."""
        outcomes = [result.passed() for result in results]
        passed = outcomes.count(True)
        failed = outcomes.count(False)
        message = f"{passed} passed; {failed} failed;"
        if failed:
            return False, f"test failed. {message}"
        return True, f"test result: {_paint('ok', _FG_GREEN)}. {message}"

    def report_failed_cases(self, results: Iterable[CaseResult]) -> None:
        """Describe every case of every failed result, until told to stop."""
        self.output.write("\n----------- Case Details -----------\n")
        for result in results:
            if result.passed():
                continue
            for status in result.cases:
                if not self.report_case_detail(result.id, status):
                    return

    def report_summaries(self, results: Iterable[CaseResult]) -> None:
        for result in results:
            self.report_case_summary(result.id, result.cases)
        self.output.write("\n")

    def report_case_summary(self, case_id: str, summary: Sequence[CaseStatus]) -> None:
        if not summary:
            badge = _paint("SKIP", _BOLD, _FG_WHITE, _BG_YELLOW)
        elif all(status.is_pass() for status in summary):
            badge = _paint("PASS", _BOLD, _FG_WHITE, _BG_GREEN)
        else:
            badge = _paint("FAIL", _BOLD, _FG_WHITE, _BG_RED)
        self.output.write(f"{badge} {case_id}  {report_summary(summary)}\n")

    @abstractmethod
    def report_case_detail(self, case_id: str, status: CaseStatus) -> bool:
        """Describe one case; may accept its snapshot. Return whether to go on."""

    @abstractmethod
    def collect_snapshot_action(self) -> SnapshotAction:
        """Whether accepted snapshots should be written back."""


class DefaultReporter(Reporter):
    """Reports every failure; with ``update_all`` every wrong snapshot is accepted."""

    def __init__(self, output: TextIO | None = None, update_all: bool = False) -> None:
        super().__init__(output)
        self.update_all = update_all

    def report_case_detail(self, case_id: str, status: CaseStatus) -> bool:
        if self.update_all:
            status.accept()
        _write_case_detail(self.output, case_id, status)
        return True

    def collect_snapshot_action(self) -> SnapshotAction:
        if self.update_all:
            return SnapshotAction.NEED_UPDATE
        return SnapshotAction.ACCEPT_NONE


@contextmanager
def _alternate_screen(output: TextIO) -> Iterator[None]:
    if not _is_tty(output):
        yield
        return
    output.write("\x1b[?1049h\x1b[H")
    output.flush()
    try:
        yield
    finally:
        output.write("\x1b[?1049l")
        output.flush()


class InteractiveReporter(Reporter):
    """Asks, case by case, whether a new snapshot should be accepted."""

    def __init__(
        self,
        output: TextIO | None = None,
        should_accept_all: bool = False,
        reader: Callable[[str], str] = input,
    ) -> None:
        super().__init__(output)
        self.should_accept_all = should_accept_all
        self.reader = reader

    def _prompt(self, message: str, letters: str, default: str | None) -> str:
        while True:
            answer = self.reader(f"{message} ").strip().lower()
            if not answer:
                if default is not None:
                    return default
                continue
            if len(answer) == 1 and answer in letters:
                return answer

    def report_case_detail(self, case_id: str, status: CaseStatus) -> bool:
        if status.kind in (CaseKind.VALIDATED, CaseKind.REPORTED):
            return True
        with _alternate_screen(self.output):
            _write_case_detail(self.output, case_id, status)
            if status.kind is not CaseKind.WRONG:
                return self._prompt("Next[enter], Quit[q]", "q", "\n") != "q"
            if self.should_accept_all:
                return self._accept(status)
            response = self._prompt(_PROMPT, "ynaq", "n")
            if response == "y":
                return self._accept(status)
            if response == "a":
                self.should_accept_all = True
                return self._accept(status)
            return response == "n"

    @staticmethod
    def _accept(status: CaseStatus) -> bool:
        status.accept()
        return True

    def collect_snapshot_action(self) -> SnapshotAction:
        return SnapshotAction.NEED_UPDATE