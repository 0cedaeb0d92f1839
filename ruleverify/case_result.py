"""Outcomes of checking a rule against the cases of its test file."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .rules import Rule
from .snapshot import TestSnapshot, TestSnapshots


class CaseKind(Enum):
    """How a rule behaved on one valid or invalid piece of code."""

    VALIDATED = "validated"
    """No issue reported for valid code."""
    REPORTED = "reported"
    """The expected issue reported for invalid code."""
    UPDATED = "updated"
    """A new snapshot was accepted."""
    WRONG = "wrong"
    """Invalid code reported, but not as in the snapshot."""
    MISSING = "missing"
    """No issue reported for invalid code."""
    NOISY = "noisy"
    """Some issue reported for valid code."""
    ERROR = "error"
    """The fix could not be applied."""


_PASSING = frozenset({CaseKind.VALIDATED, CaseKind.REPORTED, CaseKind.UPDATED})


@dataclass
class CaseStatus:
    """The status of one case together with the data its kind carries."""

    kind: CaseKind
    source: str | None = None
    actual: TestSnapshot | None = None
    expected: TestSnapshot | None = None
    updated: TestSnapshot | None = None

    @classmethod
    def verify_valid(cls, rule: Rule, case: str) -> CaseStatus:
        if rule.find(case) is not None:
            return cls(CaseKind.NOISY, source=case)
        return cls(CaseKind.VALIDATED)

    @classmethod
    def verify_invalid(cls, rule: Rule, case: str) -> CaseStatus:
        if rule.find(case) is not None:
            return cls(CaseKind.REPORTED)
        return cls(CaseKind.MISSING, source=case)

    @classmethod
    def verify_snapshot(
        cls, rule: Rule, case: str, snapshot: TestSnapshot | None
    ) -> CaseStatus:
        try:
            actual = TestSnapshot.generate(rule, case)
        except ValueError:
            return cls(CaseKind.ERROR)
        if actual is None:
            return cls(CaseKind.MISSING, source=case)
        if snapshot is not None and snapshot == actual:
            return cls(CaseKind.REPORTED)
        return cls(CaseKind.WRONG, source=case, actual=actual, expected=snapshot)

    def accept(self) -> bool:
        """Turn a wrong case into an updated one; report whether it changed."""
        if self.kind is not CaseKind.WRONG:
            return False
        self.kind = CaseKind.UPDATED
        self.updated = self.actual
        self.actual = None
        self.expected = None
        return True

    def is_pass(self) -> bool:
        return self.kind in _PASSING


@dataclass
class CaseResult:
    """The statuses of all cases of one rule test."""

    id: str
    cases: list[CaseStatus] = field(default_factory=list)

    def passed(self) -> bool:
        """Whether every case passed."""
        return all(case.is_pass() for case in self.cases)

    def changed_snapshots(self) -> TestSnapshots:
        return TestSnapshots(
            id=self.id,
            snapshots={
                case.source: case.updated
                for case in self.cases
                if case.kind is CaseKind.UPDATED
            },
        )