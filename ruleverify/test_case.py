"""A rule test: code the rule must accept and code it must report."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .case_result import CaseResult, CaseStatus
from .rules import Rule
from .snapshot import TestSnapshots


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"field {key!r} must be a list of strings")
    return list(value)


@dataclass
class TestCase:
    """One rule-test file: the rule id with its valid and invalid code."""

    __test__ = False

    id: str
    valid: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TestCase:
        if not isinstance(data, Mapping):
            raise ValueError("a test case must be a mapping")
        case_id = data.get("id")
        if not isinstance(case_id, str):
            raise ValueError("a test case needs a string 'id'")
        return cls(
            id=case_id,
            valid=_string_list(data, "valid"),
            invalid=_string_list(data, "invalid"),
        )

    def _check_rule(self, rule: Rule) -> None:
        if self.id != rule.id:
            raise ValueError(f"test case {self.id!r} does not belong to rule {rule.id!r}")

    def verify_rule(self, rule: Rule) -> CaseResult:
        """Check every case, only looking at whether issues are reported."""
        self._check_rule(rule)
        cases = [CaseStatus.verify_valid(rule, code) for code in self.valid]
        cases += [CaseStatus.verify_invalid(rule, code) for code in self.invalid]
        return CaseResult(id=self.id, cases=cases)

    def verify_with_snapshot(self, rule: Rule, snapshots: TestSnapshots | None) -> CaseResult:
        """Check every case, comparing invalid code against its stored snapshot."""
        self._check_rule(rule)
        stored = snapshots.snapshots if snapshots is not None else {}
        cases = [CaseStatus.verify_valid(rule, code) for code in self.valid]
        cases += [
            CaseStatus.verify_snapshot(rule, code, stored.get(code)) for code in self.invalid
        ]
        return CaseResult(id=self.id, cases=cases)