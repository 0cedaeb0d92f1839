"""Snapshots recording what a rule reports for a piece of invalid code."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import yaml

from .rules import MatchedNode, Rule


class LabelStyle(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


def _require(data: Mapping[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected a mapping, got {type(data).__name__}")
    if key not in data:
        raise ValueError(f"missing field {key!r}")
    value = data[key]
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ValueError(f"field {key!r} has wrong type {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Label:
    """A highlighted span of the reported code."""

    source: str
    style: LabelStyle
    start: int
    end: int
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"source": self.source}
        if self.message is not None:
            data["message"] = self.message
        data.update(style=self.style.value, start=self.start, end=self.end)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Label:
        message = data.get("message") if isinstance(data, Mapping) else None
        if message is not None and not isinstance(message, str):
            raise ValueError("field 'message' must be a string")
        return cls(
            source=_require(data, "source", str),
            style=LabelStyle(_require(data, "style", str)),
            start=_require(data, "start", int),
            end=_require(data, "end", int),
            message=message,
        )


def _label(node: MatchedNode, style: LabelStyle) -> Label:
    return Label(source=node.text, style=style, start=node.start, end=node.end)


@dataclass
class TestSnapshot:
    """The labels and fixed code a rule produced for one test case."""

    __test__ = False

    fixed: str | None = None
    labels: list[Label] = field(default_factory=list)

    @classmethod
    def generate(cls, rule: Rule, case: str) -> TestSnapshot | None:
        """Run ``rule`` on ``case``; None if nothing is reported.

        Raises ValueError when the rule's fix cannot be applied.
        """
        matched = rule.find(case)
        if matched is None:
            return None
        labels = [_label(matched, LabelStyle.PRIMARY)]
        labels.extend(_label(node, LabelStyle.SECONDARY) for node in matched.secondary)
        return cls(fixed=rule.fix(case), labels=labels)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.fixed is not None:
            data["fixed"] = self.fixed
        data["labels"] = [label.to_dict() for label in self.labels]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TestSnapshot:
        labels = _require(data, "labels", list)
        fixed = data.get("fixed")
        if fixed is not None and not isinstance(fixed, str):
            raise ValueError("field 'fixed' must be a string")
        return cls(fixed=fixed, labels=[Label.from_dict(item) for item in labels])


@dataclass
class TestSnapshots:
    """All snapshots of one rule test, keyed by the code of each case."""

    __test__ = False

    id: str
    snapshots: dict[str, TestSnapshot] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "snapshots": {
                source: self.snapshots[source].to_dict() for source in sorted(self.snapshots)
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TestSnapshots:
        case_id = _require(data, "id", str)
        snapshots = _require(data, "snapshots", Mapping)
        return cls(
            id=case_id,
            snapshots={
                str(source): TestSnapshot.from_dict(snap) for source, snap in snapshots.items()
            },
        )

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def from_yaml(cls, text: str) -> TestSnapshots:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid snapshot YAML: {exc}") from exc
        return cls.from_dict(data)


SnapshotCollection = dict[str, TestSnapshots]


def merge_snapshots(
    accepted: Mapping[str, TestSnapshots], existing: Mapping[str, TestSnapshots]
) -> SnapshotCollection:
    """Overlay accepted snapshots onto existing ones, without altering either."""
    merged = {
        case_id: TestSnapshots(snaps.id, dict(snaps.snapshots))
        for case_id, snaps in existing.items()
    }
    for case_id, tests in accepted.items():
        if case_id in merged:
            merged[case_id].snapshots.update(tests.snapshots)
        else:
            merged[case_id] = TestSnapshots(tests.id, dict(tests.snapshots))
    return merged


class SnapshotAction(Enum):
    """Whether changed snapshots should be written back."""

    NEED_UPDATE = "need_update"
    ACCEPT_NONE = "accept_none"

    def update_snapshot_collection(
        self, existing: Mapping[str, TestSnapshots], results: Iterable[Any]
    ) -> SnapshotCollection | None:
        """Merge the updated snapshots of ``results``; None when nothing is accepted."""
        if self is SnapshotAction.ACCEPT_NONE:
            return None
        accepted = {result.id: result.changed_snapshots() for result in results}
        return merge_snapshots(accepted, existing)