"""Locating rule-test files and their stored snapshots on disk."""

from __future__ import annotations

import re
import sys
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .snapshot import SnapshotCollection, TestSnapshots
from .test_case import TestCase

SNAPSHOT_DIR = "__snapshots__"
CONFIG_FILE = "sgconfig.yml"
_CONFIG_SUFFIXES = (".yml", ".yaml")


@dataclass
class TestHarness:
    """Test cases with their snapshots and where each rule's snapshots live."""

    __test__ = False

    test_cases: list[TestCase] = field(default_factory=list)
    snapshots: SnapshotCollection = field(default_factory=dict)
    path_map: dict[str, Path] = field(default_factory=dict)

    def extend(self, other: TestHarness) -> None:
        self.test_cases.extend(other.test_cases)
        self.snapshots.update(other.snapshots)
        self.path_map.update(other.path_map)


def _find_config_path(config_path: str | Path | None) -> Path:
    if config_path is not None:
        return Path(config_path)
    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / CONFIG_FILE
        if candidate.is_file():
            return candidate
    raise FileNotFoundError(f"no {CONFIG_FILE} found in {cwd} or its parents")


def _load_yaml(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"cannot parse {path}: {exc}") from exc


def _compile(regex_filter: str | re.Pattern[str] | None) -> re.Pattern[str] | None:
    return re.compile(regex_filter) if regex_filter is not None else None


def _test_dirs(config: Any, path: Path) -> list[tuple[str, str | None]]:
    if not isinstance(config, Mapping):
        raise ValueError(f"configuration {path} must be a mapping")
    entries = config.get("testConfigs") or []
    if not isinstance(entries, list):
        raise ValueError(f"'testConfigs' in {path} must be a list")
    dirs = []
    for entry in entries:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("testDir"), str):
            raise ValueError(f"each entry of 'testConfigs' in {path} needs a 'testDir'")
        snapshot_dir = entry.get("snapshotDir")
        if snapshot_dir is not None and not isinstance(snapshot_dir, str):
            raise ValueError(f"'snapshotDir' in {path} must be a string")
        dirs.append((entry["testDir"], snapshot_dir))
    return dirs


def find_tests(
    config_path: str | Path | None,
    regex_filter: str | re.Pattern[str] | None,
) -> TestHarness:
    """Collect the tests of every test directory named by the configuration."""
    path = _find_config_path(config_path)
    config = _load_yaml(path)
    base_dir = path.parent
    harness = TestHarness()
    for test_dir, snapshot_dir in _test_dirs(config, path):
        harness.extend(read_test_files(base_dir, test_dir, snapshot_dir, regex_filter))
    return harness


def _walk_config_files(root: Path) -> Iterator[Path]:
    if root.is_file():
        if root.suffix in _CONFIG_SUFFIXES:
            yield root
        return
    for entry in sorted(root.iterdir()):
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            yield from _walk_config_files(entry)
        elif entry.is_file() and entry.suffix in _CONFIG_SUFFIXES:
            yield entry


def read_test_files(
    base_dir: str | Path,
    test_dirname: str | Path,
    snapshot_dirname: str | Path | None,
    regex_filter: str | re.Pattern[str] | None,
) -> TestHarness:
    """Read test cases and snapshots below ``base_dir / test_dirname``.

    Files inside the snapshot directory are snapshots; every other YAML file is
    a test case. Only ids matched by ``regex_filter`` are kept.
    """
    pattern = _compile(regex_filter)
    test_path = Path(base_dir) / test_dirname
    snapshot_path = test_path / (snapshot_dirname or SNAPSHOT_DIR)
    if not test_path.exists():
        raise FileNotFoundError(f"cannot walk rule directory {test_path}")
    harness = TestHarness()
    for path in _walk_config_files(test_path):
        data = _load_yaml(path)
        if snapshot_path in path.parents:
            try:
                snapshot = TestSnapshots.from_dict(data)
            except ValueError as exc:
                raise ValueError(f"cannot parse test file {path}: {exc}") from exc
            if pattern is not None and not pattern.search(snapshot.id):
                continue
            if snapshot.id in harness.snapshots:
                print(
                    f"Warning: found duplicate test case snapshot for `{snapshot.id}`",
                    file=sys.stderr,
                )
            harness.snapshots[snapshot.id] = snapshot
        else:
            try:
                test_case = TestCase.from_dict(data)
            except ValueError as exc:
                raise ValueError(f"cannot parse test file {path}: {exc}") from exc
            if pattern is None or pattern.search(test_case.id):
                harness.path_map[test_case.id] = snapshot_path
                harness.test_cases.append(test_case)
    return harness