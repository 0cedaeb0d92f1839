"""Rules that locate an issue in source text and can optionally rewrite it."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class MatchedNode:
    """A span of source text reported by a rule, with any secondary spans."""

    text: str
    start: int
    end: int
    secondary: tuple[MatchedNode, ...] = ()


class Rule(ABC):
    """A named check applied to a piece of source code."""

    def __init__(self, id: str) -> None:
        self.id = id

    @abstractmethod
    def find(self, source: str) -> MatchedNode | None:
        """Return the first issue found in ``source``, or None."""

    def fix(self, source: str) -> str | None:
        """Return the rewritten source, or None when the rule has no fix."""
        return None


class RegexRule(Rule):
    """A rule driven by a regular expression.

    ``inside`` restricts matches to those enclosed by a match of a second
    expression; the enclosing span is reported as a secondary label.
    ``fix`` is a replacement template in :meth:`re.Match.expand` syntax,
    applied to the first match.
    """

    def __init__(
        self,
        id: str,
        pattern: str,
        fix: str | None = None,
        inside: str | None = None,
        flags: int = 0,
    ) -> None:
        super().__init__(id)
        try:
            self.pattern = re.compile(pattern, flags)
            self.inside = re.compile(inside, flags) if inside is not None else None
        except re.error as exc:
            raise ValueError(f"invalid pattern for rule {id!r}: {exc}") from exc
        self.template = fix

    def _search(self, source: str) -> tuple[re.Match[str], re.Match[str] | None] | None:
        for match in self.pattern.finditer(source):
            if self.inside is None:
                return match, None
            for outer in self.inside.finditer(source):
                if outer.start() <= match.start() and match.end() <= outer.end():
                    return match, outer
        return None

    def find(self, source: str) -> MatchedNode | None:
        found = self._search(source)
        if found is None:
            return None
        match, outer = found
        secondary = ()
        if outer is not None:
            secondary = (MatchedNode(outer.group(0), outer.start(), outer.end()),)
        return MatchedNode(match.group(0), match.start(), match.end(), secondary)

    def fix(self, source: str) -> str | None:
        """Rewrite the first match; the source is returned unchanged if nothing matches."""
        if self.template is None:
            return None
        found = self._search(source)
        if found is None:
            return source
        match = found[0]
        try:
            replacement = match.expand(self.template)
        except (re.error, IndexError) as exc:
            raise ValueError(f"cannot apply fix of rule {self.id!r}: {exc}") from exc
        return source[: match.start()] + replacement + source[match.end() :]