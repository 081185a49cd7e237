"""Include / exclude selectors applied to implementation names."""

from __future__ import annotations

import re
from collections.abc import Iterable

from serviceloader.errors import ConfigurationError


class SelectorPattern:
    """A glob matched against a full dotted binary name.

    ``*`` and ``**`` match any run of characters, dots included; ``?``
    matches exactly one character. Everything else is literal and the match
    is anchored at both ends.
    """

    def __init__(self, pattern: str) -> None:
        if not pattern:
            raise ConfigurationError("Selector patterns must not be empty")
        self.pattern = pattern
        self._regex = re.compile(self._translate(pattern))

    @staticmethod
    def _translate(pattern: str) -> str:
        parts = []
        for token in re.split(r"(\*+|\?)", pattern):
            if not token:
                continue
            if token.startswith("*"):
                parts.append(".*")
            elif token == "?":
                parts.append(".")
            else:
                parts.append(re.escape(token))
        return "".join(parts)

    def matches(self, name: str) -> bool:
        return self._regex.fullmatch(name) is not None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SelectorPattern) and other.pattern == self.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def __repr__(self) -> str:
        return f"SelectorPattern({self.pattern!r})"


def compile_patterns(patterns: Iterable[str | SelectorPattern]) -> tuple[SelectorPattern, ...]:
    return tuple(p if isinstance(p, SelectorPattern) else SelectorPattern(p) for p in patterns)


def matches_any(name: str, patterns: Iterable[SelectorPattern]) -> bool:
    return any(pattern.matches(name) for pattern in patterns)


def apply_filters(
    names: Iterable[str],
    includes: Iterable[str | SelectorPattern] = (),
    excludes: Iterable[str | SelectorPattern] = (),
) -> list[str]:
    """Keep names matching an include (if any are given), then drop excluded ones."""
    include_patterns = compile_patterns(includes)
    exclude_patterns = compile_patterns(excludes)

    selected = list(names)
    if include_patterns:
        selected = [name for name in selected if matches_any(name, include_patterns)]
    if exclude_patterns:
        selected = [name for name in selected if not matches_any(name, exclude_patterns)]
    return selected
