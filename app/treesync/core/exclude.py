"""Exclude pattern matching for inventory builds.

Patterns are glob-style (fnmatch) and matched case-sensitively against
root-relative POSIX paths; ``*`` also matches across ``/``. A pattern
starting with ``!`` re-includes paths excluded by an earlier pattern.
The last matching pattern decides.
"""

import fnmatch
from collections.abc import Iterable

NEGATION_PREFIX = "!"


class ExcludeFilter:
    """Ordered exclude/re-include rules for file entries.

    Only file entries are filtered. Directories are always descended
    into so that files below an excluded pattern can still be
    re-included by a later negated pattern.

    Example:
        >>> rules = ExcludeFilter(["*.log", "!keep.log"])
        >>> rules.is_excluded("app.log")
        True
        >>> rules.is_excluded("keep.log")
        False
    """

    def __init__(self, patterns: Iterable[str] | None = None) -> None:
        """Initialize the filter.

        Args:
            patterns: Glob patterns in priority order (later wins). Blank
                patterns and a bare "!" are ignored.
        """
        self._rules: list[tuple[str, bool]] = []
        for raw in patterns or ():
            pattern = raw.strip()
            negated = pattern.startswith(NEGATION_PREFIX)
            if negated:
                pattern = pattern[len(NEGATION_PREFIX) :]
            if not pattern:
                continue
            self._rules.append((pattern, negated))

    def __bool__(self) -> bool:
        return bool(self._rules)

    @property
    def patterns(self) -> list[str]:
        """Normalized patterns in the order given."""
        return [f"{NEGATION_PREFIX}{p}" if neg else p for p, neg in self._rules]

    def is_excluded(self, path: str) -> bool:
        """Check if a file path is excluded.

        Args:
            path: Root-relative POSIX path of a file.

        Returns:
            True if the last pattern matching the path is not negated.
        """
        excluded = False
        for pattern, negated in self._rules:
            if fnmatch.fnmatchcase(path, pattern):
                excluded = not negated
        return excluded
