"""Regular-expression ignore filtering for sync, list and delete operations.

The user supplies one regular expression. It is tested against each path
*segment* separately (never against the full relative path), using search
semantics: ``secret`` matches ``my-secret.txt``; anchor with ``^...$`` for
exact names.

Examples:
    >>> f = compile_ignore_pattern(r"\\.tmp$")
    >>> f.should_ignore("build/cache.tmp")
    True
    >>> f.should_ignore("build/cache.txt")
    False
    >>> compile_ignore_pattern(None).should_ignore("anything")
    False
"""

import logging
import re
from typing import Optional

from ..exceptions import FileBrowserConfigError

logger = logging.getLogger(__name__)


class IgnoreFilter:
    """A compiled ignore pattern; an absent pattern ignores nothing."""

    def __init__(self, pattern: Optional["re.Pattern[str]"] = None):
        self.pattern = pattern

    def __bool__(self) -> bool:
        return self.pattern is not None

    def __repr__(self) -> str:
        source = self.pattern.pattern if self.pattern is not None else None
        return f"IgnoreFilter({source!r})"

    def matches(self, name: str) -> bool:
        """Check a single path segment against the pattern."""
        if self.pattern is None:
            return False
        return self.pattern.search(name) is not None

    def should_ignore(self, relative_path: str) -> bool:
        """Check whether any ``/``-separated segment matches.

        Args:
            relative_path: POSIX relative path

        Returns:
            True if at least one segment matches
        """
        if self.pattern is None:
            return False
        return any(self.matches(part) for part in relative_path.split("/"))

    def should_ignore_top_level(self, relative_path: str) -> bool:
        """Check only the first segment of a relative path."""
        if self.pattern is None:
            return False
        return self.matches(relative_path.split("/", 1)[0])


def compile_ignore_pattern(pattern: Optional[str]) -> IgnoreFilter:
    """Compile a user-supplied ignore pattern.

    Args:
        pattern: Regular expression, or None/"" for no filtering

    Returns:
        IgnoreFilter instance

    Raises:
        FileBrowserConfigError: If the pattern is not a valid expression
    """
    if not pattern:
        return IgnoreFilter()
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise FileBrowserConfigError(f"Invalid ignore regex: {e}") from e
    logger.debug(f"Compiled ignore pattern: {pattern}")
    return IgnoreFilter(compiled)
