"""
Path and key decisions applied to each candidate before upload.
"""
import posixpath
import re
from functools import lru_cache
from typing import Iterable, Optional

from .config import KeyFilter, KeyTransform

IGNORED_NAMES = frozenset({
    ".DS_Store",
    "Thumbs.db",
    "bower_components",
    "node_modules",
})


def is_ignored_name(name: str) -> bool:
    """Check whether a single file or directory name is on the denylist."""
    return name in IGNORED_NAMES


def is_ignored_path(relative_path: str) -> bool:
    """Check whether the file or any of its parent directories is ignored.

    Args:
        relative_path: POSIX path relative to the upload root

    Returns:
        True if any path segment is an ignored name
    """
    return any(is_ignored_name(part) for part in relative_path.split("/"))


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern:
    """Translate a path glob into a regular expression.

    ``*`` and ``?`` stay within one path segment. A ``**`` segment spans any
    number of directories, including none, so ``**/*.js`` also matches
    ``app.js`` at the root.

    Args:
        pattern: Glob pattern using ``/`` as separator

    Returns:
        Compiled expression to be used with ``fullmatch``
    """
    parts = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            at_segment_start = i == 0 or pattern[i - 1] == "/"
            if at_segment_start and pattern.startswith("**", i):
                end = i + 2
                if end == n:
                    parts.append(".*")
                    i = end
                    continue
                if pattern[end] == "/":
                    parts.append("(?:.*/)?")
                    i = end + 1
                    continue
            parts.append("[^/]*")
            i += 1
        elif c == "?":
            parts.append("[^/]")
            i += 1
        elif c == "[":
            j = pattern.find("]", i + 2)
            if j == -1:
                parts.append(re.escape(c))
                i += 1
                continue
            body = pattern[i + 1:j].replace("\\", "\\\\")
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            i = j + 1
        else:
            parts.append(re.escape(c))
            i += 1
    return re.compile("".join(parts))


def is_excluded(relative_path: str, patterns: Optional[Iterable[str]]) -> bool:
    """Check a path against exclude glob patterns.

    A pattern matches when it matches the whole relative path, with ``*``
    never crossing a ``/``. Patterns without a slash also match against the
    final path segment, so ``*.log`` excludes ``logs/app.log``.

    Args:
        relative_path: POSIX path relative to the upload root
        patterns: Exclude glob patterns

    Returns:
        True if any pattern matches
    """
    if not patterns or not relative_path:
        return False

    basename = posixpath.basename(relative_path)
    for pattern in patterns:
        regex = compile_glob(pattern)
        if regex.fullmatch(relative_path):
            return True
        if "/" not in pattern and regex.fullmatch(basename):
            return True
    return False


def transform_key(key: str, transform: Optional[KeyTransform] = None) -> str:
    """Apply the configured key transform.

    Args:
        key: Relative path of the candidate
        transform: Optional callable mapping a path to an object key

    Returns:
        The transformed key, or the path itself without a transform
    """
    if transform is None:
        return key
    return transform(key)


def accepts_key(key: str, key_filter: Optional[KeyFilter] = None) -> bool:
    """Check a key against the configured key filter.

    Args:
        key: Object key, already transformed
        key_filter: Optional predicate over keys

    Returns:
        True if there is no filter or the filter accepts the key
    """
    if key_filter is None:
        return True
    return bool(key_filter(key))
