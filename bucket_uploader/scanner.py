"""
Module for enumerating the files of an upload root.
"""
import logging
from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Sequence, Union

from .config import UploadConfig

logger = logging.getLogger(__name__)


class FileScanner:
    """Lists candidate files below a root directory."""

    def scan(self, config: UploadConfig) -> List[str]:
        """List the candidates for a run.

        Args:
            config: Run configuration containing root and include patterns

        Returns:
            Relative POSIX paths of matching files
        """
        return self.list_files(config.root, config.includes)

    def list_files(self, root: Path, includes: Union[str, Sequence[str]]) -> List[str]:
        """Expand include patterns below a root.

        Directories are dropped and files matched by several patterns are
        listed once, in the order they were first found. A trailing ``**``
        segment means every file below that point. Files whose path has a
        segment starting with ``.`` are skipped unless the pattern names
        that segment with a leading ``.`` itself.

        Args:
            root: Directory to scan
            includes: Glob patterns relative to root

        Returns:
            Relative POSIX paths of matching files
        """
        if isinstance(includes, str):
            includes = [includes]

        found = {}
        for pattern in includes:
            pattern = self.normalize_pattern(pattern)
            for path in sorted(root.glob(pattern)):
                if not path.is_file():
                    continue
                relative_path = self.get_relative_path(path, root).as_posix()
                if self.is_hidden(relative_path, pattern):
                    logger.debug(f"Skipping hidden file {relative_path}")
                    continue
                found.setdefault(relative_path, None)

        logger.debug(f"Found {len(found)} files in {root} for {list(includes)}")
        return list(found)

    def normalize_pattern(self, pattern: str) -> str:
        # pathlib matches directories only for a trailing **
        if pattern == "**" or pattern.endswith("/**"):
            return f"{pattern}/*"
        return pattern

    def is_hidden(self, relative_path: str, pattern: str) -> bool:
        """Check whether a match is a dotfile the pattern did not ask for.

        Args:
            relative_path: POSIX path of the match relative to the root
            pattern: Include pattern that produced the match

        Returns:
            True if a segment starts with ``.`` and no ``.`` segment of the
            pattern matches it
        """
        dot_segments = [part for part in pattern.split("/") if part.startswith(".")]
        for part in relative_path.split("/"):
            if not part.startswith("."):
                continue
            if not any(fnmatchcase(part, segment) for segment in dot_segments):
                return True
        return False

    def get_relative_path(self, file_path: Path, base_path: Path) -> Path:
        """Get the relative path of a file from a base path.

        Args:
            file_path: Path to the file
            base_path: Base path to make relative to

        Returns:
            Relative path from base_path to file_path
        """
        try:
            return file_path.relative_to(base_path)
        except ValueError:
            logger.error(f"File {file_path} is not relative to {base_path}")
            return file_path
