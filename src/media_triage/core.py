import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Optional

from .errors import CopyIOError

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = ("mp4", "mkv", "avi", "mov", "flv", "wmv", "webm")
SUBTITLE_EXTENSIONS = ("srt", "ass", "vtt", "sub", "ssa")


def _raise_walk_error(error: OSError) -> None:
    # os.walk ignores unreadable directories unless told otherwise.
    raise error


def file_extension(file_name: str) -> Optional[str]:
    """
    Returns the lower-cased text after the last dot of `file_name`.

    None means the file has no extension: no dot, or only a leading one as
    in '.hidden'. A trailing dot ('movie.') gives an empty extension, which
    only ANY accepts. Extensions that are not valid UTF-8 count as missing.
    """
    stem, dot, extension = file_name.rpartition('.')
    if not dot or not stem:
        return None
    try:
        extension.encode('utf-8')
    except UnicodeEncodeError:
        return None
    return extension.lower()


class FilterCategory(Enum):
    """The fixed set of extension rules a copy can be restricted to."""

    VIDEO = "video"
    SUBTITLES = "subtitles"
    BOTH = "both"
    ANY = "any"

    @property
    def extensions(self) -> FrozenSet[str]:
        """Accepted extensions, or an empty set for ANY (which accepts all)."""
        if self is FilterCategory.VIDEO:
            return frozenset(VIDEO_EXTENSIONS)
        if self is FilterCategory.SUBTITLES:
            return frozenset(SUBTITLE_EXTENSIONS)
        if self is FilterCategory.BOTH:
            return frozenset(VIDEO_EXTENSIONS + SUBTITLE_EXTENSIONS)
        return frozenset()

    def allows(self, extension: str) -> bool:
        """
        Checks a lower-cased extension (without the dot) against this category.

        Files without an extension never reach this check; the copier skips
        them for every category, ANY included.
        """
        if self is FilterCategory.ANY:
            return True
        return extension in self.extensions


class FilteredTreeCopier:
    """
    Copies the files of a source tree whose extension passes a filter
    category into a destination directory, keeping their relative paths.

    Directories are only created when a file needs them, so source folders
    without any matching file do not show up in the destination.
    """

    def __init__(self, source_dir: Path, dest_dir: Path):
        """
        Initializes the copier with source and destination paths.

        Args:
            source_dir: The tree to copy from.
            dest_dir: The root the relative paths are recreated under.
                      Created on demand.

        Raises:
            ValueError: If the source directory does not exist or the destination
                        path exists and is not a directory.
        """
        if not source_dir.is_dir():
            raise ValueError(f"Nothing to copy from {source_dir}: it is not a folder")
        if dest_dir.exists() and not dest_dir.is_dir():
            raise ValueError(f"Cannot copy into {dest_dir}: a file already has that name")

        self.source_dir = source_dir
        self.dest_dir = dest_dir
        self.files_copied = 0
        self.files_skipped = 0

        logger.debug(f"Tree copier initialized. Source: '{self.source_dir}', Destination: '{self.dest_dir}'")

    def copy(self, category: FilterCategory) -> int:
        """
        Walks the source tree and copies every regular file the category allows.

        The first I/O error stops the whole copy. Files copied before it
        stay where they are.

        Args:
            category: The extension rule applied to each file.

        Returns:
            The number of files copied.

        Raises:
            CopyIOError: If walking the tree, creating a directory or copying
                         a file fails.
        """
        logger.info(f"Copying {category.value} files from '{self.source_dir}' to '{self.dest_dir}'...")
        self.files_copied = 0
        self.files_skipped = 0

        try:
            for dir_path, _, file_names in os.walk(self.source_dir, onerror=_raise_walk_error):
                for file_name in file_names:
                    item_path = Path(dir_path) / file_name
                    # Symlinks are skipped as such, even when they point at a file.
                    if item_path.is_symlink() or not item_path.is_file():
                        continue
                    self._process_file(item_path, category)
        except OSError as e:
            raise CopyIOError(f"Copy from '{self.source_dir}' failed: {e}") from e

        self._log_summary()
        return self.files_copied

    def _process_file(self, file_path: Path, category: FilterCategory) -> None:
        """Copies a single file to its mirrored location if the category allows it."""
        extension = file_extension(file_path.name)
        if extension is None or not category.allows(extension):
            logger.debug(f"Ignoring file '{file_path.name}' (filtered or no extension).")
            self.files_skipped += 1
            return

        target = self.dest_dir / file_path.relative_to(self.source_dir)
        target.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Copying '{file_path}' to '{target}'")
        shutil.copy(file_path, target)
        self.files_copied += 1

    def _log_summary(self) -> None:
        """Logs a final summary of the copy."""
        logger.info("--- Copy finished. ---")
        logger.info(f"Files copied: {self.files_copied}")
        logger.info(f"Files skipped by filter: {self.files_skipped}")
