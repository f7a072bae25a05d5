import os
import unittest
from unittest.mock import patch

from media_triage.core import FilterCategory, FilteredTreeCopier, file_extension
from media_triage.errors import CopyIOError
from .base_test import BaseTriageTest


class TestFilterCategory(unittest.TestCase):
    """Unit tests for the extension rules of each filter category."""

    def test_video_accepts_only_video_extensions(self):
        self.assertTrue(FilterCategory.VIDEO.allows("mkv"))
        self.assertTrue(FilterCategory.VIDEO.allows("webm"))
        self.assertFalse(FilterCategory.VIDEO.allows("srt"))

    def test_subtitles_accepts_only_subtitle_extensions(self):
        self.assertTrue(FilterCategory.SUBTITLES.allows("ass"))
        self.assertFalse(FilterCategory.SUBTITLES.allows("mp4"))

    def test_both_is_union(self):
        for ext in ("mp4", "mkv", "avi", "mov", "flv", "wmv", "webm", "srt", "ass", "vtt", "sub", "ssa"):
            self.assertTrue(FilterCategory.BOTH.allows(ext), ext)
        self.assertFalse(FilterCategory.BOTH.allows("nfo"))

    def test_any_accepts_everything(self):
        self.assertTrue(FilterCategory.ANY.allows("nfo"))
        self.assertTrue(FilterCategory.ANY.allows("jpg"))


class TestFileExtension(unittest.TestCase):
    """Unit tests for how a file name's extension is read."""

    def test_lower_cases_last_extension(self):
        self.assertEqual(file_extension("Show.S01E01.EN.SRT"), "srt")

    def test_no_dot_means_no_extension(self):
        self.assertIsNone(file_extension("README"))

    def test_leading_dot_only_means_no_extension(self):
        self.assertIsNone(file_extension(".hidden"))

    def test_trailing_dot_gives_empty_extension(self):
        self.assertEqual(file_extension("movie."), "")

    def test_undecodable_extension_counts_as_missing(self):
        self.assertIsNone(file_extension("movie.mk\udcff"))


class TestFilteredTreeCopier(BaseTriageTest):
    """
    Tests `FilteredTreeCopier` against a real temporary tree containing
    videos, subtitles, extras and extensionless files.
    """

    def setUp(self):
        super().setUp()
        self.item = self._create_source_folder("Show.Name.2020")
        self._create_file(self.item, "Show.Name.S01E01.mkv")
        self._create_file(self.item, "Show.Name.S01E01.EN.SRT")
        self._create_file(self.item, "Subs/Show.Name.S01E01.fr.srt")
        self._create_file(self.item, "Extras/Sample/sample.MP4")
        self._create_file(self.item, "Extras/info.nfo")
        self._create_file(self.item, "README")
        (self.item / "Empty").mkdir()
        self.target = self.dest_dir / "Show Name"

    def test_init_raises_for_missing_source(self):
        with self.assertRaises(ValueError):
            FilteredTreeCopier(self.root / "missing", self.target)

    def test_init_raises_when_destination_is_a_file(self):
        not_a_dir = self._create_file(self.root, "occupied")
        with self.assertRaisesRegex(ValueError, "a file already has that name"):
            FilteredTreeCopier(self.item, not_a_dir)

    def test_copy_video_only(self):
        copied = FilteredTreeCopier(self.item, self.target).copy(FilterCategory.VIDEO)

        self.assertEqual(copied, 2)
        self.assertEqual(
            self._relative_files(self.target),
            {"Show.Name.S01E01.mkv", "Extras/Sample/sample.MP4"},
        )
        # Directories without a matching file are not created.
        self.assertFalse((self.target / "Subs").exists())
        self.assertFalse((self.target / "Empty").exists())

    def test_copy_subtitles_is_case_insensitive(self):
        FilteredTreeCopier(self.item, self.target).copy(FilterCategory.SUBTITLES)

        self.assertEqual(
            self._relative_files(self.target),
            {"Show.Name.S01E01.EN.SRT", "Subs/Show.Name.S01E01.fr.srt"},
        )
        self.assertFalse((self.target / "Extras").exists())

    def test_copy_both(self):
        FilteredTreeCopier(self.item, self.target).copy(FilterCategory.BOTH)

        self.assertEqual(len(self._relative_files(self.target)), 4)
        self.assertNotIn("Extras/info.nfo", self._relative_files(self.target))

    def test_any_still_skips_extensionless_files(self):
        copier = FilteredTreeCopier(self.item, self.target)
        copier.copy(FilterCategory.ANY)

        copied = self._relative_files(self.target)
        self.assertIn("Extras/info.nfo", copied)
        self.assertNotIn("README", copied)
        self.assertEqual(copier.files_copied, 5)
        self.assertEqual(copier.files_skipped, 1)
        self.assertFalse((self.target / "Empty").exists())

    def test_copy_preserves_content_and_is_idempotent(self):
        copier = FilteredTreeCopier(self.item, self.target)
        copier.copy(FilterCategory.VIDEO)
        copier.copy(FilterCategory.VIDEO)

        self.assertEqual(copier.files_copied, 2)
        self.assertEqual((self.target / "Show.Name.S01E01.mkv").read_text(encoding='utf-8'), "data")
        self.assertEqual(len(self._relative_files(self.target)), 2)

    def test_copy_leaves_source_untouched(self):
        before = self._relative_files(self.item)
        FilteredTreeCopier(self.item, self.target).copy(FilterCategory.ANY)
        self.assertEqual(self._relative_files(self.item), before)

    @unittest.skipIf(os.name == 'nt', "Windows strips trailing dots from file names")
    def test_trailing_dot_file_is_copied_only_under_any(self):
        self._create_file(self.item, "Extras/movie.")

        FilteredTreeCopier(self.item, self.target).copy(FilterCategory.VIDEO)
        self.assertNotIn("Extras/movie.", self._relative_files(self.target))

        FilteredTreeCopier(self.item, self.target).copy(FilterCategory.ANY)
        self.assertIn("Extras/movie.", self._relative_files(self.target))

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_symlinks_are_skipped(self):
        try:
            (self.item / "link.mkv").symlink_to(self.item / "Show.Name.S01E01.mkv")
        except OSError:
            self.skipTest("cannot create symlinks here")

        FilteredTreeCopier(self.item, self.target).copy(FilterCategory.VIDEO)

        self.assertNotIn("link.mkv", self._relative_files(self.target))

    @patch('media_triage.core.shutil.copy')
    def test_io_error_aborts_copy(self, mock_copy):
        mock_copy.side_effect = OSError("No space left on device")

        with self.assertRaises(CopyIOError) as ctx:
            FilteredTreeCopier(self.item, self.target).copy(FilterCategory.VIDEO)

        self.assertIn("No space left on device", str(ctx.exception))
        mock_copy.assert_called_once()

    def test_logs_summary(self):
        with self.assertLogs('media_triage.core', level='INFO') as log_context:
            FilteredTreeCopier(self.item, self.target).copy(FilterCategory.SUBTITLES)

        output = "\n".join(log_context.output)
        self.assertIn("Copy finished", output)
        self.assertIn("Files copied: 2", output)


if __name__ == '__main__':
    unittest.main()
