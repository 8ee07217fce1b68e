"""
test_directory_purge.py - Scoped directory purge tests

Clearing cache folders below the cache root:
- contents removed, folder kept
- missing folders skipped
- nothing outside the cache root is ever deleted

Run with:
    python -m pytest test_directory_purge.py -v
"""

import os
import tempfile
import unittest

from helpers import touch

from cache_control.directory_purge import DirectoryPurge
from cache_control.exceptions import PathEscapeError
from cache_control.filesystem import LocalFileSystem, confine, list_cache_directories
from cache_control.operation_log import MemoryLogSink, OperationLog


class TestDirectoryPurge(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.base = self._tmp.name
        self.root = os.path.join(self.base, "cache")
        self.outside = os.path.join(self.base, "outside")
        os.makedirs(self.root)
        os.makedirs(self.outside)
        touch(os.path.join(self.outside, "precious.txt"))
        self.log = OperationLog(MemoryLogSink())
        self.purge = DirectoryPurge(LocalFileSystem(), self.log)

    def tearDown(self):
        self._tmp.cleanup()

    def test_clears_contents_and_keeps_folder(self):
        page = os.path.join(self.root, "Page")
        touch(os.path.join(page, "a"))
        touch(os.path.join(page, "b", "c"))
        touch(os.path.join(self.root, "Other", "keep"))
        touch(os.path.join(self.root, "root-file"))

        self.assertTrue(self.purge.purge_directory(self.root, "Page"))

        self.assertTrue(os.path.isdir(page))
        self.assertEqual(os.listdir(page), [])
        self.assertTrue(os.path.exists(os.path.join(self.root, "Other", "keep")))
        self.assertTrue(os.path.exists(os.path.join(self.root, "root-file")))

    def test_render_cache_has_its_own_message(self):
        os.makedirs(os.path.join(self.root, "Page"))
        os.makedirs(os.path.join(self.root, "MarkupCache"))
        self.purge.purge_directory(self.root, "Page")
        self.purge.purge_directory(self.root, "MarkupCache")
        self.assertEqual(
            self.log.get_new_log_messages(),
            [
                "Cleared the template render cache.",
                "Removed all files from the cache directory 'MarkupCache'.",
            ],
        )

    def test_missing_directory_is_skipped(self):
        touch(os.path.join(self.root, "Page", "a"))
        self.assertFalse(self.purge.purge_directory(self.root, "missing-subdir"))
        self.assertTrue(os.path.exists(os.path.join(self.root, "Page", "a")))
        self.assertTrue(os.path.exists(os.path.join(self.outside, "precious.txt")))
        self.assertEqual(len(self.log.get_new_log_messages()), 1)
        self.assertIn("Skipped", self.log.get_new_log_messages()[0])

    def test_silent_skip_writes_nothing(self):
        purge = DirectoryPurge(LocalFileSystem(), self.log, silent=True)
        purge.purge_directory(self.root, "missing-subdir")
        self.assertEqual(self.log.get_new_log_messages(), [])

    def test_symlinked_folder_outside_root_is_refused(self):
        os.symlink(self.outside, os.path.join(self.root, "Page"))
        with self.assertRaises(PathEscapeError):
            self.purge.purge_directory(self.root, "Page")
        self.assertTrue(os.path.exists(os.path.join(self.outside, "precious.txt")))
        self.assertEqual(self.log.get_new_log_messages(), [])

    def test_links_inside_folder_are_unlinked_not_followed(self):
        page = os.path.join(self.root, "Page")
        os.makedirs(page)
        os.symlink(os.path.join(self.outside, "precious.txt"), os.path.join(page, "file-link"))
        os.symlink(self.outside, os.path.join(page, "dir-link"))
        touch(os.path.join(page, "nested", "deeper", "f"))

        self.purge.purge_directory(self.root, "Page")

        self.assertEqual(os.listdir(page), [])
        self.assertTrue(os.path.exists(os.path.join(self.outside, "precious.txt")))

    def test_traversal_names_are_refused(self):
        for name in ("..", "../outside", "Page/../..", "", "."):
            with self.assertRaises(PathEscapeError):
                self.purge.purge_directory(self.root, name)
        self.assertTrue(os.path.exists(os.path.join(self.outside, "precious.txt")))

    def test_filesystem_errors_propagate(self):
        page = os.path.join(self.root, "Page")
        touch(os.path.join(page, "a"))
        fs = LocalFileSystem()

        def failing_remove(path, confine_to_root):
            raise PermissionError(path)

        fs.remove_file = failing_remove
        with self.assertRaises(PermissionError):
            DirectoryPurge(fs, self.log).purge_directory(self.root, "Page")
        self.assertEqual(self.log.get_new_log_messages(), [])


class TestLocalFileSystem(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = os.path.join(self._tmp.name, "cache")
        os.makedirs(self.root)
        self.fs = LocalFileSystem()

    def tearDown(self):
        self._tmp.cleanup()

    def test_confine_rejects_paths_outside_root(self):
        with self.assertRaises(PathEscapeError):
            confine(os.path.join(self._tmp.name, "elsewhere"), self.root)
        with self.assertRaises(PathEscapeError):
            confine(self.root, self.root)
        inside = os.path.join(self.root, "Page")
        self.assertEqual(confine(inside, self.root), os.path.join(os.path.realpath(self.root), "Page"))

    def test_remove_file_outside_root_is_refused(self):
        victim = os.path.join(self._tmp.name, "victim.txt")
        touch(victim)
        with self.assertRaises(PathEscapeError):
            self.fs.remove_file(victim, self.root)
        self.assertTrue(os.path.exists(victim))

    def test_remove_directory_recursive(self):
        target = os.path.join(self.root, "Page", "sub")
        touch(os.path.join(target, "x", "y"))
        self.fs.remove_directory_recursive(target, self.root)
        self.assertFalse(os.path.exists(target))
        self.assertTrue(os.path.isdir(os.path.join(self.root, "Page")))

    def test_list_entries(self):
        touch(os.path.join(self.root, "file"))
        os.makedirs(os.path.join(self.root, "dir"))
        os.symlink(os.path.join(self.root, "file"), os.path.join(self.root, "link"))
        entries = {e.name: e for e in self.fs.list_entries(self.root)}
        self.assertTrue(entries["file"].is_file)
        self.assertTrue(entries["dir"].is_dir)
        self.assertTrue(entries["link"].is_link)
        self.assertFalse(entries["link"].is_dir)

    def test_list_cache_directories(self):
        os.makedirs(os.path.join(self.root, "Page"))
        os.makedirs(os.path.join(self.root, "MarkupCache"))
        touch(os.path.join(self.root, "not-a-dir"))
        os.symlink(os.path.join(self.root, "Page"), os.path.join(self.root, "PageLink"))
        self.assertEqual(list_cache_directories(self.fs, self.root), ["MarkupCache", "Page"])

    def test_list_cache_directories_missing_root(self):
        self.assertEqual(list_cache_directories(self.fs, os.path.join(self.root, "nope")), [])


if __name__ == '__main__':
    unittest.main()
