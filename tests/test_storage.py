import os
import tempfile
import unittest
from pathlib import Path

from image_exchange.errors import FileCollision, InvalidFilename, NotFound, StorageUnavailable
from image_exchange.services.storage import StorageDirectory


class TestStorageDirectory(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name)
        self.root = self.base / "uploads"
        self.storage = StorageDirectory(self.root)

    def tearDown(self):
        self._tmp.cleanup()

    def test_creates_missing_root(self):
        self.assertTrue(self.root.is_dir())

    def test_list_reports_names_and_sizes(self):
        (self.root / "b.png").write_bytes(b"12345")
        (self.root / "a.jpg").write_bytes(b"")
        (self.root / "nested").mkdir()

        entries = self.storage.list()

        self.assertEqual([(e.name, e.size) for e in entries], [("a.jpg", 0), ("b.png", 5)])

    def test_list_on_missing_directory_raises(self):
        os.rmdir(self.root)
        with self.assertRaises(StorageUnavailable):
            self.storage.list()

    def test_resolve_existing_file(self):
        (self.root / "image-x.png").write_bytes(b"data")
        self.assertEqual(self.storage.resolve("image-x.png"), self.root.resolve() / "image-x.png")

    def test_resolve_unknown_name(self):
        with self.assertRaises(NotFound):
            self.storage.resolve("nothing.png")

    def test_resolve_directory_is_not_found(self):
        (self.root / "sub").mkdir()
        with self.assertRaises(NotFound):
            self.storage.resolve("sub")

    def test_resolve_rejects_traversal(self):
        (self.base / "secret").write_text("top secret")
        for name in ("../secret", "..", ".", "", "sub/../../secret", "/etc/passwd", "..\\secret", "a\x00b"):
            with self.subTest(name=name):
                with self.assertRaises(InvalidFilename):
                    self.storage.resolve(name)

    def test_resolve_rejects_symlink_escape(self):
        secret = self.base / "secret"
        secret.write_text("top secret")
        try:
            os.symlink(secret, self.root / "link")
        except (OSError, NotImplementedError):
            self.skipTest("symlinks unavailable")
        with self.assertRaises(InvalidFilename):
            self.storage.resolve("link")

    def test_create_is_exclusive(self):
        with self.storage.create("image-a.png") as handle:
            handle.write(b"first")
        with self.assertRaises(FileCollision):
            self.storage.create("image-a.png")
        self.assertEqual((self.root / "image-a.png").read_bytes(), b"first")

    def test_remove_missing_file_is_quiet(self):
        self.storage.remove("never-there.png")


if __name__ == '__main__':
    unittest.main()
