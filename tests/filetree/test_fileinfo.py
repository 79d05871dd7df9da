# Copyright Red Hat
#
# tests/filetree/test_fileinfo.py - FileInfo tests.
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
import json
import stat
import unittest
from dataclasses import FrozenInstanceError, replace

from layerinfo import (
    OWNER_UNKNOWN,
    LayerinfoArgumentError,
    LayerinfoParseError,
)
from layerinfo.filetree.difftypes import DiffType, classify
from layerinfo.filetree.entrytypes import EntryKind
from layerinfo.filetree.fileinfo import FileInfo, copy_file_info

from ._util import make_info


class TestFileInfo(unittest.TestCase):
    def test_is_dir(self):
        self.assertTrue(make_info(kind=EntryKind.DIRECTORY).is_dir)
        self.assertFalse(make_info().is_dir)
        self.assertFalse(make_info(kind=EntryKind.SYMLINK, link_target="x").is_dir)

    def test_type_desc(self):
        self.assertEqual(make_info().type_desc, "file")
        self.assertEqual(make_info(kind=EntryKind.DIRECTORY).type_desc, "directory")
        self.assertEqual(
            make_info(kind=EntryKind.SYMLINK, link_target="x").type_desc,
            "symbolic link",
        )
        self.assertEqual(make_info(kind=EntryKind.HARDLINK).type_desc, "hard link")

    def test_defaults(self):
        info = FileInfo("/dir", EntryKind.DIRECTORY)
        self.assertEqual(info.hash, 0)
        self.assertEqual(info.size, 0)
        self.assertEqual(info.link_target, "")
        self.assertIsNone(info.uid)
        self.assertIsNone(info.gid)

    def test_immutable(self):
        info = make_info()
        with self.assertRaises(FrozenInstanceError):
            info.mode = 0o755

    def test_directory_with_hash_rejected(self):
        with self.assertRaises(LayerinfoArgumentError):
            FileInfo("/d", EntryKind.DIRECTORY, hash=1)

    def test_directory_with_size_rejected(self):
        with self.assertRaises(LayerinfoArgumentError):
            FileInfo("/d", EntryKind.DIRECTORY, size=4096)

    def test_link_target_requires_symlink(self):
        with self.assertRaises(LayerinfoArgumentError):
            FileInfo("/f", EntryKind.REGULAR, link_target="/target")
        with self.assertRaises(LayerinfoArgumentError):
            FileInfo("/f", EntryKind.HARDLINK, link_target="/target")

    def test_hash_range(self):
        FileInfo("/f", EntryKind.REGULAR, hash=2**64 - 1)
        with self.assertRaises(LayerinfoArgumentError):
            FileInfo("/f", EntryKind.REGULAR, hash=2**64)
        with self.assertRaises(LayerinfoArgumentError):
            FileInfo("/f", EntryKind.REGULAR, hash=-1)

    def test_negative_size(self):
        with self.assertRaises(LayerinfoArgumentError):
            FileInfo("/f", EntryKind.REGULAR, size=-1)

    def test_bad_kind(self):
        with self.assertRaises(LayerinfoArgumentError):
            FileInfo("/f", "regular")

    def test_owner_unknown_sentinel(self):
        """The serialized unknown owner value is the same state as None."""
        sentinel = make_info(uid=OWNER_UNKNOWN, gid=OWNER_UNKNOWN)
        unknown = make_info(uid=None, gid=None)
        self.assertIsNone(sentinel.uid)
        self.assertIsNone(sentinel.gid)
        self.assertEqual(sentinel, unknown)
        self.assertEqual(classify(sentinel, unknown), DiffType.UNMODIFIED)
        self.assertEqual(FileInfo.from_dict(sentinel.to_dict()), sentinel)

    def test_owner_unknown_after_replace(self):
        info = replace(make_info(), uid=OWNER_UNKNOWN)
        self.assertIsNone(info.uid)
        self.assertEqual(info.gid, 0)

    def test_negative_owner_rejected(self):
        for kwargs in ({"uid": -2}, {"gid": -100}):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(LayerinfoArgumentError):
                    make_info(**kwargs)

    def test_empty_regular_file(self):
        """An empty regular file has zero size and a non-zero fingerprint."""
        info = make_info(content=b"")
        self.assertEqual(info.size, 0)
        self.assertNotEqual(info.hash, 0)

    def test_FileInfo__str__(self):
        info = make_info(kind=EntryKind.SYMLINK, content=b"", link_target="/target")
        s = str(info)
        self.assertIn("path: /a/b.txt", s)
        self.assertIn("type: symbolic link", s)
        self.assertIn("link_target: /target", s)
        self.assertIn("owner: 0:0", s)

    def test_FileInfo__str__unknown_owner(self):
        info = make_info(uid=None, gid=None)
        self.assertIn("owner: unknown", str(info))
        self.assertNotIn("link_target", str(info))


class TestCopy(unittest.TestCase):
    def test_copy(self):
        info = make_info()
        dup = info.copy()
        self.assertEqual(dup, info)
        self.assertIsNot(dup, info)

    def test_copy_then_change(self):
        """Deriving a changed record from a copy leaves the original intact."""
        info = make_info()
        dup = info.copy()
        changed = replace(dup, mode=stat.S_IFREG | 0o700, uid=42)
        self.assertEqual(info.mode, stat.S_IFREG | 0o644)
        self.assertEqual(info.uid, 0)
        self.assertEqual(dup, info)
        self.assertNotEqual(changed, info)

    def test_copy_file_info(self):
        info = make_info()
        self.assertEqual(copy_file_info(info), info)
        self.assertIsNot(copy_file_info(info), info)

    def test_copy_file_info_none(self):
        self.assertIsNone(copy_file_info(None))


class TestSerialization(unittest.TestCase):
    def test_to_dict(self):
        info = make_info(mode=stat.S_IFREG | 0o644)
        d = info.to_dict()
        self.assertEqual(
            list(d.keys()),
            [
                "path",
                "typeFlag",
                "linkName",
                "hash",
                "size",
                "fileMode",
                "uid",
                "gid",
                "isDir",
            ],
        )
        self.assertEqual(d["path"], "/a/b.txt")
        self.assertEqual(d["typeFlag"], ord("0"))
        self.assertEqual(d["linkName"], "")
        self.assertEqual(d["hash"], info.hash)
        self.assertEqual(d["size"], 5)
        self.assertEqual(d["fileMode"], stat.S_IFREG | 0o644)
        self.assertEqual(d["uid"], 0)
        self.assertEqual(d["gid"], 0)
        self.assertFalse(d["isDir"])

    def test_to_dict_unknown_owner(self):
        d = make_info(uid=None, gid=None).to_dict()
        self.assertEqual(d["uid"], -1)
        self.assertEqual(d["gid"], -1)

    def test_to_dict_directory_and_symlink(self):
        d = make_info("/a", kind=EntryKind.DIRECTORY).to_dict()
        self.assertEqual(d["typeFlag"], ord("5"))
        self.assertTrue(d["isDir"])
        self.assertEqual(d["hash"], 0)
        d = make_info(kind=EntryKind.SYMLINK, content=b"", link_target="/t").to_dict()
        self.assertEqual(d["typeFlag"], ord("2"))
        self.assertEqual(d["linkName"], "/t")

    def test_from_dict(self):
        for info in (
            make_info(),
            make_info(uid=None, gid=None),
            make_info("/a", kind=EntryKind.DIRECTORY),
            make_info(kind=EntryKind.SYMLINK, content=b"", link_target="/t"),
            make_info(kind=EntryKind.HARDLINK),
            make_info(kind=EntryKind.OTHER, mode=stat.S_IFIFO | 0o600),
        ):
            with self.subTest(info=info):
                self.assertEqual(FileInfo.from_dict(info.to_dict()), info)

    def test_json(self):
        info = make_info()
        self.assertEqual(json.loads(info.json()), info.to_dict())
        self.assertIn("\n", info.json(pretty=True))

    def test_from_dict_not_a_dict(self):
        with self.assertRaises(LayerinfoParseError):
            FileInfo.from_dict(["path"])

    def test_from_dict_missing_field(self):
        d = make_info().to_dict()
        del d["hash"]
        with self.assertRaises(LayerinfoParseError):
            FileInfo.from_dict(d)

    def test_from_dict_bad_types(self):
        for key, value in (
            ("hash", "12"),
            ("uid", True),
            ("path", 7),
            ("typeFlag", 300),
        ):
            d = make_info().to_dict()
            d[key] = value
            with self.subTest(key=key):
                with self.assertRaises(LayerinfoParseError):
                    FileInfo.from_dict(d)

    def test_from_dict_negative_owner(self):
        d = make_info().to_dict()
        d["gid"] = -5
        with self.assertRaises(LayerinfoParseError):
            FileInfo.from_dict(d)

    def test_from_dict_inconsistent_is_dir(self):
        d = make_info().to_dict()
        d["isDir"] = True
        with self.assertRaises(LayerinfoParseError):
            FileInfo.from_dict(d)

    def test_from_dict_invalid_record(self):
        d = make_info("/a", kind=EntryKind.DIRECTORY).to_dict()
        d["size"] = 4096
        with self.assertRaises(LayerinfoParseError):
            FileInfo.from_dict(d)
