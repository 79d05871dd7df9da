# Copyright Red Hat
#
# tests/filetree/test_hashing.py - Content fingerprint tests.
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
import io
import tarfile
import unittest
from unittest.mock import MagicMock

from layerinfo import LayerinfoArgumentError, LayerinfoReadError
from layerinfo.filetree.hashing import (
    FINGERPRINT_MAX,
    ContentHasher,
    fingerprint,
    tree_abs_path,
)

from ._util import expected_fingerprint


class TestTreeAbsPath(unittest.TestCase):
    def test_relative_path(self):
        self.assertEqual(tree_abs_path("etc/passwd"), "/etc/passwd")

    def test_absolute_path(self):
        self.assertEqual(tree_abs_path("/etc/passwd"), "/etc/passwd")

    def test_dot_prefix(self):
        self.assertEqual(tree_abs_path("./usr/bin/ls"), "/usr/bin/ls")

    def test_duplicate_separators(self):
        self.assertEqual(tree_abs_path("//a//b///c"), "/a/b/c")

    def test_trailing_separator(self):
        self.assertEqual(tree_abs_path("a/b/"), "/a/b")

    def test_parent_components_clamped(self):
        self.assertEqual(tree_abs_path("../../a/../b"), "/b")

    def test_root(self):
        self.assertEqual(tree_abs_path(""), "/")
        self.assertEqual(tree_abs_path("/"), "/")
        self.assertEqual(tree_abs_path("./"), "/")


class TestFingerprint(unittest.TestCase):
    def test_two_stage_hash(self):
        value = fingerprint(io.BytesIO(b"hello"), "/a/b.txt")
        self.assertEqual(value, expected_fingerprint(b"hello", "/a/b.txt"))

    def test_path_normalised_before_hashing(self):
        self.assertEqual(
            fingerprint(io.BytesIO(b"hello"), "a/b.txt"),
            fingerprint(io.BytesIO(b"hello"), "/a/b.txt"),
        )

    def test_deterministic(self):
        first = fingerprint(io.BytesIO(b"some content"), "/x")
        second = fingerprint(io.BytesIO(b"some content"), "/x")
        self.assertEqual(first, second)

    def test_path_salts_fingerprint(self):
        """Identical content at different paths never shares a fingerprint."""
        self.assertNotEqual(
            fingerprint(io.BytesIO(b"same"), "/one"),
            fingerprint(io.BytesIO(b"same"), "/two"),
        )

    def test_content_changes_fingerprint(self):
        self.assertNotEqual(
            fingerprint(io.BytesIO(b"hello"), "/a/b.txt"),
            fingerprint(io.BytesIO(b"hello!"), "/a/b.txt"),
        )

    def test_chunk_size_does_not_change_result(self):
        content = bytes(range(256)) * 300
        self.assertEqual(
            fingerprint(io.BytesIO(content), "/big", chunk_size=7),
            fingerprint(io.BytesIO(content), "/big", chunk_size=2**16),
        )

    def test_empty_content(self):
        value = fingerprint(io.BytesIO(b""), "/empty")
        self.assertEqual(value, expected_fingerprint(b"", "/empty"))
        self.assertNotEqual(value, 0)

    def test_result_is_64_bit_unsigned(self):
        value = fingerprint(io.BytesIO(b"range"), "/range")
        self.assertGreaterEqual(value, 0)
        self.assertLessEqual(value, FINGERPRINT_MAX)

    def test_stream_read_to_end_and_left_open(self):
        stream = io.BytesIO(b"abc" * 1000)
        fingerprint(stream, "/f", chunk_size=10)
        self.assertFalse(stream.closed)
        self.assertEqual(stream.read(), b"")

    def test_read_error(self):
        stream = MagicMock()
        stream.read.side_effect = OSError("Mock I/O error")
        with self.assertRaises(LayerinfoReadError) as cm:
            fingerprint(stream, "/broken")
        self.assertEqual(cm.exception.path, "/broken")
        self.assertIsInstance(cm.exception.err, OSError)

    def test_truncated_archive_member(self):
        stream = MagicMock()
        stream.read.side_effect = [b"partial", tarfile.ReadError("unexpected end of data")]
        with self.assertRaises(LayerinfoReadError):
            fingerprint(stream, "/truncated")

    def test_invalid_chunk_size(self):
        with self.assertRaises(LayerinfoArgumentError):
            fingerprint(io.BytesIO(b""), "/x", chunk_size=0)
        with self.assertRaises(LayerinfoArgumentError):
            fingerprint(io.BytesIO(b""), "/x", chunk_size=1.5)


class TestContentHasher(unittest.TestCase):
    def test_ContentHasher(self):
        hasher = ContentHasher(chunk_size=3)
        self.assertEqual(hasher.chunk_size, 3)
        self.assertEqual(
            hasher.fingerprint(io.BytesIO(b"hello"), "/a/b.txt"),
            expected_fingerprint(b"hello", "/a/b.txt"),
        )

    def test_ContentHasher_bad_chunk_size(self):
        with self.assertRaises(LayerinfoArgumentError):
            ContentHasher(chunk_size=-1)
        with self.assertRaises(LayerinfoArgumentError):
            ContentHasher(chunk_size=2.0)
