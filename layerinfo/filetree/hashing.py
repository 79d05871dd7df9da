# Copyright Red Hat
#
# layerinfo/filetree/hashing.py - Layer file information content hashing
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Content and path derived fingerprints for layer file entries.

A fingerprint is computed in two stages: the entry content is streamed
through an XXH64 accumulator, then the decimal text of that digest followed
by the absolute tree path of the entry is fed to a second accumulator. Files
with identical content at different paths therefore never share a
fingerprint.
"""
from typing import BinaryIO
import posixpath
import tarfile

import xxhash

from layerinfo import LayerinfoArgumentError, LayerinfoReadError

#: Default read size when streaming entry content.
DEFAULT_CHUNK_SIZE = 2**16

#: Largest value a fingerprint can take.
FINGERPRINT_MAX = 2**64 - 1


def tree_abs_path(path: str) -> str:
    """
    Normalise ``path`` to an absolute path within the image tree.

    Archive member names are usually relative (``etc/passwd``,
    ``./usr/bin/``). The result always starts with a single ``/``, has no
    duplicate separators, ``.`` or ``..`` components, or trailing separator.

    :param path: The logical path to normalise.
    :type path: ``str``
    :returns: The absolute tree path.
    :rtype: ``str``
    """
    return posixpath.normpath(posixpath.sep + path.lstrip(posixpath.sep))


def _check_chunk_size(chunk_size: int):
    if (
        not isinstance(chunk_size, int)
        or isinstance(chunk_size, bool)
        or chunk_size <= 0
    ):
        raise LayerinfoArgumentError(f"Invalid chunk size: {chunk_size}")


def fingerprint(
    content: BinaryIO, path: str, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int:
    """
    Compute the fingerprint of ``content`` observed at ``path``.

    :param content: A binary stream positioned at the start of the entry
                    content. It is read to EOF and not closed.
    :type content: ``BinaryIO``
    :param path: The logical path of the entry.
    :type path: ``str``
    :param chunk_size: The read size used when streaming ``content``.
    :type chunk_size: ``int``
    :returns: A 64-bit unsigned fingerprint.
    :rtype: ``int``
    :raises LayerinfoReadError: If ``content`` cannot be read completely.
    """
    _check_chunk_size(chunk_size)

    content_hash = xxhash.xxh64()
    try:
        for chunk in iter(lambda: content.read(chunk_size), b""):
            content_hash.update(chunk)
    except (OSError, EOFError, tarfile.TarError) as err:
        raise LayerinfoReadError(path, err) from err

    final_hash = xxhash.xxh64()
    final_hash.update(str(content_hash.intdigest()).encode("ascii"))
    final_hash.update(tree_abs_path(path).encode("utf8", "surrogateescape"))
    return final_hash.intdigest()


class ContentHasher:
    """
    Fingerprint calculator bound to a fixed read size.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialise a new ``ContentHasher`` object.

        :param chunk_size: The read size used when streaming content.
        :type chunk_size: ``int``
        """
        _check_chunk_size(chunk_size)
        self.chunk_size = chunk_size

    def fingerprint(self, content: BinaryIO, path: str) -> int:
        """
        Compute the fingerprint of ``content`` observed at ``path``.

        :param content: A binary stream positioned at the start of the entry
                        content.
        :type content: ``BinaryIO``
        :param path: The logical path of the entry.
        :type path: ``str``
        :returns: A 64-bit unsigned fingerprint.
        :rtype: ``int``
        """
        return fingerprint(content, path, chunk_size=self.chunk_size)


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "FINGERPRINT_MAX",
    "ContentHasher",
    "fingerprint",
    "tree_abs_path",
]
