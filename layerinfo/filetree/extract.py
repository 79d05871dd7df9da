# Copyright Red Hat
#
# layerinfo/filetree/extract.py - Layer file information extraction
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Build ``FileInfo`` records from layer archive entries and from live file
system entries.

Extraction functions raise ``LayerinfoPathError`` subclasses on failure and
never log: deciding whether a failed path is skipped or aborts the whole
operation is left to the caller.
"""
from typing import BinaryIO, Optional
import tarfile
import stat
import io
import os

from layerinfo import (
    LayerinfoOpenError,
    LayerinfoSymlinkError,
)

from .entrytypes import EntryKind, kind_from_tar_type, mode_type_bits
from .fileinfo import FileInfo
from .hashing import DEFAULT_CHUNK_SIZE, fingerprint


def file_info_from_tar_header(
    header: tarfile.TarInfo,
    reader: Optional[BinaryIO],
    path: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> FileInfo:
    """
    Build a ``FileInfo`` from a layer archive member and its content.

    :param header: The archive member header.
    :type header: ``tarfile.TarInfo``
    :param reader: The member content stream as returned by
                   ``TarFile.extractfile()``, or ``None`` for members that
                   carry no data. It is read once, from its current
                   position, and is not closed.
    :type reader: ``Optional[BinaryIO]``
    :param path: The logical path of the member.
    :type path: ``str``
    :param chunk_size: The read size used when hashing content.
    :type chunk_size: ``int``
    :returns: A new ``FileInfo`` describing the member.
    :rtype: ``FileInfo``
    :raises LayerinfoReadError: If the member content cannot be read.
    """
    kind = kind_from_tar_type(header.type)

    content_hash = 0
    if kind != EntryKind.DIRECTORY:
        content_hash = fingerprint(
            reader if reader is not None else io.BytesIO(),
            path,
            chunk_size=chunk_size,
        )

    return FileInfo(
        path=path,
        kind=kind,
        link_target=header.linkname if kind == EntryKind.SYMLINK else "",
        hash=content_hash,
        size=0 if kind == EntryKind.DIRECTORY else header.size,
        mode=stat.S_IMODE(header.mode) | mode_type_bits(header.type),
        uid=header.uid,
        gid=header.gid,
    )


def _hash_file(real_path: str, path: str, chunk_size: int) -> int:
    """
    Open ``real_path`` and fingerprint its content under ``path``.
    """
    try:
        fp = open(real_path, "rb")  # pylint: disable=consider-using-with
    except OSError as err:
        raise LayerinfoOpenError(path, err) from err
    with fp:
        return fingerprint(fp, path, chunk_size=chunk_size)


def _hash_link_target(real_path: str, path: str, chunk_size: int) -> int:
    """
    Fingerprint the entry a symbolic link resolves to. Targets that are not
    regular files are hashed as empty content.
    """
    try:
        target_stat = os.stat(real_path)
    except OSError as err:
        raise LayerinfoOpenError(path, err) from err
    if not stat.S_ISREG(target_stat.st_mode):
        return fingerprint(io.BytesIO(), path, chunk_size=chunk_size)
    return _hash_file(real_path, path, chunk_size)


def file_info_from_filesystem(
    real_path: str,
    path: str,
    stat_info: os.stat_result,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> FileInfo:
    """
    Build a ``FileInfo`` by inspecting a live file system entry.

    Entries are classified as a symbolic link, a directory, a regular file,
    or ``EntryKind.OTHER`` for device nodes, FIFOs and sockets. Only regular
    files are opened: other entries are hashed as empty content so that
    reading a FIFO never blocks. Symbolic links are hashed through their
    target. Ownership is not resolved and is always reported as unknown.

    :param real_path: The host path of the entry.
    :type real_path: ``str``
    :param path: The logical path of the entry within the image.
    :type path: ``str``
    :param stat_info: ``os.lstat()`` result for ``real_path``.
    :type stat_info: ``os.stat_result``
    :param chunk_size: The read size used when hashing content.
    :type chunk_size: ``int``
    :returns: A new ``FileInfo`` describing the entry.
    :rtype: ``FileInfo``
    :raises LayerinfoSymlinkError: If a link target cannot be read.
    :raises LayerinfoOpenError: If the entry cannot be opened for hashing.
    :raises LayerinfoReadError: If the entry content cannot be read.
    """
    link_target = ""
    size = 0
    content_hash = 0

    if stat.S_ISLNK(stat_info.st_mode):
        kind = EntryKind.SYMLINK
        try:
            link_target = os.readlink(real_path)
        except OSError as err:
            raise LayerinfoSymlinkError(path, err) from err
        content_hash = _hash_link_target(real_path, path, chunk_size)
    elif stat.S_ISDIR(stat_info.st_mode):
        kind = EntryKind.DIRECTORY
    elif stat.S_ISREG(stat_info.st_mode):
        kind = EntryKind.REGULAR
        size = stat_info.st_size
        content_hash = _hash_file(real_path, path, chunk_size)
    else:
        kind = EntryKind.OTHER
        content_hash = fingerprint(io.BytesIO(), path, chunk_size=chunk_size)

    return FileInfo(
        path=path,
        kind=kind,
        link_target=link_target,
        hash=content_hash,
        size=size,
        mode=stat_info.st_mode,
    )


__all__ = [
    "file_info_from_filesystem",
    "file_info_from_tar_header",
]
