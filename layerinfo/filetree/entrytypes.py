# Copyright Red Hat
#
# layerinfo/filetree/entrytypes.py - Layer file information entry kinds
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system entry kinds and their translation to and from archive type
markers.
"""
from enum import Enum
import tarfile
import stat


class EntryKind(Enum):
    """
    Enum for the structural type of a file system entry.
    """

    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    HARDLINK = "hardlink"
    OTHER = "other"


_TAR_TYPE_TO_KIND = {
    tarfile.REGTYPE: EntryKind.REGULAR,
    tarfile.AREGTYPE: EntryKind.REGULAR,
    tarfile.DIRTYPE: EntryKind.DIRECTORY,
    tarfile.SYMTYPE: EntryKind.SYMLINK,
    tarfile.LNKTYPE: EntryKind.HARDLINK,
}

#: ``st_mode`` file type bits implied by each archive type marker.
_TAR_TYPE_TO_MODE_BITS = {
    tarfile.DIRTYPE: stat.S_IFDIR,
    tarfile.SYMTYPE: stat.S_IFLNK,
    tarfile.CHRTYPE: stat.S_IFCHR,
    tarfile.BLKTYPE: stat.S_IFBLK,
    tarfile.FIFOTYPE: stat.S_IFIFO,
}

_KIND_TO_TAR_TYPE = {
    EntryKind.REGULAR: tarfile.REGTYPE,
    EntryKind.HARDLINK: tarfile.LNKTYPE,
    EntryKind.SYMLINK: tarfile.SYMTYPE,
    EntryKind.DIRECTORY: tarfile.DIRTYPE,
}


def kind_from_tar_type(type_flag: bytes) -> EntryKind:
    """
    Map an archive entry type marker to an ``EntryKind``.

    :param type_flag: The single byte tar type marker.
    :type type_flag: ``bytes``
    :returns: The corresponding entry kind, ``EntryKind.OTHER`` for device
              nodes, FIFOs and unrecognised markers.
    :rtype: ``EntryKind``
    """
    return _TAR_TYPE_TO_KIND.get(type_flag, EntryKind.OTHER)


def mode_type_bits(type_flag: bytes) -> int:
    """
    Return the ``st_mode`` file type bits for an archive type marker.

    Markers without a dedicated file type (regular files, hard links and
    unknown markers) map to ``stat.S_IFREG``.

    :param type_flag: The single byte tar type marker.
    :type type_flag: ``bytes``
    :returns: The ``S_IFMT`` portion of a mode value.
    :rtype: ``int``
    """
    return _TAR_TYPE_TO_MODE_BITS.get(type_flag, stat.S_IFREG)


def tar_type_from_kind(kind: EntryKind, mode: int) -> bytes:
    """
    Map an ``EntryKind`` back to an archive type marker.

    ``EntryKind.OTHER`` is refined using the file type bits in ``mode``.

    :param kind: The entry kind to translate.
    :type kind: ``EntryKind``
    :param mode: The ``st_mode`` value of the entry.
    :type mode: ``int``
    :returns: The single byte tar type marker.
    :rtype: ``bytes``
    """
    if kind in _KIND_TO_TAR_TYPE:
        return _KIND_TO_TAR_TYPE[kind]
    if stat.S_ISCHR(mode):
        return tarfile.CHRTYPE
    if stat.S_ISBLK(mode):
        return tarfile.BLKTYPE
    if stat.S_ISFIFO(mode):
        return tarfile.FIFOTYPE
    return tarfile.CONTTYPE


__all__ = [
    "EntryKind",
    "kind_from_tar_type",
    "mode_type_bits",
    "tar_type_from_kind",
]
