# Copyright Red Hat
#
# layerinfo/filetree/difftypes.py - Layer file information diff types
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File entry diff types and classification.
"""
from typing import TYPE_CHECKING
from enum import Enum

if TYPE_CHECKING:
    from .fileinfo import FileInfo


class DiffType(Enum):
    """
    Enum for the verdict of comparing two observations of one path.
    """

    UNMODIFIED = "unmodified"
    MODIFIED = "modified"


def classify(previous: "FileInfo", current: "FileInfo") -> DiffType:
    """
    Classify the change between two observations of the same logical path.

    The caller pairs records by path: the paths of ``previous`` and
    ``current`` are not compared. Entries of different kinds are always
    modified; otherwise the entry is unmodified only if the fingerprint,
    mode and ownership all match.

    :param previous: The earlier observation.
    :type previous: ``FileInfo``
    :param current: The later observation.
    :type current: ``FileInfo``
    :returns: ``DiffType.UNMODIFIED`` or ``DiffType.MODIFIED``.
    :rtype: ``DiffType``
    """
    if previous.kind == current.kind:
        if (
            previous.hash == current.hash
            and previous.mode == current.mode
            and previous.uid == current.uid
            and previous.gid == current.gid
        ):
            return DiffType.UNMODIFIED
    return DiffType.MODIFIED


__all__ = [
    "DiffType",
    "classify",
]
