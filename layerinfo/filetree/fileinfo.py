# Copyright Red Hat
#
# layerinfo/filetree/fileinfo.py - Layer file information record
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
The per-path file metadata record.
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional
import json

from layerinfo import (
    OWNER_UNKNOWN,
    LayerinfoArgumentError,
    LayerinfoParseError,
)

from .difftypes import DiffType, classify
from .entrytypes import EntryKind, kind_from_tar_type, tar_type_from_kind
from .hashing import FINGERPRINT_MAX

#: Serialized field names, in output order.
_FIELDS = (
    "path",
    "typeFlag",
    "linkName",
    "hash",
    "size",
    "fileMode",
    "uid",
    "gid",
    "isDir",
)

_KIND_DESCS = {
    EntryKind.REGULAR: "file",
    EntryKind.DIRECTORY: "directory",
    EntryKind.SYMLINK: "symbolic link",
    EntryKind.HARDLINK: "hard link",
    EntryKind.OTHER: "other",
}


def _owner_to_json(owner: Optional[int]) -> int:
    return OWNER_UNKNOWN if owner is None else owner


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True)
class FileInfo:
    """
    Metadata for a single observation of a file system entry in a layer.
    """

    #: Logical path of the entry within the image file system
    path: str
    #: Structural type of the entry
    kind: EntryKind
    #: Symbolic link target: empty unless ``kind`` is ``EntryKind.SYMLINK``
    link_target: str = ""
    #: Content and path fingerprint: always 0 for directories
    hash: int = 0
    #: Content size in bytes: always 0 for directories
    size: int = 0
    #: ``st_mode`` style permission and file type bits
    mode: int = 0
    #: Owner user ID or ``None`` if unknown (``OWNER_UNKNOWN`` maps to ``None``)
    uid: Optional[int] = None
    #: Owner group ID or ``None`` if unknown (``OWNER_UNKNOWN`` maps to ``None``)
    gid: Optional[int] = None

    def __post_init__(self):
        for name in ("uid", "gid"):
            owner = getattr(self, name)
            if owner == OWNER_UNKNOWN:
                object.__setattr__(self, name, None)
            elif owner is not None and owner < 0:
                raise LayerinfoArgumentError(
                    f"Invalid {name} for {self.path}: {owner}"
                )
        if not isinstance(self.kind, EntryKind):
            raise LayerinfoArgumentError(f"Invalid entry kind: {self.kind!r}")
        if not 0 <= self.hash <= FINGERPRINT_MAX:
            raise LayerinfoArgumentError(
                f"Fingerprint out of range for {self.path}: {self.hash}"
            )
        if self.size < 0:
            raise LayerinfoArgumentError(
                f"Negative size for {self.path}: {self.size}"
            )
        if self.kind == EntryKind.DIRECTORY and (self.hash or self.size):
            raise LayerinfoArgumentError(
                f"Directory {self.path} cannot have a fingerprint or size"
            )
        if self.link_target and self.kind != EntryKind.SYMLINK:
            raise LayerinfoArgumentError(
                f"Link target set for non-symlink {self.path}"
            )

    def __str__(self):
        """
        Return a string representation of this ``FileInfo`` object.

        :returns: A human readable representation of this ``FileInfo``.
        :rtype: ``str``
        """
        indent = 4 * " "
        owner = (
            f"{self.uid}:{self.gid}"
            if self.uid is not None or self.gid is not None
            else "unknown"
        )
        fi_str = (
            f"{indent}path: {self.path}\n"
            f"{indent}type: {self.type_desc}\n"
            f"{indent}hash: {self.hash}\n"
            f"{indent}size: {self.size}\n"
            f"{indent}mode: {oct(self.mode)}\n"
            f"{indent}owner: {owner}"
        )
        if self.link_target:
            fi_str += f"\n{indent}link_target: {self.link_target}"
        return fi_str

    @property
    def is_dir(self) -> bool:
        """
        True if this ``FileInfo`` is a directory.

        :returns: ``True`` if this ``FileInfo`` describes a directory or
                  ``False`` otherwise.
        :rtype: ``bool``
        """
        return self.kind == EntryKind.DIRECTORY

    @property
    def type_desc(self) -> str:
        """
        Return a string description of the entry kind.

        :returns: A string description of the entry kind.
        :rtype: ``str``
        """
        return _KIND_DESCS[self.kind]

    @property
    def type_flag(self) -> bytes:
        """
        The archive type marker for this entry.

        :returns: A single byte tar type marker.
        :rtype: ``bytes``
        """
        return tar_type_from_kind(self.kind, self.mode)

    def copy(self) -> "FileInfo":
        """
        Return an independent copy of this ``FileInfo``.

        :returns: A new ``FileInfo`` equal to this one.
        :rtype: ``FileInfo``
        """
        return replace(self)

    def compare(self, other: "FileInfo") -> DiffType:
        """
        Classify the change from this ``FileInfo`` to ``other``.

        :param other: The later observation of the same path.
        :type other: ``FileInfo``
        :returns: The diff verdict.
        :rtype: ``DiffType``
        """
        return classify(self, other)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``FileInfo`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping serialized field names to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "path": self.path,
            "typeFlag": ord(self.type_flag),
            "linkName": self.link_target,
            "hash": self.hash,
            "size": self.size,
            "fileMode": self.mode,
            "uid": _owner_to_json(self.uid),
            "gid": _owner_to_json(self.gid),
            "isDir": self.is_dir,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileInfo":
        """
        Initialise a new ``FileInfo`` from its dictionary representation.

        The ``isDir`` value is checked against the kind implied by
        ``typeFlag``.

        :param data: A dictionary as returned by ``to_dict()``.
        :type data: ``Dict[str, Any]``
        :returns: A new ``FileInfo`` instance.
        :rtype: ``FileInfo``
        :raises LayerinfoParseError: If ``data`` is not a valid
                                     ``FileInfo`` representation.
        """
        if not isinstance(data, dict):
            raise LayerinfoParseError(f"Invalid file info data: {data!r}")

        missing = [name for name in _FIELDS if name not in data]
        if missing:
            raise LayerinfoParseError(
                f"File info missing fields: {', '.join(missing)}"
            )

        for name in ("path", "linkName"):
            if not isinstance(data[name], str):
                raise LayerinfoParseError(
                    f"Invalid value for file info field '{name}': {data[name]!r}"
                )

        for name in ("typeFlag", "hash", "size", "fileMode", "uid", "gid"):
            if not isinstance(data[name], int) or isinstance(data[name], bool):
                raise LayerinfoParseError(
                    f"Invalid value for file info field '{name}': {data[name]!r}"
                )

        try:
            kind = kind_from_tar_type(bytes([data["typeFlag"]]))
        except ValueError as err:
            raise LayerinfoParseError(
                f"Invalid file info type flag: {data['typeFlag']}"
            ) from err

        if bool(data["isDir"]) != (kind == EntryKind.DIRECTORY):
            raise LayerinfoParseError(
                f"Inconsistent isDir value for {data['path']}: {data['isDir']}"
            )

        try:
            return cls(
                path=data["path"],
                kind=kind,
                link_target=data["linkName"],
                hash=data["hash"],
                size=data["size"],
                mode=data["fileMode"],
                uid=data["uid"],
                gid=data["gid"],
            )
        except LayerinfoArgumentError as err:
            raise LayerinfoParseError(f"Invalid file info: {err}") from err

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this ``FileInfo`` in JSON
        notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


def copy_file_info(info: Optional[FileInfo]) -> Optional[FileInfo]:
    """
    Return an independent copy of ``info``, or ``None`` if ``info`` is
    ``None``.

    :param info: The record to copy.
    :type info: ``Optional[FileInfo]``
    :returns: A copy of ``info`` or ``None``.
    :rtype: ``Optional[FileInfo]``
    """
    if info is None:
        return None
    return info.copy()


__all__ = [
    "FileInfo",
    "copy_file_info",
]
