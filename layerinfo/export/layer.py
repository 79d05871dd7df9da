# Copyright Red Hat
#
# layerinfo/export/layer.py - Layer file information layer export
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Per-layer export records.

A ``LayerRecord`` holds the identity, size and originating command of one
image layer together with the ordered list of files touched by that layer.
The records carry no derived data: the producer is responsible for their
content.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import json

from layerinfo import (
    LAYERINFO_SUBSYSTEM_EXPORT,
    LayerinfoParseError,
    LayerinfoSystemError,
)
from layerinfo.filetree.fileinfo import FileInfo

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_export(msg, *args, **kwargs):
    """A wrapper for export subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": LAYERINFO_SUBSYSTEM_EXPORT}, **kwargs)


def _require(data: Any, keys: Dict[str, type], what: str):
    """
    Check that ``data`` is a dictionary containing ``keys`` with values of
    the expected types.
    """
    if not isinstance(data, dict):
        raise LayerinfoParseError(f"Invalid {what} data: {data!r}")
    for key, expected in keys.items():
        if key not in data:
            raise LayerinfoParseError(f"{what} missing field '{key}'")
        value = data[key]
        if not isinstance(value, expected) or (
            expected is int and isinstance(value, bool)
        ):
            raise LayerinfoParseError(
                f"Invalid value for {what} field '{key}': {value!r}"
            )


@dataclass(frozen=True)
class AbsNodeData:
    """
    A file touched by a layer and its absolute path in the image tree.
    """

    #: Absolute path of the file in the image tree
    abs_path: str
    #: File information for the path
    node_data: FileInfo

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``AbsNodeData`` into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping serialized field names to values.
        :rtype: ``Dict[str, Any]``
        """
        return {"AbsPath": self.abs_path, "NodeData": self.node_data.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AbsNodeData":
        """
        Initialise a new ``AbsNodeData`` from its dictionary representation.

        :param data: A dictionary as returned by ``to_dict()``.
        :type data: ``Dict[str, Any]``
        :returns: A new ``AbsNodeData`` instance.
        :rtype: ``AbsNodeData``
        """
        _require(data, {"AbsPath": str, "NodeData": dict}, "file list entry")
        return cls(data["AbsPath"], FileInfo.from_dict(data["NodeData"]))


# pylint: disable=too-many-instance-attributes
@dataclass
class LayerRecord:
    """
    Export record for a single image layer.
    """

    #: Ordinal position of the layer within the image
    index: int
    #: Content digest of the layer
    layer_id: str
    #: Alternate digest identifier of the layer
    digest_id: str
    #: Total layer size in bytes
    size_bytes: int
    #: The build instruction that created the layer
    command: str
    #: Files touched by the layer in traversal order
    file_list: List[AbsNodeData] = field(default_factory=list)

    def __str__(self):
        """
        Return a string representation of this ``LayerRecord`` object.

        :returns: A human readable representation of this ``LayerRecord``.
        :rtype: ``str``
        """
        return (
            f"Index: {self.index}\n"
            f"  id: {self.layer_id}\n"
            f"  digest_id: {self.digest_id}\n"
            f"  size_bytes: {self.size_bytes}\n"
            f"  command: {self.command}\n"
            f"  files: {len(self.file_list)}"
        )

    def add_file(self, abs_path: str, info: FileInfo):
        """
        Append a file to this layer's file list.

        :param abs_path: The absolute path of the file in the image tree.
        :type abs_path: ``str``
        :param info: The file information for ``abs_path``.
        :type info: ``FileInfo``
        """
        self.file_list.append(AbsNodeData(abs_path, info))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``LayerRecord`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping serialized field names to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "index": self.index,
            "id": self.layer_id,
            "digestId": self.digest_id,
            "sizeBytes": self.size_bytes,
            "command": self.command,
            "fileList": [entry.to_dict() for entry in self.file_list],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayerRecord":
        """
        Initialise a new ``LayerRecord`` from its dictionary representation.

        :param data: A dictionary as returned by ``to_dict()``.
        :type data: ``Dict[str, Any]``
        :returns: A new ``LayerRecord`` instance.
        :rtype: ``LayerRecord``
        :raises LayerinfoParseError: If ``data`` does not have the shape of
                                     a ``LayerRecord``.
        """
        _require(
            data,
            {
                "index": int,
                "id": str,
                "digestId": str,
                "sizeBytes": int,
                "command": str,
                "fileList": list,
            },
            "layer",
        )
        if data["sizeBytes"] < 0:
            raise LayerinfoParseError(f"Invalid layer size: {data['sizeBytes']}")
        return cls(
            index=data["index"],
            layer_id=data["id"],
            digest_id=data["digestId"],
            size_bytes=data["sizeBytes"],
            command=data["command"],
            file_list=[AbsNodeData.from_dict(entry) for entry in data["fileList"]],
        )

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this ``LayerRecord`` in JSON
        notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


class LayerExport:
    """
    An ordered collection of ``LayerRecord`` objects for one image.
    """

    def __init__(self, layers: Optional[List[LayerRecord]] = None):
        """
        Initialise a new ``LayerExport`` object.

        :param layers: The layer records in image order.
        :type layers: ``Optional[List[LayerRecord]]``
        """
        self.layers: List[LayerRecord] = list(layers or [])

    def __len__(self):
        return len(self.layers)

    def __iter__(self):
        return iter(self.layers)

    def add_layer(self, layer: LayerRecord):
        """
        Append a layer record.

        :param layer: The layer to append.
        :type layer: ``LayerRecord``
        """
        self.layers.append(layer)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``LayerExport`` into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary with a single ``layer`` list.
        :rtype: ``Dict[str, Any]``
        """
        return {"layer": [layer.to_dict() for layer in self.layers]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayerExport":
        """
        Initialise a new ``LayerExport`` from its dictionary representation.

        :param data: A dictionary as returned by ``to_dict()``.
        :type data: ``Dict[str, Any]``
        :returns: A new ``LayerExport`` instance.
        :rtype: ``LayerExport``
        """
        _require(data, {"layer": list}, "export")
        return cls([LayerRecord.from_dict(layer) for layer in data["layer"]])

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this ``LayerExport`` in JSON
        notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)

    def write(self, path: str, pretty=True):
        """
        Write this ``LayerExport`` to ``path`` as JSON.

        :param path: The file to write.
        :type path: ``str``
        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :raises LayerinfoSystemError: If the file cannot be written.
        """
        _log_debug_export("Writing %d layers to '%s'", len(self.layers), path)
        try:
            with open(path, "w", encoding="utf8") as fp:
                fp.write(self.json(pretty=pretty))
                fp.write("\n")
        except OSError as err:
            raise LayerinfoSystemError(
                f"Failed to write layer export to {path}: {err}"
            ) from err
        _log_info("Exported %d layers to %s", len(self.layers), path)

    @classmethod
    def load(cls, path: str) -> "LayerExport":
        """
        Load a ``LayerExport`` previously written to ``path``.

        :param path: The file to read.
        :type path: ``str``
        :returns: A new ``LayerExport`` instance.
        :rtype: ``LayerExport``
        :raises LayerinfoSystemError: If the file cannot be read.
        :raises LayerinfoParseError: If the file content is not a valid
                                     layer export.
        """
        _log_debug_export("Loading layer export from '%s'", path)
        try:
            with open(path, "r", encoding="utf8") as fp:
                data = json.load(fp)
        except OSError as err:
            raise LayerinfoSystemError(
                f"Failed to read layer export from {path}: {err}"
            ) from err
        except (json.JSONDecodeError, UnicodeDecodeError) as err:
            raise LayerinfoParseError(
                f"Invalid JSON in layer export {path}: {err}"
            ) from err
        return cls.from_dict(data)


__all__ = [
    "AbsNodeData",
    "LayerExport",
    "LayerRecord",
]
