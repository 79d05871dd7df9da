# Copyright Red Hat
#
# layerinfo/filetree/__init__.py - Layer file information file tree package
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Layer file tree package.

Provides the per-path ``FileInfo`` record, content fingerprinting,
extraction from layer archives and live file systems, and change
classification between two observations of the same path.
"""
from .difftypes import DiffType, classify
from .entrytypes import EntryKind
from .extract import file_info_from_filesystem, file_info_from_tar_header
from .fileinfo import FileInfo, copy_file_info
from .hashing import ContentHasher, fingerprint, tree_abs_path
from .options import ExtractOptions
from .walk import (
    ExtractResult,
    collect,
    extract_paths,
    extract_tar_layer,
    iter_tar_layer,
)

__all__ = [
    "ContentHasher",
    "DiffType",
    "EntryKind",
    "ExtractOptions",
    "ExtractResult",
    "FileInfo",
    "classify",
    "collect",
    "copy_file_info",
    "extract_paths",
    "extract_tar_layer",
    "file_info_from_filesystem",
    "file_info_from_tar_header",
    "fingerprint",
    "iter_tar_layer",
    "tree_abs_path",
]
