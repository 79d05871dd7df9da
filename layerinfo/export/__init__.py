# Copyright Red Hat
#
# layerinfo/export/__init__.py - Layer file information export package
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Layer export package.
"""
from .layer import AbsNodeData, LayerExport, LayerRecord

__all__ = [
    "AbsNodeData",
    "LayerExport",
    "LayerRecord",
]
