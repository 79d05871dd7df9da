# Copyright Red Hat
#
# layerinfo/__init__.py - Layer file information package initialisation
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Layerinfo top-level package.
"""
from ._layerinfo import *  # noqa: F401, F403
from ._layerinfo import __all__  # noqa: F401

__version__ = "0.1.0"
