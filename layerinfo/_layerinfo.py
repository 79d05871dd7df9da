# Copyright Red Hat
#
# layerinfo/_layerinfo.py - Layer file information global definitions
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level layerinfo package.
"""
from typing import Optional
import logging

_log = logging.getLogger("layerinfo")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Layerinfo debugging subsystem mask
LAYERINFO_DEBUG_EXTRACT = 1
LAYERINFO_DEBUG_EXPORT = 2
LAYERINFO_DEBUG_ALL = LAYERINFO_DEBUG_EXTRACT | LAYERINFO_DEBUG_EXPORT

# Layerinfo debugging subsystem names
LAYERINFO_SUBSYSTEM_EXTRACT = "layerinfo.extract"
LAYERINFO_SUBSYSTEM_EXPORT = "layerinfo.export"

_DEBUG_MASK_TO_SUBSYSTEM = {
    LAYERINFO_DEBUG_EXTRACT: LAYERINFO_SUBSYSTEM_EXTRACT,
    LAYERINFO_DEBUG_EXPORT: LAYERINFO_SUBSYSTEM_EXPORT,
}

_SUBSYSTEM_TO_DEBUG_MASK = {
    name: flag for flag, name in _DEBUG_MASK_TO_SUBSYSTEM.items()
}

#: The debug mask currently in effect
_debug_mask = 0

#: Serialized value for unknown file ownership
OWNER_UNKNOWN = -1


class SubsystemFilter(logging.Filter):
    """
    Pass DEBUG records only for subsystems enabled in the current debug
    mask. Records at other levels, and DEBUG records that carry no
    ``subsystem`` attribute, always pass.

    All filters share the mask set by ``set_debug_mask()``.
    """

    def filter(self, record):
        subsystem = getattr(record, "subsystem", None)
        if record.levelno != logging.DEBUG or subsystem is None:
            return True
        return bool(_debug_mask & _SUBSYSTEM_TO_DEBUG_MASK.get(subsystem, 0))


def get_debug_mask():
    """
    Return the current debug mask for the ``layerinfo`` package.

    :returns: The logical OR of the enabled ``LAYERINFO_DEBUG_*`` values.
    :rtype: int
    """
    return _debug_mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``layerinfo`` package.

    :param mask: the logical OR of the ``LAYERINFO_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_mask

    if not isinstance(mask, int) or mask < 0 or mask > LAYERINFO_DEBUG_ALL:
        raise ValueError(f"Invalid layerinfo debug mask: {mask}")
    _debug_mask = mask


def add_debug_handler(handler, mask=LAYERINFO_DEBUG_ALL):
    """
    Attach ``handler`` to the ``layerinfo`` logger for subsystem debugging.

    The handler is given a ``SubsystemFilter``, the logger level is set to
    DEBUG and the debug mask is set to ``mask``.

    :param handler: The handler to receive ``layerinfo`` log records.
    :type handler: ``logging.Handler``
    :param mask: the logical OR of the ``LAYERINFO_DEBUG_*``
                 values to log.
    :type mask: ``int``
    :returns: ``handler``
    :rtype: ``logging.Handler``
    """
    set_debug_mask(mask)
    if not any(isinstance(f, SubsystemFilter) for f in handler.filters):
        handler.addFilter(SubsystemFilter())
    _log.setLevel(logging.DEBUG)
    _log.addHandler(handler)
    return handler


#
# Layerinfo exception types
#


class LayerinfoError(Exception):
    """
    Base class for layer file information errors.
    """


class LayerinfoArgumentError(LayerinfoError):
    """
    An invalid argument was passed to a layerinfo API call.
    """


class LayerinfoSystemError(LayerinfoError):
    """
    An error when calling the operating system.
    """


class LayerinfoParseError(LayerinfoError):
    """
    An error parsing serialized data or configuration.
    """


class LayerinfoPathError(LayerinfoError):
    """
    An error gathering information for a specific path.
    """

    what = "Error processing"

    def __init__(self, path: str, err: Optional[BaseException] = None):
        """
        Initialise a new ``LayerinfoPathError`` exception.

        :param path: The logical path being processed.
        :param err: The underlying exception, if any.
        """
        self.path, self.err = path, err
        msg = f"{self.what} {path}"
        if err is not None:
            msg += f": {err}"
        super().__init__(msg)


class LayerinfoReadError(LayerinfoPathError):
    """
    The content of a path could not be read completely.
    """

    what = "Failed to read content of"


class LayerinfoSymlinkError(LayerinfoPathError):
    """
    The target of a symbolic link could not be resolved.
    """

    what = "Failed to read link target of"


class LayerinfoOpenError(LayerinfoPathError):
    """
    A path believed to be a regular file could not be opened.
    """

    what = "Failed to open"


__all__ = [
    "LAYERINFO_DEBUG_EXTRACT",
    "LAYERINFO_DEBUG_EXPORT",
    "LAYERINFO_DEBUG_ALL",
    # Debug logging - subsystem name interface
    "SubsystemFilter",
    "LAYERINFO_SUBSYSTEM_EXTRACT",
    "LAYERINFO_SUBSYSTEM_EXPORT",
    "set_debug_mask",
    "get_debug_mask",
    "add_debug_handler",
    "OWNER_UNKNOWN",
    "LayerinfoError",
    "LayerinfoArgumentError",
    "LayerinfoSystemError",
    "LayerinfoParseError",
    "LayerinfoPathError",
    "LayerinfoReadError",
    "LayerinfoSymlinkError",
    "LayerinfoOpenError",
]
