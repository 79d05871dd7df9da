# Copyright Red Hat
#
# layerinfo/filetree/options.py - Layer file information extraction options
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File information extraction options.
"""
from dataclasses import dataclass
from configparser import ConfigParser, Error as ConfigParserError
from os.path import exists
import logging

from layerinfo import LayerinfoArgumentError, LayerinfoParseError

from .hashing import DEFAULT_CHUNK_SIZE

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Configuration file section for extraction options
_CFG_EXTRACT = "Extract"

#: ChunkSize configuration key
_CFG_CHUNK_SIZE = "ChunkSize"

#: MaxWorkers configuration key
_CFG_MAX_WORKERS = "MaxWorkers"

#: OnError configuration key
_CFG_ON_ERROR = "OnError"

#: Abort on the first failed path
ON_ERROR_RAISE = "raise"

#: Drop failed paths and continue
ON_ERROR_SKIP = "skip"

_ON_ERROR_POLICIES = (ON_ERROR_RAISE, ON_ERROR_SKIP)


@dataclass(frozen=True)
class ExtractOptions:
    """
    File information extraction options.
    """

    #: Read size used when hashing entry content
    chunk_size: int = DEFAULT_CHUNK_SIZE
    #: Maximum number of concurrent file system extraction workers
    max_workers: int = 4
    #: Policy for failed paths: "raise" or "skip"
    on_error: str = ON_ERROR_RAISE

    def __post_init__(self):
        for name in ("chunk_size", "max_workers"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise LayerinfoArgumentError(f"Invalid {name} value: {value!r}")
        if self.chunk_size <= 0:
            raise LayerinfoArgumentError(f"Invalid chunk size: {self.chunk_size}")
        if self.max_workers <= 0:
            raise LayerinfoArgumentError(
                f"Invalid worker count: {self.max_workers}"
            )
        if self.on_error not in _ON_ERROR_POLICIES:
            raise LayerinfoArgumentError(f"Invalid error policy: {self.on_error}")

    def __str__(self):
        """
        Return a human readable string representation of this
        ``ExtractOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        return "\n".join(f"{key}={val}" for key, val in self.__dict__.items())

    @classmethod
    def from_file(cls, config_file: str) -> "ExtractOptions":
        """
        Load ``ExtractOptions`` from an INI-style configuration file located
        at ``config_file``.

        Options missing from the file keep their default values. A missing
        file yields the default options.

        :param config_file: Path to the configuration file.
        :type config_file: ``str``
        :returns: An ``ExtractOptions`` instance initialised from
                  ``config_file``.
        :rtype: ``ExtractOptions``
        :raises LayerinfoParseError: If the file cannot be parsed or contains
                                     invalid values.
        """
        if not exists(config_file):
            return ExtractOptions()

        _log_debug("Loading extraction options from '%s'", config_file)
        cfg = ConfigParser()
        try:
            cfg.read([config_file])
        except ConfigParserError as err:
            raise LayerinfoParseError(
                f"Failed to parse configuration file {config_file}: {err}"
            ) from err

        if not cfg.has_section(_CFG_EXTRACT):
            return ExtractOptions()

        section = cfg[_CFG_EXTRACT]
        kwargs = {}
        try:
            if _CFG_CHUNK_SIZE in section:
                kwargs["chunk_size"] = section.getint(_CFG_CHUNK_SIZE)
            if _CFG_MAX_WORKERS in section:
                kwargs["max_workers"] = section.getint(_CFG_MAX_WORKERS)
            if _CFG_ON_ERROR in section:
                kwargs["on_error"] = section[_CFG_ON_ERROR].strip().lower()
            options = cls(**kwargs)
        except (ValueError, LayerinfoArgumentError) as err:
            raise LayerinfoParseError(
                f"Invalid value in configuration file {config_file}: {err}"
            ) from err

        _log_debug("Initialised ExtractOptions from file: %s", repr(options))
        return options


__all__ = [
    "ON_ERROR_RAISE",
    "ON_ERROR_SKIP",
    "ExtractOptions",
]
