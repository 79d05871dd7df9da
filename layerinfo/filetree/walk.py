# Copyright Red Hat
#
# layerinfo/filetree/walk.py - Layer file information batch extraction
#
# This file is part of the layerinfo project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Batch extraction of ``FileInfo`` records from layer archives and file
system paths.

Each path produces an ``ExtractResult`` holding either a record or the
error that prevented building one, so a single unreadable entry does not
abort the batch. ``collect()`` applies the caller's error policy.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import tarfile
import logging
import os

from layerinfo import (
    LAYERINFO_SUBSYSTEM_EXTRACT,
    LayerinfoArgumentError,
    LayerinfoError,
    LayerinfoOpenError,
    LayerinfoPathError,
)

from .extract import file_info_from_filesystem, file_info_from_tar_header
from .fileinfo import FileInfo
from .options import ON_ERROR_RAISE, ON_ERROR_SKIP, ExtractOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_extract(msg, *args, **kwargs):
    """A wrapper for extract subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": LAYERINFO_SUBSYSTEM_EXTRACT}, **kwargs)


@dataclass(frozen=True)
class ExtractResult:
    """
    The outcome of extracting file information for one path.
    """

    #: The logical path this result belongs to
    path: str
    #: The extracted record, or ``None`` if extraction failed
    info: Optional[FileInfo] = None
    #: The extraction error, or ``None`` if extraction succeeded
    error: Optional[LayerinfoPathError] = None

    def __post_init__(self):
        if (self.info is None) == (self.error is None):
            raise LayerinfoArgumentError(
                f"ExtractResult for {self.path} needs exactly one of info or error"
            )

    @property
    def ok(self) -> bool:
        """
        True if extraction succeeded.

        :returns: ``True`` if this result holds a ``FileInfo`` or ``False``
                  if it holds an error.
        :rtype: ``bool``
        """
        return self.error is None

    def unwrap(self) -> FileInfo:
        """
        Return the extracted record or raise the extraction error.

        :returns: The extracted ``FileInfo``.
        :rtype: ``FileInfo``
        :raises LayerinfoPathError: If extraction failed.
        """
        if self.error is not None:
            raise self.error
        return self.info


def _next_member(
    tar: tarfile.TarFile, members: Iterator[tarfile.TarInfo], on_error: str
) -> Optional[tarfile.TarInfo]:
    """
    Advance to the next archive member.

    Returns ``None`` at the end of the archive, or when the archive is
    damaged and ``on_error`` is ``"skip"``.
    """
    try:
        return next(members, None)
    except tarfile.TarError as err:
        if on_error != ON_ERROR_SKIP:
            raise LayerinfoError(
                f"Failed to read layer archive {tar.name or '<stream>'}: {err}"
            ) from err
        _log_warn("Stopping at damaged layer archive member: %s", err)
        return None


def iter_tar_layer(
    tar: tarfile.TarFile, options: Optional[ExtractOptions] = None
) -> Iterator[ExtractResult]:
    """
    Extract file information for every member of a layer archive.

    Members are visited sequentially in archive order and the content of
    each member is read exactly once. ``tar`` may be opened in stream mode
    (``"r|"``). Failure to read a member is reported in its result.

    Errors in the archive structure itself, such as a header missing from a
    truncated archive, end the iteration. With the ``"skip"`` error policy
    the results already produced stand and a warning is logged; otherwise
    ``LayerinfoError`` is raised.

    :param tar: An open layer archive.
    :type tar: ``tarfile.TarFile``
    :param options: Extraction options.
    :type options: ``Optional[ExtractOptions]``
    :returns: An iterator over per-member results.
    :rtype: ``Iterator[ExtractResult]``
    :raises LayerinfoError: If the archive structure is damaged and the
                            error policy is not ``"skip"``.
    """
    options = options or ExtractOptions()
    members = iter(tar)
    count = 0
    failed = 0

    member = _next_member(tar, members, options.on_error)
    while member is not None:
        reader = tar.extractfile(member) if member.isreg() else None
        try:
            info = file_info_from_tar_header(
                member, reader, member.name, chunk_size=options.chunk_size
            )
            result = ExtractResult(member.name, info=info)
            _log_debug_extract("Extracted '%s' (hash=%d)", member.name, info.hash)
        except LayerinfoPathError as err:
            _log_debug_extract("Failed to extract '%s': %s", member.name, err)
            result = ExtractResult(member.name, error=err)
            failed += 1
        finally:
            if reader is not None:
                reader.close()

        count += 1
        yield result
        member = _next_member(tar, members, options.on_error)

    _log_debug_extract("Visited %d archive members (%d failed)", count, failed)


def _extract_path(real_path: str, path: str, chunk_size: int) -> ExtractResult:
    """
    Extract file information for one file system path.
    """
    try:
        stat_info = os.lstat(real_path)
    except OSError as err:
        return ExtractResult(path, error=LayerinfoOpenError(path, err))
    try:
        info = file_info_from_filesystem(
            real_path, path, stat_info, chunk_size=chunk_size
        )
    except LayerinfoPathError as err:
        return ExtractResult(path, error=err)
    return ExtractResult(path, info=info)


def extract_paths(
    entries: Iterable[Tuple[str, str]], options: Optional[ExtractOptions] = None
) -> List[ExtractResult]:
    """
    Extract file information for a collection of file system paths.

    Paths are processed by a pool of at most ``options.max_workers``
    threads. Each worker opens its own file handle and hasher for the path
    it processes. Results are returned in the order of ``entries``.

    :param entries: Pairs of ``(real_path, path)`` giving the host path and
                    the logical path within the image.
    :type entries: ``Iterable[Tuple[str, str]]``
    :param options: Extraction options.
    :type options: ``Optional[ExtractOptions]``
    :returns: A list of per-path results.
    :rtype: ``List[ExtractResult]``
    """
    options = options or ExtractOptions()
    entries = list(entries)

    def _extract(entry: Tuple[str, str]) -> ExtractResult:
        real_path, path = entry
        return _extract_path(real_path, path, options.chunk_size)

    _log_debug_extract(
        "Extracting %d paths with %d workers", len(entries), options.max_workers
    )

    if options.max_workers == 1 or len(entries) <= 1:
        results = [_extract(entry) for entry in entries]
    else:
        with ThreadPoolExecutor(max_workers=options.max_workers) as executor:
            results = list(executor.map(_extract, entries))

    failed = sum(1 for result in results if not result.ok)
    _log_debug_extract("Extracted %d paths (%d failed)", len(results), failed)
    return results


def collect(
    results: Iterable[ExtractResult], on_error: str = ON_ERROR_RAISE
) -> Dict[str, FileInfo]:
    """
    Gather extraction results into a mapping of path to ``FileInfo``.

    :param results: The results to collect.
    :type results: ``Iterable[ExtractResult]``
    :param on_error: ``"raise"`` to raise the first extraction error, or
                     ``"skip"`` to drop failed paths with a warning.
    :type on_error: ``str``
    :returns: A dictionary mapping logical paths to ``FileInfo`` objects.
    :rtype: ``Dict[str, FileInfo]``
    :raises LayerinfoPathError: If a result failed and ``on_error`` is
                                ``"raise"``.
    """
    if on_error not in (ON_ERROR_RAISE, ON_ERROR_SKIP):
        raise LayerinfoArgumentError(f"Invalid error policy: {on_error}")

    infos = {}
    for result in results:
        if result.ok:
            infos[result.path] = result.info
            continue
        if on_error == ON_ERROR_RAISE:
            _log_error("Aborting extraction: %s", result.error)
            raise result.error
        _log_warn("Skipping unreadable path: %s", result.error)
    return infos


def extract_tar_layer(
    tar: tarfile.TarFile, options: Optional[ExtractOptions] = None
) -> Dict[str, FileInfo]:
    """
    Extract and collect file information for a layer archive using the
    error policy in ``options``.

    :param tar: An open layer archive.
    :type tar: ``tarfile.TarFile``
    :param options: Extraction options.
    :type options: ``Optional[ExtractOptions]``
    :returns: A dictionary mapping member paths to ``FileInfo`` objects.
    :rtype: ``Dict[str, FileInfo]``
    :raises LayerinfoError: If the archive structure is damaged and the
                            error policy is not ``"skip"``.
    """
    options = options or ExtractOptions()
    return collect(iter_tar_layer(tar, options), on_error=options.on_error)


__all__ = [
    "ExtractResult",
    "collect",
    "extract_paths",
    "extract_tar_layer",
    "iter_tar_layer",
]
