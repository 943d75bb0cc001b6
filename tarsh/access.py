"""Permission checks and directory listings for files inside a tar."""

from __future__ import annotations

import errno
import os
from typing import BinaryIO, Iterator, List, Sequence

from .archive import PosixHeader, TarEntry, tar_ls_all, tar_ls_if
from .errors import TarError
from .utils import append_slash, is_dir_name, is_prefix

_ALL_RIGHTS = os.R_OK | os.W_OK | os.X_OK


def _user_class(header: PosixHeader) -> int:
    """0 if the current user owns the file, 1 if a group matches, 2 otherwise."""
    if header.uid == os.getuid():
        return 0
    if header.gid in os.getgroups() or header.gid == os.getgid():
        return 1
    return 2


def _check_rights(header: PosixHeader, mode: int) -> None:
    shift = (2 - _user_class(header)) * 3
    rights = (header.mode >> shift) & 0o7
    if mode & _ALL_RIGHTS & ~rights:
        raise TarError(errno.EACCES, header.name)


def _simple_access(filename: str, entries: Sequence[TarEntry], mode: int) -> int:
    """Check ``filename`` alone, without looking at its parent directories."""
    is_directory = not filename or is_dir_name(filename)
    match = None
    found = 0
    for entry in entries:
        name = entry.header.name
        if name == filename:
            match = entry
            found = 1
        elif is_directory and found != 1 and is_prefix(filename, name):
            found = 2

    if not found:
        raise TarError(errno.ENOENT, filename)
    if mode == os.F_OK or found == 2:
        return found
    _check_rights(match.header, mode)
    return 1


def _parent_dirs(filename: str) -> Iterator[str]:
    parts = filename.split("/")
    for depth in range(1, len(parts)):
        prefix = "/".join(parts[:depth]) + "/"
        if prefix != filename:
            yield prefix


def _access_all(filename: str, entries: Sequence[TarEntry], mode: int) -> int:
    for parent in _parent_dirs(filename):
        _simple_access(parent, entries, os.X_OK)
    return _simple_access(filename, entries, mode)


def ftar_access(f: BinaryIO, file_name: str, mode: int) -> int:
    """Check the user's permissions for ``file_name`` in the open tar ``f``.

    Returns 1 if the file was found exactly, 2 if it is a directory known only
    through its subfiles. Raises TarError with ENOENT, EACCES or EINVAL.
    """
    if not (mode == os.F_OK or mode & _ALL_RIGHTS):
        raise TarError(errno.EINVAL)
    entries = tar_ls_all(f)
    if os.getuid() == 0:
        return _simple_access(file_name, entries, os.F_OK)
    return _access_all(file_name, entries, mode)


def tar_access(tar_name, file_name: str, mode: int) -> int:
    """Check the user's permissions for ``file_name`` in the tar at ``tar_name``."""
    with open(tar_name, "rb") as f:
        return ftar_access(f, file_name, mode)


def is_dir(tar_name, filename: str) -> bool:
    """Tell whether ``filename`` is a directory of the tar (the root counts)."""
    if not filename:
        return True
    try:
        return tar_access(tar_name, append_slash(filename), os.F_OK) > 0
    except OSError:
        return False


def tar_ls_dir(f: BinaryIO, dir_name: str, rec: bool) -> List[TarEntry]:
    """List the files under ``dir_name`` (``""`` for the root).

    ``dir_name`` itself is not listed. With ``rec`` subdirectories are listed
    too.
    """
    if dir_name:
        if not is_dir_name(dir_name):
            raise TarError(errno.ENOTDIR, dir_name)
        ftar_access(f, dir_name, os.F_OK)

    def in_dir(header: PosixHeader) -> bool:
        if is_prefix(dir_name, header.name) != 1:
            return False
        if rec:
            return True
        rest = header.name[len(dir_name):]
        slash = rest.find("/")
        return slash == -1 or slash == len(rest) - 1

    return tar_ls_if(f, in_dir)