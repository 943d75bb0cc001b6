"""Copying and extracting files out of a tar."""

from __future__ import annotations

import errno
import os
from typing import BinaryIO

from .access import ftar_access, tar_access, tar_ls_dir
from .archive import BLOCKSIZE, TarEntry, TypeFlag, seek_header
from .errors import TarError
from .utils import copy_stream, is_dir_name

_REGULAR = (TypeFlag.REGTYPE, TypeFlag.AREGTYPE)


def _extract_rank(entry: TarEntry):
    """Symbolic links last, preceded by hard links, the rest by name."""
    flag = entry.header.typeflag
    if flag == TypeFlag.SYMTYPE:
        rank = 2
    elif flag == TypeFlag.LNKTYPE:
        rank = 1
    else:
        rank = 0
    return rank, entry.header.name


def _make_path(dest: str, path: str) -> None:
    parent = os.path.dirname(path.rstrip("/"))
    if parent:
        os.makedirs(os.path.join(dest, parent), 0o777, exist_ok=True)


def _extract_entry(f: BinaryIO, entry: TarEntry, extract_name: str, dest: str) -> None:
    header = entry.header
    target = os.path.join(dest, extract_name)
    flag = header.typeflag
    if flag in _REGULAR:
        f.seek(entry.data_start)
        fd = os.open(target, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
        with open(fd, "wb") as out:
            copy_stream(f, out, header.size, BLOCKSIZE)
    elif flag == TypeFlag.DIRTYPE:
        os.mkdir(target, 0o777)
    elif flag == TypeFlag.SYMTYPE:
        os.symlink(header.linkname, target)
    elif flag == TypeFlag.LNKTYPE:
        os.link(os.path.join(dest, header.linkname), target)


def _last_component(path: str) -> str:
    slash = path.rfind("/")
    if slash == -1:
        return path
    if slash != len(path) - 1:
        return path[slash + 1:]
    return path[path.rfind("/", 0, slash) + 1:]


def tar_extract(tar_name, filename: str, dest) -> None:
    """Extract ``filename`` from the tar into the existing directory ``dest``.

    A directory (a name ending with ``/``, or ``""`` for the whole tar) is
    extracted with its content as ``dest/<last component>/``; any other file
    as ``dest/<last component>``.
    """
    dest = os.fspath(dest)
    with open(tar_name, "rb") as f:
        ftar_access(f, filename, os.R_OK)
        if not os.path.isdir(dest):
            raise TarError(errno.ENOTDIR if os.path.exists(dest) else errno.ENOENT, dest)

        wanted = _last_component(filename)
        if not filename or is_dir_name(filename):
            start = len(filename) - len(wanted)
            for entry in sorted(tar_ls_dir(f, filename, True), key=_extract_rank):
                extract_name = entry.header.name[start:]
                _make_path(dest, extract_name)
                _extract_entry(f, entry, extract_name, dest)
        else:
            f.seek(0)
            header = seek_header(f, filename)
            if header is None:
                raise TarError(errno.ENOENT, filename)
            _extract_entry(f, TarEntry(header, f.tell() - BLOCKSIZE), wanted, dest)


def tar_cp_file(tar_name, filename: str, out: BinaryIO) -> None:
    """Write the content of ``filename`` from the tar to ``out``."""
    tar_access(tar_name, filename, os.R_OK)
    with open(tar_name, "rb") as f:
        header = seek_header(f, filename)
        if header is None:
            raise TarError(errno.ENOENT, filename)
        flag = header.typeflag
        if flag == TypeFlag.DIRTYPE:
            raise TarError(errno.EISDIR, filename)
        if flag not in (*_REGULAR, TypeFlag.LNKTYPE, TypeFlag.SYMTYPE):
            raise TarError(errno.EPERM, filename)
        copy_stream(f, out, header.size, BLOCKSIZE)