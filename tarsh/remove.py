"""Removing files and directories from a tar."""

from __future__ import annotations

import errno
import os
from typing import BinaryIO

from .archive import BLOCKSIZE, TypeFlag, number_of_block, read_header, seek_header, skip_file_content
from .errors import TarError
from .utils import fmemmove, is_dir_name, is_prefix


def tar_rm_dir(f: BinaryIO, dirname: str) -> None:
    """Remove ``dirname`` and everything under it from the open tar ``f``.

    ``dirname`` must be empty or end with a ``/``.
    """
    tar_end = f.seek(0, os.SEEK_END)
    f.seek(0)
    while True:
        header = read_header(f)
        if header is None:
            raise TarError(errno.EIO)
        if not header.name:
            f.truncate(tar_end)
            return
        if is_prefix(dirname, header.name):
            file_start = f.seek(-BLOCKSIZE, os.SEEK_CUR)
            file_end = file_start + BLOCKSIZE + number_of_block(header.size) * BLOCKSIZE
            fmemmove(f, file_end, tar_end - file_end, file_start)
            tar_end -= file_end - file_start
        else:
            skip_file_content(f, header)


def _tar_rm_file(f: BinaryIO, filename: str) -> None:
    header = seek_header(f, filename)
    if header is None:
        raise TarError(errno.ENOENT, filename)
    if header.typeflag == TypeFlag.DIRTYPE:
        raise TarError(errno.EISDIR, filename)
    file_start = f.seek(-BLOCKSIZE, os.SEEK_CUR)
    file_end = file_start + BLOCKSIZE + number_of_block(header.size) * BLOCKSIZE
    tar_end = f.seek(0, os.SEEK_END)
    fmemmove(f, file_end, tar_end - file_end, file_start)
    f.truncate(tar_end - (file_end - file_start))


def tar_rm(tar_name, filename: str) -> None:
    """Remove ``filename`` from the tar at ``tar_name``.

    An empty name or one ending with ``/`` is removed recursively as a
    directory; any other name as a regular file.
    """
    with open(tar_name, "r+b") as f:
        if not filename or is_dir_name(filename):
            tar_rm_dir(f, filename)
        else:
            _tar_rm_file(f, filename)