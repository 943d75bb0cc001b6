"""Moving a file's content out of a tar."""

from __future__ import annotations

import errno
import os
from typing import BinaryIO

from .archive import BLOCKSIZE, TypeFlag, number_of_block, seek_header
from .errors import TarError
from .utils import copy_stream, fmemmove


def tar_mv_file(tar_name, filename: str, out: BinaryIO) -> None:
    """Write the content of ``filename`` to ``out``, then remove it from the tar."""
    with open(tar_name, "r+b") as f:
        header = seek_header(f, filename)
        if header is None:
            raise TarError(errno.ENOENT, filename)
        if header.typeflag == TypeFlag.DIRTYPE:
            raise TarError(errno.EISDIR, filename)
        if header.typeflag not in (TypeFlag.REGTYPE, TypeFlag.AREGTYPE):
            raise TarError(errno.EPERM, filename)

        file_start = f.tell() - BLOCKSIZE
        copy_stream(f, out, header.size, BLOCKSIZE)

        file_end = file_start + BLOCKSIZE + number_of_block(header.size) * BLOCKSIZE
        tar_end = f.seek(0, os.SEEK_END)
        fmemmove(f, file_end, tar_end - file_end, file_start)
        f.truncate(tar_end - (file_end - file_start))