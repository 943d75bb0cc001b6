"""Adding files to a tar, from outside or from another tar."""

from __future__ import annotations

import errno
import grp
import os
import pwd
import stat
from typing import BinaryIO

from .access import tar_access
from .archive import (
    BLOCKSIZE,
    TMAGIC,
    TVERSION,
    PosixHeader,
    TypeFlag,
    number_of_block,
    read_header,
    seek_header,
    skip_file_content,
    tar_ls,
)
from .errors import TarError
from .utils import copy_stream, fmemmove, getumask, is_dir_name

_END_OF_ARCHIVE = bytes(2 * BLOCKSIZE)


def _seek_end_of_tar(f: BinaryIO) -> int:
    """Move to the first empty block from the current offset and return its offset."""
    while True:
        header = read_header(f)
        if header is None:
            raise TarError(errno.EPERM)
        if not header.name:
            return f.seek(-BLOCKSIZE, os.SEEK_CUR)
        skip_file_content(f, header)


def _fit(text: str, width: int) -> str:
    """Cut ``text`` so that it fits in a NUL-terminated field of ``width`` bytes."""
    data = text.encode("utf-8", "surrogateescape")[: width - 1]
    return data.decode("utf-8", "surrogateescape")


def _set_owner_names(header: PosixHeader, uid: int, gid: int) -> None:
    try:
        header.uname = _fit(pwd.getpwuid(uid).pw_name, 32)
    except KeyError:
        pass
    try:
        header.gname = _fit(grp.getgrgid(gid).gr_name, 32)
    except KeyError:
        pass


def _type_of(st_mode: int) -> TypeFlag:
    if stat.S_ISREG(st_mode):
        return TypeFlag.REGTYPE
    if stat.S_ISDIR(st_mode):
        return TypeFlag.DIRTYPE
    if stat.S_ISCHR(st_mode):
        return TypeFlag.CHRTYPE
    if stat.S_ISBLK(st_mode):
        return TypeFlag.BLKTYPE
    if stat.S_ISLNK(st_mode):
        return TypeFlag.SYMTYPE
    if stat.S_ISFIFO(st_mode):
        return TypeFlag.FIFOTYPE
    return TypeFlag.AREGTYPE


def _finish_header(header: PosixHeader) -> None:
    header.magic = TMAGIC
    header.version = TVERSION
    header.touch()
    header.set_checksum()


def _header_from_file(source, filename: str) -> PosixHeader:
    st = os.lstat(source)
    header = PosixHeader()
    header.name = _fit(filename, 100)
    header.mode = stat.S_IMODE(st.st_mode) & 0o777
    header.uid = st.st_uid
    header.gid = st.st_gid
    header.typeflag = _type_of(st.st_mode)
    if stat.S_ISLNK(st.st_mode):
        header.linkname = _fit(os.readlink(source), 100)
        header.size = 0
    elif stat.S_ISREG(st.st_mode):
        header.size = st.st_size
    else:
        header.size = 0
    _set_owner_names(header, st.st_uid, st.st_gid)
    _finish_header(header)
    return header


def _empty_header(filename: str, is_directory: bool) -> PosixHeader:
    header = PosixHeader()
    header.name = _fit(filename, 100)
    header.mode = (0o777 if is_directory else 0o666) & ~getumask()
    header.uid = os.getuid()
    header.gid = os.getgid()
    header.size = 0
    header.typeflag = TypeFlag.DIRTYPE if is_directory else TypeFlag.REGTYPE
    _set_owner_names(header, os.getuid(), os.getgid())
    _finish_header(header)
    return header


def _pad(f: BinaryIO, written: int, size: int) -> None:
    f.write(bytes(number_of_block(size) * BLOCKSIZE - written))


def add_ext_to_tar(tar_name, source, filename: str) -> None:
    """Append a file to the end of the tar at ``tar_name`` as ``filename``.

    With a ``source`` path, that file is stored. With ``source`` None an empty
    file is created, or an empty directory if ``filename`` ends with ``/``.
    """
    if not filename:
        raise TarError(errno.EINVAL)
    if source is None:
        header = _empty_header(filename, is_dir_name(filename))
    else:
        header = _header_from_file(source, filename)

    with open(tar_name, "r+b") as f:
        _seek_end_of_tar(f)
        f.write(header.to_bytes())
        if source is not None and header.typeflag == TypeFlag.REGTYPE:
            with open(source, "rb") as src:
                written = copy_stream(src, f, header.size, BLOCKSIZE)
            _pad(f, written, header.size)
        f.write(_END_OF_ARCHIVE)


def _add_dir_content(tar_name, dirname: str, inside: str) -> None:
    with os.scandir(dirname) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    base = inside if not inside or inside.endswith("/") else inside + "/"
    for entry in entries:
        is_directory = entry.is_dir(follow_symlinks=False)
        suffix = "/" if is_directory else ""
        source = os.path.join(dirname, entry.name) + suffix
        inner = base + entry.name + suffix
        add_ext_to_tar(tar_name, source, inner)
        if is_directory:
            _add_dir_content(tar_name, source, inner)


def add_ext_to_tar_rec(tar_name, filename, inside_tar_name: str) -> None:
    """Append the directory ``filename`` and everything under it as ``inside_tar_name``."""
    filename = os.fspath(filename)
    add_ext_to_tar(tar_name, filename, inside_tar_name)
    _add_dir_content(tar_name, filename, inside_tar_name)


def add_tar_to_tar(tar_name_src, tar_name_dest, source: str, dest: str) -> None:
    """Copy ``source`` of one tar to the end of another (or the same) tar as ``dest``.

    Raises TarError with EEXIST if ``dest`` already exists, ENOENT if
    ``source`` does not.
    """
    try:
        tar_access(tar_name_dest, dest, os.F_OK)
    except OSError as exc:
        if exc.errno != errno.ENOENT:
            raise
    else:
        raise TarError(errno.EEXIST, dest)

    with open(tar_name_src, "rb") as src:
        header = seek_header(src, source)
        if header is None:
            raise TarError(errno.ENOENT, source)
        content = src.read(number_of_block(header.size) * BLOCKSIZE)

    header.name = dest
    header.touch()
    header.set_checksum()

    with open(tar_name_dest, "r+b") as f:
        _seek_end_of_tar(f)
        f.write(header.to_bytes())
        f.write(content)
        _pad(f, len(content), header.size)
        f.write(_END_OF_ARCHIVE)


def add_tar_to_tar_rec(tar_name_src, tar_name_dest, source: str, dest: str) -> None:
    """Copy ``source`` and, for a directory, everything under it to ``dest``.

    An empty ``source`` copies the whole source tar under ``dest``.
    """
    if any(header.name == dest for header in tar_ls(tar_name_dest)):
        raise TarError(errno.EEXIST, dest)

    for header in tar_ls(tar_name_src):
        name = header.name
        if not source:
            new_name = dest + name
        elif name == source or (is_dir_name(source) and name.startswith(source)):
            new_name = dest + name[len(source):]
        else:
            continue
        add_tar_to_tar(tar_name_src, tar_name_dest, name, new_name)


def tar_append_file(tar_name, filename: str, src: BinaryIO) -> None:
    """Append what remains to be read from ``src`` to ``filename`` in the tar."""
    data = src.read()
    with open(tar_name, "r+b") as f:
        header = seek_header(f, filename)
        if header is None:
            raise TarError(errno.ENOENT, filename)
        data_start = f.tell()
        header_start = data_start - BLOCKSIZE
        old_size = header.size
        new_size = old_size + len(data)
        old_end = data_start + number_of_block(old_size) * BLOCKSIZE
        new_end = data_start + number_of_block(new_size) * BLOCKSIZE
        tar_end = f.seek(0, os.SEEK_END)

        if new_end != old_end:
            fmemmove(f, old_end, tar_end - old_end, new_end)
        f.seek(data_start + old_size)
        f.write(data)
        f.write(bytes(new_end - (data_start + new_size)))

        header.size = new_size
        header.touch()
        header.set_checksum()
        f.seek(header_start)
        f.write(header.to_bytes())


def move_file_to_end_of_tar(tar_name, filename: str) -> None:
    """Move the header and content of ``filename`` after all other files of the tar."""
    with open(tar_name, "r+b") as f:
        end_tar = _seek_end_of_tar(f)
        f.seek(0)
        header = seek_header(f, filename)
        if header is None:
            raise TarError(errno.ENOENT, filename)
        whence = f.seek(-BLOCKSIZE, os.SEEK_CUR)
        move_size = BLOCKSIZE * (number_of_block(header.size) + 1)
        if whence + move_size == end_tar:
            return
        moved = f.read(move_size)
        after = f.read(end_tar - (whence + move_size))
        f.seek(whence)
        f.write(after)
        f.write(moved)