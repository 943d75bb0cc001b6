"""Reading and updating POSIX (ustar) tar archives block by block."""

from __future__ import annotations

import enum
import errno
import os
import re
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, List, Optional

from .errors import TarError

BLOCKSIZE = 512
BLOCKBITS = 9

TMAGIC = "ustar"
TMAGLEN = 6
TVERSION = "00"
TVERSLEN = 2
OLDGNU_MAGIC = "ustar  "

TSUID = 0o4000
TSGID = 0o2000
TSVTX = 0o1000
TUREAD = 0o0400
TUWRITE = 0o0200
TUEXEC = 0o0100
TGREAD = 0o0040
TGWRITE = 0o0020
TGEXEC = 0o0010
TOREAD = 0o0004
TOWRITE = 0o0002
TOEXEC = 0o0001

_CHKSUM_OFFSET = 148
_CHKSUM_WIDTH = 8
_TYPEFLAG_OFFSET = 156

_OCTAL = re.compile(rb"\s*([0-7]+)")


class TypeFlag(str, enum.Enum):
    """Type of a file stored in a tar."""

    REGTYPE = "0"
    AREGTYPE = "\0"
    LNKTYPE = "1"
    SYMTYPE = "2"
    CHRTYPE = "3"
    BLKTYPE = "4"
    DIRTYPE = "5"
    FIFOTYPE = "6"
    CONTTYPE = "7"


def _parse_octal(raw: bytes) -> int:
    match = _OCTAL.match(raw)
    return int(match.group(1), 8) if match else 0


class _TextField:
    """A NUL-terminated text field of a header block."""

    def __init__(self, offset: int, width: int):
        self.offset = offset
        self.width = width

    def __get__(self, obj, owner=None):
        if obj is None:
            return self
        raw = bytes(obj.block[self.offset:self.offset + self.width])
        return raw.split(b"\0", 1)[0].decode("utf-8", "surrogateescape")

    def __set__(self, obj, value: str) -> None:
        data = value.encode("utf-8", "surrogateescape")
        if len(data) > self.width:
            raise ValueError(f"{value!r} does not fit in {self.width} bytes")
        obj.block[self.offset:self.offset + self.width] = data.ljust(self.width, b"\0")


class _OctalField:
    """A zero-filled octal number field of a header block, followed by a NUL."""

    def __init__(self, offset: int, width: int):
        self.offset = offset
        self.width = width

    def __get__(self, obj, owner=None):
        if obj is None:
            return self
        return _parse_octal(bytes(obj.block[self.offset:self.offset + self.width]))

    def __set__(self, obj, value: int) -> None:
        digits = self.width - 1
        if value < 0:
            raise ValueError("octal header fields cannot be negative")
        text = format(value, f"0{digits}o").encode("ascii")
        if len(text) > digits:
            raise ValueError(f"{value} does not fit in {digits} octal digits")
        obj.block[self.offset:self.offset + self.width] = text + b"\0"


@dataclass
class PosixHeader:
    """A 512-byte ustar header block with typed access to its fields."""

    block: bytearray = field(default_factory=lambda: bytearray(BLOCKSIZE))

    name = _TextField(0, 100)
    mode = _OctalField(100, 8)
    uid = _OctalField(108, 8)
    gid = _OctalField(116, 8)
    size = _OctalField(124, 12)
    mtime = _OctalField(136, 12)
    chksum = _OctalField(_CHKSUM_OFFSET, _CHKSUM_WIDTH)
    linkname = _TextField(157, 100)
    magic = _TextField(257, 6)
    version = _TextField(263, 2)
    uname = _TextField(265, 32)
    gname = _TextField(297, 32)
    devmajor = _OctalField(329, 8)
    devminor = _OctalField(337, 8)
    prefix = _TextField(345, 155)

    def __post_init__(self) -> None:
        self.block = bytearray(self.block)
        if len(self.block) != BLOCKSIZE:
            raise ValueError(f"a header block is {BLOCKSIZE} bytes, got {len(self.block)}")

    @property
    def typeflag(self) -> str:
        """The one-character type of the file."""
        return chr(self.block[_TYPEFLAG_OFFSET])

    @typeflag.setter
    def typeflag(self, value: str) -> None:
        self.block[_TYPEFLAG_OFFSET] = ord(value)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PosixHeader":
        """Build a header from a raw 512-byte block."""
        return cls(bytearray(data))

    def to_bytes(self) -> bytes:
        """Return the raw 512-byte block."""
        return bytes(self.block)

    def compute_checksum(self) -> int:
        """Sum of all bytes of the block, the checksum field counted as spaces."""
        end = _CHKSUM_OFFSET + _CHKSUM_WIDTH
        return sum(self.block[:_CHKSUM_OFFSET]) + ord(" ") * _CHKSUM_WIDTH + sum(self.block[end:])

    def set_checksum(self) -> None:
        """Write the checksum as six octal digits, a NUL and a space."""
        end = _CHKSUM_OFFSET + _CHKSUM_WIDTH
        self.block[_CHKSUM_OFFSET:end] = b" " * _CHKSUM_WIDTH
        total = sum(self.block)
        self.block[_CHKSUM_OFFSET:_CHKSUM_OFFSET + 7] = b"%06o\0" % total

    def check_checksum(self) -> bool:
        """Tell whether the stored checksum matches the block's content."""
        return self.chksum == self.compute_checksum()

    def touch(self) -> None:
        """Set the modification time to now."""
        self.mtime = int(time.time())


@dataclass
class TarEntry:
    """A file of a tar: its header and the offset where that header starts."""

    header: PosixHeader
    file_start: int

    @property
    def data_start(self) -> int:
        """Offset of the file's content, just after its header."""
        return self.file_start + BLOCKSIZE


def number_of_block(filesize: int) -> int:
    """Number of blocks needed to hold ``filesize`` bytes."""
    return (filesize + BLOCKSIZE - 1) >> BLOCKBITS


def _read_block(f: BinaryIO) -> bytes:
    return f.read(BLOCKSIZE)


def read_header(f: BinaryIO) -> Optional[PosixHeader]:
    """Read a header at the current offset; None if a full block cannot be read."""
    block = _read_block(f)
    if len(block) != BLOCKSIZE:
        return None
    return PosixHeader.from_bytes(block)


def skip_file_content(f: BinaryIO, header: PosixHeader) -> int:
    """Move past the content of the file whose header was just read; return the new offset."""
    return f.seek(number_of_block(header.size) * BLOCKSIZE, os.SEEK_CUR)


def is_tar(path) -> bool:
    """Tell whether ``path`` names a ``.tar`` file whose headers are all valid."""
    path = os.fsdecode(path)
    if not path.endswith(".tar"):
        return False
    try:
        with open(path, "rb") as f:
            if f.seek(0, os.SEEK_END) % BLOCKSIZE:
                return False
            f.seek(0)
            while True:
                header = read_header(f)
                if header is None:
                    return False
                if not header.name:
                    return True
                if not header.check_checksum():
                    return False
                skip_file_content(f, header)
    except OSError:
        return False


def seek_header(f: BinaryIO, filename: str) -> Optional[PosixHeader]:
    """Look for ``filename`` from the current offset.

    Returns its header with the offset just past it, or None if the end of
    the archive is reached first.
    """
    while True:
        header = read_header(f)
        if header is None or not header.name:
            return None
        if header.name == filename:
            return header
        skip_file_content(f, header)


def _iter_entries(f: BinaryIO):
    while True:
        block = _read_block(f)
        if not block:
            return
        if len(block) != BLOCKSIZE:
            raise TarError(errno.EIO)
        header = PosixHeader.from_bytes(block)
        if not header.name:
            return
        yield TarEntry(header, f.tell() - BLOCKSIZE)
        skip_file_content(f, header)


def nb_files_in_tar(f: BinaryIO) -> int:
    """Count the files from the current offset, then rewind to the start."""
    count = sum(1 for _ in _iter_entries(f))
    f.seek(0)
    return count


def count_files(tar_name) -> int:
    """Count the files in the tar at ``tar_name``."""
    with open(tar_name, "rb") as f:
        return nb_files_in_tar(f)


def update_header(f: BinaryIO, filename: str, update: Callable[[PosixHeader], None]) -> PosixHeader:
    """Apply ``update`` to the header of ``filename`` and write it back.

    The modification time is set to now and the checksum recomputed.
    """
    f.seek(0)
    header = seek_header(f, filename)
    if header is None:
        raise TarError(errno.ENOENT, filename)
    update(header)
    header.touch()
    header.set_checksum()
    f.seek(-BLOCKSIZE, os.SEEK_CUR)
    f.write(header.to_bytes())
    return header


def tar_ls_if(f: BinaryIO, predicate: Callable[[PosixHeader], bool]) -> List[TarEntry]:
    """List the files of the tar whose header passes ``predicate``."""
    f.seek(0)
    return [entry for entry in _iter_entries(f) if predicate(entry.header)]


def tar_ls_all(f: BinaryIO) -> List[TarEntry]:
    """List all the files of the tar."""
    return tar_ls_if(f, lambda header: True)


def tar_ls(tar_name) -> List[PosixHeader]:
    """Return the headers of all the files in the tar at ``tar_name``."""
    with open(tar_name, "rb") as f:
        return [entry.header for entry in tar_ls_all(f)]