"""Small helpers shared by the tar operations."""

from __future__ import annotations

import os
from typing import BinaryIO


def getumask() -> int:
    """Return the current file creation mask without changing it."""
    mask = os.umask(0)
    os.umask(mask)
    return mask


def copy_stream(src: BinaryIO, dst: BinaryIO, count: int, bufsize: int = 512) -> int:
    """Copy up to ``count`` bytes from ``src`` to ``dst`` in chunks of ``bufsize``.

    Copying stops early if ``src`` runs out of data. Returns the number of
    bytes copied.
    """
    if bufsize <= 0:
        raise ValueError("bufsize must be positive")
    copied = 0
    while copied < count:
        chunk = src.read(min(bufsize, count - copied))
        if not chunk:
            break
        dst.write(chunk)
        copied += len(chunk)
    return copied


def fmemmove(f: BinaryIO, whence: int, size: int, where: int) -> None:
    """Copy ``size`` bytes of ``f`` from offset ``whence`` to offset ``where``.

    The two ranges may overlap. The file offset is left at ``where``.
    """
    f.seek(whence)
    data = f.read(size)
    f.seek(where)
    f.write(data)
    f.seek(where)


def is_dir_name(name: str) -> bool:
    """Tell whether ``name`` ends with a ``/``."""
    return name.endswith("/")


def is_prefix(prefix: str, s: str) -> int:
    """Compare ``prefix`` with the start of ``s``.

    Returns 1 if ``prefix`` is a proper prefix of ``s``, 2 if both are equal
    and 0 otherwise.
    """
    if s.startswith(prefix):
        return 2 if len(s) == len(prefix) else 1
    return 0


def append_slash(s: str) -> str:
    """Return ``s`` with a trailing ``/`` added if it has none."""
    if not s:
        raise ValueError("cannot append a slash to an empty string")
    return s if s.endswith("/") else s + "/"


def remove_last_slash(s: str) -> str:
    """Return ``s`` without its trailing ``/``, if it has one."""
    return s[:-1] if s.endswith("/") else s