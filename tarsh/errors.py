"""Error type for tar operations and error message printing."""

from __future__ import annotations

import os
import sys


class TarError(OSError):
    """An operation on a tar archive failed; carries an errno value."""

    def __init__(self, err: int, filename=None):
        if filename is None:
            super().__init__(err, os.strerror(err))
        else:
            super().__init__(err, os.strerror(err), filename)


def error_cmd(cmd_name: str, msg: str, err: int) -> str:
    """Print ``cmd_name: msg: strerror(err)`` on standard error and return it."""
    message = f"{cmd_name}: {msg}: {os.strerror(err)}\n"
    sys.stderr.write(message)
    return message


def tar_error_cmd(cmd_name: str, tar_name: str, filename: str, err: int) -> str:
    """Print ``cmd_name: tar_name/filename: strerror(err)`` on standard error and return it."""
    return error_cmd(cmd_name, f"{tar_name}/{filename}", err)


def error(errnum: int, msg: str, *args) -> str:
    """Print a %-formatted message on standard error and return it.

    When ``errnum`` is not zero, ``strerror(errnum)`` and a newline follow.
    """
    message = msg % args if args else msg
    if errnum:
        message += os.strerror(errnum) + "\n"
    sys.stderr.write(message)
    return message