import errno
import io
import tarfile

import pytest

from tarsh.archive import is_tar, tar_ls
from tarsh.errors import TarError
from tarsh.move import tar_mv_file


def _info(name, data=b"", kind=tarfile.REGTYPE, mode=0o644, linkname=""):
    info = tarfile.TarInfo(name)
    info.type = kind
    info.mode = mode
    info.linkname = linkname
    info.size = len(data) if kind == tarfile.REGTYPE else 0
    return info, data


def _write_tar(path, *members):
    with tarfile.open(path, "w", format=tarfile.USTAR_FORMAT) as tar:
        for info, data in members:
            tar.addfile(info, io.BytesIO(data) if data else None)
    return path


BIG = bytes(range(256)) * 4


@pytest.fixture
def layout(tmp_path):
    return _write_tar(
        tmp_path / "test.tar",
        _info("a", b"hello"),
        _info("big", BIG),
        _info("d/", kind=tarfile.DIRTYPE, mode=0o755),
        _info("link", kind=tarfile.SYMTYPE, linkname="a"),
        _info("z", b"last"),
    )


def _names(path):
    return [header.name for header in tar_ls(path)]


def test_move_small_file(layout):
    out = io.BytesIO()
    tar_mv_file(layout, "a", out)
    assert out.getvalue() == b"hello"
    assert _names(layout) == ["big", "d/", "link", "z"]
    assert is_tar(layout)


def test_move_multi_block_file_keeps_others(layout):
    out = io.BytesIO()
    tar_mv_file(layout, "big", out)
    assert out.getvalue() == BIG
    with tarfile.open(layout) as tar:
        assert tar.extractfile("z").read() == b"last"
        assert tar.extractfile("a").read() == b"hello"


@pytest.mark.parametrize(
    "name, code",
    [("d/", errno.EISDIR), ("nope", errno.ENOENT), ("link", errno.EPERM)],
)
def test_move_errors_leave_tar_untouched(layout, name, code):
    out = io.BytesIO()
    with pytest.raises(TarError) as exc:
        tar_mv_file(layout, name, out)
    assert exc.value.errno == code
    assert out.getvalue() == b""
    assert _names(layout) == ["a", "big", "d/", "link", "z"]