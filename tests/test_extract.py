import errno
import io
import os
import tarfile

import pytest

from tarsh.errors import TarError
from tarsh.extract import tar_cp_file, tar_extract


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


BIG = b"0123456789" * 130


@pytest.fixture
def layout(tmp_path):
    return _write_tar(
        tmp_path / "test.tar",
        _info("a", BIG),
        _info("d/", kind=tarfile.DIRTYPE, mode=0o755),
        _info("d/x", b"xx"),
        _info("d/sub/", kind=tarfile.DIRTYPE, mode=0o755),
        _info("d/sub/y", b"yy"),
        _info("hard", kind=tarfile.LNKTYPE, linkname="a"),
        _info("soft", kind=tarfile.SYMTYPE, linkname="a"),
    )


@pytest.fixture
def dest(tmp_path):
    path = tmp_path / "out"
    path.mkdir()
    return path


def test_cp_file_content(layout):
    out = io.BytesIO()
    tar_cp_file(layout, "a", out)
    assert out.getvalue() == BIG
    out = io.BytesIO()
    tar_cp_file(layout, "d/sub/y", out)
    assert out.getvalue() == b"yy"


@pytest.mark.parametrize("name, code", [("d/", errno.EISDIR), ("nope", errno.ENOENT)])
def test_cp_file_errors(layout, name, code):
    with pytest.raises(TarError) as exc:
        tar_cp_file(layout, name, io.BytesIO())
    assert exc.value.errno == code


def test_extract_regular_file(layout, dest):
    tar_extract(layout, "a", dest)
    assert (dest / "a").read_bytes() == BIG
    assert os.stat(dest / "a").st_mode & 0o777 == 0o600


def test_extract_nested_file_uses_last_component(layout, dest):
    tar_extract(layout, "d/sub/y", dest)
    assert (dest / "y").read_bytes() == b"yy"
    assert not (dest / "d").exists()


def test_extract_directory(layout, dest):
    tar_extract(layout, "d/", dest)
    assert (dest / "d" / "x").read_bytes() == b"xx"
    assert (dest / "d" / "sub" / "y").read_bytes() == b"yy"
    assert sorted(os.listdir(dest)) == ["d"]


def test_extract_whole_tar(layout, dest):
    tar_extract(layout, "", dest)
    assert (dest / "a").read_bytes() == BIG
    assert (dest / "d" / "sub" / "y").read_bytes() == b"yy"
    assert (dest / "hard").read_bytes() == BIG
    assert os.readlink(dest / "soft") == "a"


def test_extract_symlink(layout, dest):
    tar_extract(layout, "soft", dest)
    assert os.readlink(dest / "soft") == "a"


def test_extract_missing_file(layout, dest):
    with pytest.raises(TarError) as exc:
        tar_extract(layout, "nope", dest)
    assert exc.value.errno == errno.ENOENT
    assert os.listdir(dest) == []


def test_extract_bad_destination(layout, tmp_path):
    with pytest.raises(TarError) as missing:
        tar_extract(layout, "a", tmp_path / "nowhere")
    plain = tmp_path / "plain"
    plain.write_bytes(b"")
    with pytest.raises(TarError) as not_dir:
        tar_extract(layout, "a", plain)
    assert missing.value.errno == errno.ENOENT
    assert not_dir.value.errno == errno.ENOTDIR