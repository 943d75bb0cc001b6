# tarsh

`tarsh` works directly on POSIX ustar archives. It reads and rewrites the
archive file in place, block by block. Nothing is unpacked to a temporary
directory first. It needs a POSIX system, because it looks up user and group
names and ids.

## Modules

- `tarsh.archive`: the ustar format.
  - `PosixHeader` wraps a 512-byte header block. It gives typed access to its
    fields (`name`, `mode`, `uid`, `gid`, `size`, `mtime`, `typeflag`,
    `linkname`, `uname`, `gname`, ...). It also has `from_bytes`, `to_bytes`,
    `compute_checksum`, `set_checksum`, `check_checksum` and `touch`.
  - `TypeFlag` lists the entry types.
  - `TarEntry` pairs a header with the offset where that header starts.
  - `is_tar` checks a file. The name must end with `.tar`, the size must be a
    multiple of 512, and every header checksum must be valid.
  - `tar_ls`, `tar_ls_all` and `tar_ls_if` list entries.
  - `count_files` and `nb_files_in_tar` count entries.
  - `seek_header`, `read_header`, `skip_file_content`, `update_header` and
    `number_of_block` are the lower-level helpers.
- `tarsh.access`: permissions and directories.
  - `tar_access` and `ftar_access` check the current user's read, write or
    execute permission on an entry. They use the mode, uid and gid stored in
    the archive, and each parent directory must be executable. For root only
    existence is checked. The return value is 1 if the entry exists itself,
    or 2 if it is a directory known only through the files under it.
  - `is_dir` tells whether a name is a directory of the archive.
  - `tar_ls_dir` lists the contents of a directory, recursively if asked.
- `tarsh.remove`: `tar_rm` deletes a file, or a directory and everything
  under it, from an archive. `tar_rm_dir` works on an open file.
- `tarsh.move`: `tar_mv_file` writes a regular file's content to a stream,
  then removes the file from the archive.
- `tarsh.extract`:
  - `tar_cp_file` writes an entry's content to a stream.
  - `tar_extract` extracts a file, a directory tree or the whole archive into
    an existing directory. Regular files, directories, symbolic links and
    hard links are created on disk.
- `tarsh.add`:
  - `add_ext_to_tar` appends a file from disk. With `source=None` it creates
    an empty file instead, or an empty directory if the name ends with `/`.
  - `add_ext_to_tar_rec` appends a directory tree from disk.
  - `add_tar_to_tar` and `add_tar_to_tar_rec` copy entries from one archive
    to another archive, or within the same one.
  - `tar_append_file` appends the rest of a stream to an entry.
  - `move_file_to_end_of_tar` moves an entry after all the others.
- `tarsh.errors`:
  - `TarError`.
  - `error`, `error_cmd` and `tar_error_cmd` print error messages on
    standard error and return them.
- `tarsh.utils`: small helpers.
  - `getumask`.
  - `copy_stream` and `fmemmove`.
  - `is_dir_name`, `is_prefix`, `append_slash` and `remove_last_slash`.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install .[test]
```

## Example

```python
import io

from tarsh.archive import tar_ls, is_tar
from tarsh.add import add_ext_to_tar
from tarsh.extract import tar_cp_file
from tarsh.remove import tar_rm

if is_tar("backup.tar"):
    add_ext_to_tar("backup.tar", "notes.txt", "docs/notes.txt")

    for header in tar_ls("backup.tar"):
        print(header.name)

    buf = io.BytesIO()
    tar_cp_file("backup.tar", "docs/notes.txt", buf)
    print(buf.getvalue().decode())

    tar_rm("backup.tar", "docs/")
```

## Errors

Failures raise `tarsh.errors.TarError`, a subclass of `OSError` that carries
an `errno` value. For example:

- a missing entry raises `ENOENT`;
- reading or moving a directory as a file raises `EISDIR`;
- copying to a name that already exists raises `EEXIST`;
- a permission the archive does not grant raises `EACCES`.

Errors from opening the files themselves come through as ordinary `OSError`.

## Directory names

Directory names inside an archive end with `/`, as in `docs/`. The empty
string stands for the root of the archive.

## What it does not do

`tarsh` is a library only. It has no command-line tool and no interactive
shell. It cannot run commands, pipes or redirections on archive paths. It
handles only uncompressed ustar archives.