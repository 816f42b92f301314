"""File information values and the capability contracts of remote files."""

from __future__ import annotations

import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, BinaryIO, Protocol, runtime_checkable

EPOCH = datetime.fromtimestamp(0, timezone.utc)

# Permission bits are advisory only, the server does not expose any.
DEFAULT_MODE = 0o777


@dataclass
class FileInfo:
    """Metadata of one remote file or directory.

    Attributes:
        name: Virtual name the entry was opened or listed under.
        size: Size in bytes (0 for directories).
        mode: Permission bits, always DEFAULT_MODE.
        mtime: Last modification time (UTC). EPOCH when unknown.
        is_dir: True for directories.
    """

    name: str
    size: int = 0
    mode: int = DEFAULT_MODE
    mtime: datetime = field(default=EPOCH)
    is_dir: bool = False

    # os.stat_result-compatible view, used by the FUSE layer.

    @property
    def st_size(self) -> int:
        return self.size

    @property
    def st_mode(self) -> int:
        kind = stat.S_IFDIR if self.is_dir else stat.S_IFREG
        return kind | self.mode

    @property
    def st_mtime(self) -> float:
        return self.mtime.timestamp()

    @property
    def st_mtime_ns(self) -> int:
        return int(self.mtime.timestamp() * 1e9)


@dataclass
class DirEntry:
    """One child of a directory listing, shaped like os.DirEntry."""

    info: FileInfo

    @property
    def name(self) -> str:
        return self.info.name

    def is_dir(self) -> bool:
        return self.info.is_dir

    def is_file(self) -> bool:
        return not self.info.is_dir

    def stat(self) -> FileInfo:
        return self.info


@runtime_checkable
class Readable(Protocol):
    def readinto(self, b: bytearray | memoryview) -> int: ...

    def read_at(self, b: bytearray | memoryview, offset: int) -> int: ...

    def write_to(self, stream: BinaryIO) -> int: ...


@runtime_checkable
class Writable(Protocol):
    def write(self, b: bytes) -> int: ...

    def write_at(self, b: bytes, offset: int) -> int: ...

    def read_from(self, stream: BinaryIO) -> int: ...


@runtime_checkable
class Seekable(Protocol):
    def seek(self, offset: int, whence: int = 0) -> int: ...

    def tell(self) -> int: ...


@runtime_checkable
class DirectoryListable(Protocol):
    def read_dir(self, limit: int = -1) -> list[DirEntry]: ...


@runtime_checkable
class FileSystem(Protocol):
    """Path level operations of a remote filesystem."""

    def open(self, path: str) -> Any: ...

    def stat(self, path: str) -> FileInfo: ...

    def read_dir(self, path: str) -> list[DirEntry]: ...

    def read_file(self, path: str) -> bytes: ...

    def mkdir(self, path: str) -> None: ...

    def remove(self, path: str) -> None: ...

    def copy(self, dst: str, src: str) -> None: ...

    def rename(self, src: str, dst: str) -> None: ...
