"""httpvfs: random access files on a remote HTTP file server."""

from .base import (
    DirectoryListable,
    DirEntry,
    FileInfo,
    FileSystem,
    Readable,
    Seekable,
    Writable,
)
from .config import VFSConfig, connect, load_config
from .dufs import DufsFile, DufsVFS
from .errors import (
    HttpVFSError,
    InvalidOperationError,
    ListingDecodeError,
    OffsetOutOfRangeError,
    TransportError,
)
from .listing import DufsIndex, decode_listing
from .urls import resolve
from .vfs import HttpVFS

__all__ = [
    "connect",
    "decode_listing",
    "DirectoryListable",
    "DirEntry",
    "DufsFile",
    "DufsIndex",
    "DufsVFS",
    "FileInfo",
    "FileSystem",
    "HttpVFS",
    "HttpVFSError",
    "InvalidOperationError",
    "ListingDecodeError",
    "load_config",
    "OffsetOutOfRangeError",
    "Readable",
    "resolve",
    "Seekable",
    "TransportError",
    "VFSConfig",
    "Writable",
]
