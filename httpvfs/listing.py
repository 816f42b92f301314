"""Decoding of the server's JSON directory documents."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .base import DirEntry, FileInfo
from .errors import ListingDecodeError

PATH_TYPE_DIR = "Dir"


@dataclass
class DufsIndex:
    """A decoded directory document.

    The capability flags describe what the server allows on this directory.
    They are informational, nothing in the client enforces them.
    """

    href: str = ""
    kind: str = ""
    uri_prefix: str = ""
    allow_upload: bool = False
    allow_delete: bool = False
    allow_search: bool = False
    allow_archive: bool = False
    dir_exists: bool = False
    auth: bool = False
    user: str = ""
    entries: list[DirEntry] = field(default_factory=list)


def decode_mtime(value):
    # mtime is sent in milliseconds since the epoch
    return datetime.fromtimestamp(value / 1000, timezone.utc)


def decode_entry(item):
    try:
        return DirEntry(
            FileInfo(
                name=str(item["name"]),
                size=int(item.get("size") or 0),
                mtime=decode_mtime(int(item.get("mtime") or 0)),
                is_dir=item.get("path_type") == PATH_TYPE_DIR,
            )
        )
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError, OSError) as e:
        raise ListingDecodeError(f"malformed listing entry: {item!r}") from e


def decode_listing(data):
    try:
        doc = json.loads(data)
    except ValueError as e:
        raise ListingDecodeError(f"malformed listing: {e}") from e
    if not isinstance(doc, dict):
        raise ListingDecodeError("listing is not a JSON object")

    paths = doc.get("paths") or []
    if not isinstance(paths, list):
        raise ListingDecodeError("listing paths is not an array")

    return DufsIndex(
        href=doc.get("href") or "",
        kind=doc.get("kind") or "",
        uri_prefix=doc.get("uri_prefix") or "",
        allow_upload=bool(doc.get("allow_upload")),
        allow_delete=bool(doc.get("allow_delete")),
        allow_search=bool(doc.get("allow_search")),
        allow_archive=bool(doc.get("allow_archive")),
        dir_exists=bool(doc.get("dir_exists")),
        auth=bool(doc.get("auth")),
        user=doc.get("user") or "",
        entries=[decode_entry(item) for item in paths],
    )
