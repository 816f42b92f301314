"""Random access files on top of a dufs server.

Every operation is one HTTP round trip. A DufsFile keeps a local cursor and
the last known metadata of its resource, and turns offset based I/O into
range requests (reads) and PATCH requests with an ``x-update-range`` header
(writes).
"""

import io
import threading
from datetime import timezone
from email.utils import parsedate_to_datetime

from .base import EPOCH, FileInfo
from .counting import CHUNK_SIZE, CountingReader
from .errors import InvalidOperationError, OffsetOutOfRangeError
from .listing import decode_listing
from .urls import resolve, split_path
from .vfs import HttpVFS


def is_listing(resp):
    """Whether the server answered with a directory document."""
    headers = resp.headers
    return (
        not headers.get("Content-Disposition")
        and headers.get("Content-Type") == "application/json"
        and headers.get("Cache-Control") == "no-cache"
    )


def parse_mtime(headers):
    for name in ("Last-Modified", "Date"):
        value = headers.get(name)
        if not value:
            continue
        try:
            mtime = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            continue
        if mtime.tzinfo is None:
            mtime = mtime.replace(tzinfo=timezone.utc)
        return mtime
    return EPOCH


class DufsVFS(HttpVFS):
    """Filesystem rooted at a dufs URL.

    >>> fs = DufsVFS("http://127.0.0.1:5000")
    >>> with fs.open("data/report.csv") as f:
    ...     head = f.read(1024)
    """

    def __init__(self, root, session=None, logger=None, timeout=None):
        resolve(root, "")
        super().__init__(
            root, session=session, logger=logger, timeout=timeout, open_func=self._open
        )

    def resolve(self, path):
        return resolve(self.root, path)

    def _open(self, path):
        return DufsFile(self, path, self.resolve(path))

    def mkdir(self, path):
        url = self.resolve(path)
        # 405 is what the server answers for an existing directory
        with self.request("MKCOL", url) as resp:
            self.check("MKCOL", url, resp, missing_status=None, exists_status=405)

    def remove(self, path):
        url = self.resolve(path)
        with self.request("DELETE", url) as resp:
            self.check("DELETE", url, resp)

    def copy(self, dst, src):
        self._copy_or_rename(dst, src, rename=False)

    def rename(self, src, dst):
        self._copy_or_rename(dst, src, rename=True)

    def _copy_or_rename(self, dst, src, rename):
        method = "MOVE" if rename else "COPY"
        src_url = self.resolve(src)
        dst_url = self.resolve(dst)
        with self.request(method, src_url, headers={"Destination": dst_url}) as resp:
            self.check(method, src_url, resp)


class DufsFile(io.RawIOBase):
    """Handle on one remote file or directory.

    The cursor and the cached metadata are guarded by two separate locks, so
    metadata lookups are not queued behind a transfer in flight. The cursor
    lock only protects the local cursor: writes from several threads at
    overlapping offsets still race on the server.

    Reads and writes cost one request each whatever their size. Prefer
    write_to / read_from for bulk transfers.
    """

    def __init__(self, fs, name, url):
        self.fs = fs
        self.name = name
        self.url = url
        self.pos = 0
        self._info = None
        self._pos_lock = threading.Lock()
        self._info_lock = threading.Lock()

    def __str__(self):
        return self.url

    def __repr__(self):
        return f"<DufsFile {self.url!r} pos={self.pos}>"

    @property
    def basename(self):
        segments = split_path(self.name)
        return segments[-1] if segments else "/"

    def readable(self):
        return True

    def writable(self):
        return True

    def seekable(self):
        return True

    def close(self):
        # Nothing is buffered locally, every write already reached the server.
        pass

    def _json(self, method, headers=None, stream=False):
        resp = self.fs.request(
            method, self.url, params={"json": ""}, headers=headers, stream=stream
        )
        if not 200 <= resp.status_code < 300:
            with resp:
                self.fs.check(method, self.url, resp)
        return resp

    def _invalidate(self):
        with self._info_lock:
            self._info = None

    def stat(self):
        info = self._fetch_stat()
        with self._info_lock:
            self._info = info
        return info

    def cached_stat(self):
        with self._info_lock:
            if self._info is None:
                self._info = self._fetch_stat()
            return self._info

    def _fetch_stat(self):
        with self._json("HEAD") as resp:
            is_dir = is_listing(resp)
            size = 0 if is_dir else int(resp.headers.get("Content-Length") or 0)
            return FileInfo(
                name=self.basename,
                size=size,
                mtime=parse_mtime(resp.headers),
                is_dir=is_dir,
            )

    def tell(self):
        return self.pos

    def seek(self, offset, whence=io.SEEK_SET):
        size = self.cached_stat().size

        with self._pos_lock:
            if whence == io.SEEK_SET:
                pos = offset
            elif whence == io.SEEK_CUR:
                pos = self.pos + offset
            elif whence == io.SEEK_END:
                pos = size + offset
            else:
                raise ValueError(f"invalid whence: {whence}")

            if pos < 0:
                raise OffsetOutOfRangeError(f"negative offset {pos}", self.url)
            if pos > size:
                raise OffsetOutOfRangeError(
                    f"offset {pos} out of range (size {size})", self.url
                )
            self.pos = pos
            return pos

    def readinto(self, b):
        """Read up to len(b) bytes at the cursor with one ranged GET.

        Returns 0 once the cursor reached the end of the file.
        """
        with self._pos_lock:
            info = self.cached_stat()
            if info.is_dir:
                raise InvalidOperationError("is a directory", self.url)

            end = min(self.pos + len(b) - 1, info.size - 1)
            if self.pos > end:
                return 0

            headers = {"Range": f"bytes={self.pos}-{end}"}
            with self._json("GET", headers=headers) as resp:
                if is_listing(resp):
                    raise InvalidOperationError("is a directory", self.url)
                data = resp.content

            n = min(len(data), len(b))
            b[:n] = data[:n]
            self.pos = end + 1
            return n

    def read_at(self, b, offset):
        self.seek(offset)
        return self.readinto(b)

    def readall(self):
        remaining = self.cached_stat().size - self.pos
        if remaining <= 0:
            return b""
        buf = bytearray(remaining)
        n = self.readinto(buf)
        return bytes(buf[:n])

    def write(self, b):
        return self.write_at(b, self.pos)

    def write_at(self, b, offset):
        """Write b at offset with one PATCH request.

        Writing at offset 0 of a missing file creates it with a PUT. Offsets at
        or past the end append to the file, anything before overwrites
        ``[offset, offset + len(b))`` in place.
        """
        data = bytes(b)
        with self._pos_lock:
            try:
                info = self.cached_stat()
            except FileNotFoundError:
                if offset != 0:
                    raise
                n = self.read_from(io.BytesIO(data))
                self.pos = n
                return n

            if not data:
                self.pos = min(offset, info.size)
                return 0

            # an append lands at the current end whatever the offset
            if offset >= info.size:
                update_range = "append"
                end = info.size + len(data)
            else:
                update_range = f"bytes={offset}-{offset + len(data) - 1}"
                end = offset + len(data)

            headers = {"x-update-range": update_range}
            with self.fs.request("PATCH", self.url, data=data, headers=headers) as resp:
                self.fs.check("PATCH", self.url, resp)

            self.pos = end
            self._invalidate()
            return len(data)

    def read_from(self, stream):
        """Replace the whole file with the content of stream."""
        body = CountingReader(stream)
        with self.fs.request("PUT", self.url, data=body) as resp:
            self.fs.check("PUT", self.url, resp)
        self._invalidate()
        return body.count

    def write_to(self, stream):
        """Download the whole file into stream."""
        n = 0
        with self._json("GET", stream=True) as resp:
            for chunk in resp.iter_content(CHUNK_SIZE):
                stream.write(chunk)
                n += len(chunk)
        return n

    def read_index(self):
        with self._json("GET") as resp:
            if not is_listing(resp):
                raise InvalidOperationError("not a directory", self.url)
            return decode_listing(resp.content)

    def read_dir(self, limit=-1):
        entries = self.read_index().entries
        if limit > 0:
            entries = entries[:limit]
        return entries
